"""Shared error helpers and codes."""

from __future__ import annotations

from typing import Any


class ErrorCode:
    MISSING_SECRET = "missing_secret"
    ENCODING_FAILED = "encoding_failed"
    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_METHOD = "invalid_method"
    INVALID_PATH = "invalid_path"
    INVALID_JSON = "invalid_json"
    INVALID_QUERY = "invalid_query"
    INVALID_TIMESTAMP = "invalid_timestamp"
    REQUEST_FAILED = "request_failed"
    INVALID_RESPONSE = "invalid_response"


class NcpSignError(Exception):
    """Base error for ncpsign."""

    default_code = "error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}


class SigningError(NcpSignError):
    """Cryptographic or input failure while computing a signature."""

    default_code = ErrorCode.ENCODING_FAILED


class RequestValidationError(NcpSignError):
    """Caller input rejected before the signing step."""

    default_code = ErrorCode.INVALID_PATH


class CredentialsError(NcpSignError):
    """Access key or secret key not available."""

    default_code = ErrorCode.MISSING_CREDENTIALS
