"""HMAC signing utilities for NCP API Gateway requests."""

from __future__ import annotations

import base64
import hashlib
import hmac

from ncpsign.common.errors import ErrorCode, SigningError


def build_message(method: str, path_with_query: str, timestamp: str, access_key: str) -> str:
    """
    Build the canonical message for signature v2.

    Layout is ``"{METHOD} {path_with_query}\\n{timestamp}\\n{access_key}"``
    with no trailing newline.
    """
    return f"{method.upper()} {path_with_query}\n{timestamp}\n{access_key}"


def _encode(value: str, field: str) -> bytes:
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise SigningError(
            f"{field} is not UTF-8 encodable",
            code=ErrorCode.ENCODING_FAILED,
        ) from e


def sign_message(secret_key: str, message: str) -> str:
    """Create a base64-encoded HMAC-SHA256 signature."""
    if not secret_key:
        raise SigningError("Secret key is missing", code=ErrorCode.MISSING_SECRET)
    digest = hmac.new(
        _encode(secret_key, "secret key"),
        _encode(message, "message"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(
    method: str,
    path_with_query: str,
    timestamp: str,
    access_key: str,
    secret_key: str,
) -> str:
    """Sign a request and return the ``x-ncp-apigw-signature-v2`` value."""
    message = build_message(method, path_with_query, timestamp, access_key)
    return sign_message(secret_key, message)


def verify(secret_key: str, message: str, signature: str) -> bool:
    """Verify HMAC signature in constant time."""
    expected = sign_message(secret_key, message)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
