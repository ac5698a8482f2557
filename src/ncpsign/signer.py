"""Signer binding credentials and a clock to the HMAC core."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ncpsign.common.clock import Clock, SystemClock, timestamp_millis
from ncpsign.common.errors import ErrorCode, RequestValidationError
from ncpsign.common.hmac import build_message, sign
from ncpsign.credentials import Credentials

TIMESTAMP_HEADER = "x-ncp-apigw-timestamp"
ACCESS_KEY_HEADER = "x-ncp-iam-access-key"
SIGNATURE_HEADER = "x-ncp-apigw-signature-v2"


class HttpMethod(str, Enum):
    """HTTP methods accepted by the gateway."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: "str | HttpMethod") -> "HttpMethod":
        """Parse a method name case-insensitively."""
        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise RequestValidationError(
                f"Unsupported HTTP method: {value!r} (expected one of {allowed})",
                code=ErrorCode.INVALID_METHOD,
            ) from None


@dataclass(frozen=True)
class SigningInput:
    """Everything that goes into the canonical message."""

    method: HttpMethod
    path_with_query: str
    timestamp: str
    access_key: str

    @property
    def message(self) -> str:
        return build_message(
            self.method.value, self.path_with_query, self.timestamp, self.access_key
        )


@dataclass(frozen=True)
class SignedHeaders:
    """Authentication headers for one request."""

    timestamp: str
    access_key: str
    signature: str

    def as_dict(self) -> dict[str, str]:
        return {
            TIMESTAMP_HEADER: self.timestamp,
            ACCESS_KEY_HEADER: self.access_key,
            SIGNATURE_HEADER: self.signature,
        }


class Signer:
    """
    Produce NCP signature v2 headers.

    The timestamp comes from the injected clock unless the caller passes one,
    so the same timestamp is both signed and sent.
    """

    def __init__(self, credentials: Credentials, clock: Clock | None = None):
        self._credentials = credentials
        self._clock = clock or SystemClock()

    @property
    def access_key(self) -> str:
        return self._credentials.access_key

    def signing_input(
        self,
        method: str | HttpMethod,
        path_with_query: str,
        timestamp: str | None = None,
    ) -> SigningInput:
        if timestamp is None:
            timestamp = timestamp_millis(self._clock)
        elif not (timestamp.isascii() and timestamp.isdigit()):
            raise RequestValidationError(
                f"Timestamp must be epoch milliseconds in decimal digits: {timestamp!r}",
                code=ErrorCode.INVALID_TIMESTAMP,
            )
        return SigningInput(
            method=HttpMethod.parse(method),
            path_with_query=path_with_query,
            timestamp=timestamp,
            access_key=self._credentials.access_key,
        )

    def sign(
        self,
        method: str | HttpMethod,
        path_with_query: str,
        timestamp: str | None = None,
    ) -> SignedHeaders:
        """
        Sign a request target.

        Args:
            method: HTTP method
            path_with_query: Exact request target as sent on the wire
            timestamp: Epoch milliseconds; read from the clock when omitted

        Returns:
            Headers carrying the timestamp, access key and signature
        """
        data = self.signing_input(method, path_with_query, timestamp)
        signature = sign(
            data.method.value,
            data.path_with_query,
            data.timestamp,
            data.access_key,
            self._credentials.secret_key,
        )
        return SignedHeaders(
            timestamp=data.timestamp,
            access_key=data.access_key,
            signature=signature,
        )
