"""HTTP client for signed NCP API Gateway calls."""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import Any

import aiohttp
import structlog
from yarl import URL

from ncpsign.common.clock import Clock
from ncpsign.common.errors import ErrorCode, NcpSignError
from ncpsign.common.logging import get_logger
from ncpsign.common.settings import Settings
from ncpsign.credentials import CredentialProvider, SettingsCredentialProvider
from ncpsign.request import PreparedRequest, RequestSpec, prepare_request
from ncpsign.signer import HttpMethod, Signer

logger = get_logger(__name__)


class NcpClientError(NcpSignError):
    """Error communicating with the NCP API Gateway."""

    default_code = ErrorCode.REQUEST_FAILED

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        code: str | None = None,
    ):
        super().__init__(message, code=code)
        self.status_code = status_code
        self.body = body


class NcpClient:
    """
    Async client sending signed requests to the NCP API Gateway.

    Requests go out exactly once; remote error responses are surfaced as
    NcpClientError with the untouched response body.
    """

    def __init__(
        self,
        settings: Settings,
        credentials: CredentialProvider | None = None,
        clock: Clock | None = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Application settings
            credentials: Credential provider (defaults to the settings)
            clock: Clock for request timestamps (defaults to wall clock)
        """
        self._base_url = settings.base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=settings.http_timeout)
        self._credentials = credentials or SettingsCredentialProvider(settings)
        self._clock = clock
        self._session: aiohttp.ClientSession | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "NcpClient":
        """Enter async context."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        if self._session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session exists."""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def signer(self) -> Signer:
        """Build a signer from freshly fetched credentials."""
        return Signer(self._credentials.get_credentials(), self._clock)

    def prepare(self, spec: RequestSpec) -> PreparedRequest:
        """Validate and sign a request against this client's base URL."""
        return prepare_request(spec, self.signer(), self._base_url)

    async def _request(self, prepared: PreparedRequest) -> aiohttp.ClientResponse:
        session = self._ensure_session()
        try:
            # encoded=True keeps the request target byte-identical to the signed one
            return await session.request(
                prepared.method.value,
                URL(prepared.url, encoded=True),
                headers=prepared.headers,
                data=prepared.body,
                allow_redirects=False,
            )
        except aiohttp.ClientError as e:
            raise NcpClientError(f"Request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise NcpClientError("Request timed out") from e

    async def _read_text(self, response: aiohttp.ClientResponse) -> str:
        try:
            return await response.text()
        except aiohttp.ClientError as e:
            raise NcpClientError(
                f"Reading response failed: {e}", status_code=response.status
            ) from e
        except asyncio.TimeoutError as e:
            raise NcpClientError(
                "Reading response timed out", status_code=response.status
            ) from e

    async def send(self, prepared: PreparedRequest) -> Any:
        """
        Send a prepared request and return the parsed JSON response.

        Args:
            prepared: Signed request descriptor

        Returns:
            Parsed JSON body (``{}`` for an empty body)

        Raises:
            NcpClientError: On transport failure or timeout, non-2xx status
                (redirects included) or non-JSON body
        """
        structlog.contextvars.bind_contextvars(request_id=uuid.uuid4().hex)
        try:
            logger.info(
                "Sending signed request",
                method=prepared.method.value,
                path=prepared.path_with_query,
            )
            response = await self._request(prepared)
            async with response:
                text = await self._read_text(response)
                logger.info(
                    "Received response",
                    method=prepared.method.value,
                    path=prepared.path_with_query,
                    status=response.status,
                )
                # redirects are not followed, the signature only covers this target
                if response.status >= 300:
                    raise NcpClientError(
                        f"{prepared.method.value} {prepared.path_with_query} failed "
                        f"with status {response.status}",
                        status_code=response.status,
                        body=text,
                    )
                if not text.strip():
                    return {}
                try:
                    return json.loads(text)
                except json.JSONDecodeError as e:
                    raise NcpClientError(
                        "Response is not valid JSON",
                        status_code=response.status,
                        body=text,
                        code=ErrorCode.INVALID_RESPONSE,
                    ) from e
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

    async def call(self, spec: RequestSpec) -> Any:
        """Prepare, sign and send a request."""
        return await self.send(self.prepare(spec))

    async def check_credentials(self) -> bool:
        """
        Test the configured credentials with a signed ``GET /``.

        Returns:
            True if the gateway accepted the signature, False on 401/403

        Raises:
            NcpClientError: On transport failure or any other error status
        """
        prepared = self.prepare(RequestSpec(path="/", method=HttpMethod.GET))
        try:
            await self.send(prepared)
        except NcpClientError as e:
            if e.status_code in (401, 403):
                logger.warning("Credentials rejected", status=e.status_code)
                return False
            if e.code == ErrorCode.INVALID_RESPONSE:
                return True
            raise
        return True
