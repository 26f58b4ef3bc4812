"""
Async HTTP client for the Dropbox API.

Provides a clean interface for the three request shapes Dropbox uses
(form-encoded OAuth, JSON RPC, binary content upload) with uniform
error handling.
"""

import asyncio
import json as jsonlib
from typing import Any

import httpx
import structlog

from dropbox_relay.config import DropboxRelayConfig
from dropbox_relay.core.wait_group import WaitGroup
from dropbox_relay.exceptions import (
    APIError,
    InvalidTokenError,
    NetworkError,
    RateLimitError,
    ServerError,
)
from dropbox_relay.models.auth import AccessToken

logger = structlog.get_logger(__name__)

API_ARG_HEADER = "Dropbox-API-Arg"

SENSITIVE_KEYS = frozenset({"access_token", "refresh_token", "client_secret", "Authorization"})


def sanitize_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """
    Mask OAuth secrets in a form or response body before it is logged.

    Args:
        data: Form fields or decoded JSON.

    Returns:
        Copy with secret values replaced by "***", at any nesting depth.
    """
    return {key: "***" if key in SENSITIVE_KEYS else _mask(value) for key, value in data.items()}


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return sanitize_for_log(value)
    if isinstance(value, list):
        return [_mask(item) for item in value]
    return value


def encode_api_arg(arg: dict[str, Any]) -> str:
    """
    Serialize a Dropbox-API-Arg header value.

    Non-ASCII characters are escaped so file names with accents survive
    the header encoding.
    """
    return jsonlib.dumps(arg, ensure_ascii=True, separators=(",", ":"))


class AsyncHttpClient:
    """Async HTTP client for Dropbox."""

    def __init__(
        self,
        config: DropboxRelayConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            config: Relay configuration.
            transport: Optional transport for testing (mock transport).
        """
        self._config = config
        self._transport = transport

        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()
        self._wait_group = WaitGroup()

    async def __aenter__(self) -> "AsyncHttpClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self._close()

    @property
    def config(self) -> DropboxRelayConfig:
        return self._config

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(
                        self._config.timeout, connect=self._config.connect_timeout
                    ),
                    transport=self._transport,
                    headers={"User-Agent": self._config.user_agent},
                )
            self._wait_group.add()
        return self._client

    async def _close(self) -> None:
        """Close the HTTP client if no other context managers hold a reference."""
        async with self._client_lock:
            if self._client is None:
                logger.debug("Client not open.")
                return
            self._wait_group.done()
            if self._wait_group != 0:
                logger.debug("Skipping close, client still in use", count=self._wait_group.count)
                return
            await self._client.aclose()
            self._client = None
            self._wait_group = WaitGroup()

    async def post_form(self, url: str, data: dict[str, str]) -> dict[str, Any]:
        """
        POST a form-encoded body without authorization (OAuth token exchange).

        Args:
            url: Absolute endpoint URL.
            data: Form fields.

        Returns:
            Response JSON data.

        Raises:
            APIError: If the endpoint returns a non-success status.
            NetworkError: If the request fails at the transport level.
        """
        logger.debug("POST form", url=url, data=sanitize_for_log(data))
        response = await self._send("POST", url, data=data)
        return self._parse_json(response, url)

    async def rpc(
        self,
        url: str,
        *,
        token: AccessToken,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Call a JSON RPC endpoint.

        Endpoints without arguments are called with an empty body and no
        Content-Type, as Dropbox requires.

        Args:
            url: Absolute endpoint URL.
            token: Access token used for authorization.
            json: JSON arguments, if any.

        Returns:
            Response JSON data.

        Raises:
            APIError: If the endpoint returns a non-success status.
            NetworkError: If the request fails at the transport level.
        """
        headers = {"Authorization": token.authorization}
        content = None
        if json is not None:
            headers["Content-Type"] = "application/json"
            content = jsonlib.dumps(json).encode("utf-8")
        response = await self._send("POST", url, headers=headers, content=content)
        return self._parse_json(response, url)

    async def content_upload(
        self,
        url: str,
        *,
        token: AccessToken,
        arg: dict[str, Any] | None = None,
        content: bytes = b"",
    ) -> dict[str, Any] | None:
        """
        Call a content-upload endpoint with a binary body.

        Args:
            url: Absolute endpoint URL.
            token: Access token used for authorization.
            arg: Arguments sent in the Dropbox-API-Arg header.
            content: Binary request body.

        Returns:
            Response JSON data, or None when the endpoint returns ``null``.

        Raises:
            APIError: If the endpoint returns a non-success status.
            NetworkError: If the request fails at the transport level.
        """
        headers = {
            "Authorization": token.authorization,
            "Content-Type": "application/octet-stream",
        }
        if arg is not None:
            headers[API_ARG_HEADER] = encode_api_arg(arg)
        response = await self._send("POST", url, headers=headers, content=content)
        return self._parse_json(response, url)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is None:
            msg = "HTTP client not initialized. Use 'async with' first."
            raise RuntimeError(msg)

        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            msg = f"Request timed out: {url}"
            raise NetworkError(msg, endpoint=url) from e
        except httpx.TransportError as e:
            msg = f"Request failed: {type(e).__name__}"
            raise NetworkError(msg, endpoint=url) from e

        if not response.is_success:
            self._raise_api_error(response, url)
        return response

    @staticmethod
    def _parse_json(response: httpx.Response, endpoint: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                "Invalid JSON response from API",
                code=response.status_code,
                endpoint=endpoint,
            ) from e

    @staticmethod
    def _raise_api_error(response: httpx.Response, endpoint: str) -> None:
        code = response.status_code
        error_summary = None
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            error_summary = data.get("error_summary") or data.get("error_description")
            if error_summary is None and isinstance(data.get("error"), str):
                error_summary = data["error"]
        if error_summary is None:
            error_summary = response.text.strip() or response.reason_phrase

        if code == httpx.codes.UNAUTHORIZED:
            raise InvalidTokenError(
                f"Access token rejected: {error_summary}",
                endpoint=endpoint,
                error_summary=error_summary,
            )
        if code == httpx.codes.TOO_MANY_REQUESTS:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"Rate limit exceeded: {error_summary}",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                endpoint=endpoint,
            )
        if code >= httpx.codes.INTERNAL_SERVER_ERROR:
            raise ServerError(f"Server error: {error_summary}", code=code, endpoint=endpoint)

        msg = f"{error_summary} (status={code})"
        raise APIError(msg, code=code, endpoint=endpoint, error_summary=error_summary)
