"""
OAuth token management for the Dropbox relay.

Keeps one access token cached and refreshes it from the long-lived
refresh credential when it has expired.
"""

import asyncio
from datetime import timedelta

import structlog

from dropbox_relay.api.endpoints.oauth import refresh_access_token
from dropbox_relay.api.http_client import AsyncHttpClient
from dropbox_relay.core.clock import Clock, utc_now
from dropbox_relay.core.token_store import TokenStore
from dropbox_relay.exceptions import APIError, AuthError, NetworkError
from dropbox_relay.models.auth import AccessToken

logger = structlog.get_logger(__name__)


class TokenManager:
    """
    Hands out valid access tokens.

    A cached token is returned as long as it has not expired; otherwise the
    refresh credential is exchanged for a new one. The cached token lives in
    the injected TokenStore and this is the only class that writes to it.

    Validity is checked only when a token is handed out. A caller that keeps
    a token for a long transfer may outlive its expiry.

    Concurrency:
    - Refreshes are serialized by an internal lock; a coroutine waiting on the
      lock reuses the token refreshed by the one ahead of it.
    """

    def __init__(
        self,
        http_client: AsyncHttpClient,
        *,
        store: TokenStore | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """
        Args:
            http_client: HTTP client for the token endpoint.
            store: Token store to read and replace. A private one is created if omitted.
            clock: Returns the current aware UTC datetime.
        """
        self._http = http_client
        self._store = store or TokenStore()
        self._clock = clock
        self._refresh_lock = asyncio.Lock()

    @property
    def store(self) -> TokenStore:
        return self._store

    async def get_valid_token(self) -> AccessToken:
        """
        Return a token that is valid right now.

        Returns:
            Cached token if still valid, otherwise a freshly refreshed one.

        Raises:
            AuthError: If the refresh exchange fails. The cached token is left untouched.
        """
        if (token := self._store.get_valid(self._clock())) is not None:
            return token

        async with self._refresh_lock:
            if (token := self._store.get_valid(self._clock())) is not None:
                logger.debug("Token already refreshed by another coroutine")
                return token
            return await self._refresh()

    async def _refresh(self) -> AccessToken:
        config = self._http.config
        if not config.has_credentials:
            msg = "Dropbox credentials are not configured"
            raise AuthError(msg)

        issued_at = self._clock()
        try:
            response = await refresh_access_token(
                self._http,
                refresh_token=config.refresh_token,
                client_id=config.app_key,
                client_secret=config.app_secret,
            )
        except (APIError, NetworkError) as e:
            logger.error("Token refresh failed", error_type=type(e).__name__)
            msg = f"Token refresh failed: {e.message}"
            raise AuthError(msg) from e

        if not isinstance(response, dict):
            logger.error("Token refresh returned a non-object body")
            msg = "Unable to obtain access token"
            raise AuthError(msg)

        access_token = response.get("access_token")
        if not access_token:
            logger.error("Token refresh returned no access token")
            msg = "Unable to obtain access token"
            raise AuthError(msg)

        expires_in = response.get("expires_in")
        if not isinstance(expires_in, int | float) or expires_in <= 0:
            msg = "Token refresh returned an invalid lifetime"
            raise AuthError(msg, expires_in=expires_in)

        token = AccessToken(
            token=access_token,
            expires_at=issued_at + timedelta(seconds=expires_in),
        )
        self._store.replace(token)
        logger.info("Access token refreshed", expires_at=token.expires_at.isoformat())
        return token
