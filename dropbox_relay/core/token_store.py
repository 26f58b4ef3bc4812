"""Holder for the single cached OAuth access token."""

from datetime import datetime

from dropbox_relay.models.auth import AccessToken


class TokenStore:
    """
    Owns at most one AccessToken at a time.

    The token is replaced wholesale, never mutated. Pass the same store to
    several TokenManagers to share a token between them, or a fresh one to
    isolate them.
    """

    def __init__(self, token: AccessToken | None = None) -> None:
        self._token = token

    @property
    def current(self) -> AccessToken | None:
        """The cached token, possibly expired."""
        return self._token

    def get_valid(self, now: datetime) -> AccessToken | None:
        """Return the cached token if it has not expired at ``now``."""
        token = self._token
        if token is not None and token.is_valid_at(now):
            return token
        return None

    def replace(self, token: AccessToken) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None
