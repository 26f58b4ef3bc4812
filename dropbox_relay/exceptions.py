"""
Dropbox relay exception hierarchy.

All exceptions inherit from DropboxRelayError for easy catching.
"""

from typing import Any


class DropboxRelayError(Exception):
    """Base exception for all dropbox_relay errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class AuthError(DropboxRelayError):
    """OAuth token refresh failed."""


class APIError(DropboxRelayError):
    """Dropbox API returned a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        code: int,
        endpoint: str | None = None,
        error_summary: str | None = None,
    ) -> None:
        super().__init__(message, code=code, endpoint=endpoint)
        self.code = code
        self.endpoint = endpoint
        self.error_summary = error_summary


class InvalidTokenError(APIError):
    """Access token was rejected (expired, revoked or missing scope)."""

    def __init__(
        self, message: str, *, endpoint: str | None = None, error_summary: str | None = None
    ) -> None:
        super().__init__(message, code=401, endpoint=endpoint, error_summary=error_summary)


class RateLimitError(APIError):
    """Rate limited by API."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message, code=429, endpoint=endpoint)
        self.retry_after = retry_after


class ServerError(APIError):
    """Server-side error (5xx)."""

    def __init__(self, message: str, *, code: int = 500, endpoint: str | None = None) -> None:
        super().__init__(message, code=code, endpoint=endpoint)


class NetworkError(DropboxRelayError):
    """Network-level error (connection failed, timeout)."""


class TransferError(DropboxRelayError):
    """A call in the upload sequence failed; the whole transfer is aborted."""


class SessionStateError(TransferError):
    """Upload session was driven through an illegal transition or lost offset sync."""


class ArchiveError(DropboxRelayError):
    """Failed to produce the archive from the staged inputs."""


class RelayError(DropboxRelayError):
    """A relay request failed at one of its stages."""

    def __init__(self, message: str, *, stage: str | None = None, **context: Any) -> None:
        super().__init__(message, stage=stage, **context)
        self.stage = stage


class NoInputError(RelayError):
    """Relay request carried no file parts."""

    def __init__(self, message: str = "No files uploaded") -> None:
        super().__init__(message, stage="validate")


class InvalidInputError(RelayError):
    """Relay request exceeded the configured file count or size limits."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, stage="validate", **context)
