"""OAuth token endpoint."""

from typing import Any

from dropbox_relay.api.http_client import AsyncHttpClient


async def refresh_access_token(
    http: AsyncHttpClient,
    *,
    refresh_token: str,
    client_id: str,
    client_secret: str,
) -> dict[str, Any]:
    """
    Exchange the long-lived refresh token for a fresh access token.

    Args:
        http: Configured async HTTP client.
        refresh_token: Long-lived refresh credential.
        client_id: Application key.
        client_secret: Application secret.

    Returns:
        Token response with access_token, expires_in and token_type.
    """
    return await http.post_form(
        http.config.token_url,
        {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": client_id,
            "client_secret": client_secret,
        },
    )
