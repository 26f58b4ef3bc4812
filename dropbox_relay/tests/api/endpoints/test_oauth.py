from unittest.mock import AsyncMock, Mock

import pytest

from dropbox_relay.api.endpoints.oauth import refresh_access_token


@pytest.mark.asyncio
async def test_refresh_access_token_posts_refresh_grant(mock_http: Mock) -> None:
    mock_http.post_form = AsyncMock(
        return_value={"access_token": "sl.new", "expires_in": 14400, "token_type": "bearer"}
    )

    result = await refresh_access_token(
        mock_http,
        refresh_token="refresh-credential",
        client_id="app-key",
        client_secret="app-secret",
    )

    mock_http.post_form.assert_called_once_with(
        "https://api.dropbox.com/oauth2/token",
        {
            "grant_type": "refresh_token",
            "refresh_token": "refresh-credential",
            "client_id": "app-key",
            "client_secret": "app-secret",
        },
    )
    assert result["access_token"] == "sl.new"
