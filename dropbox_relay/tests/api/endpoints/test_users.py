from unittest.mock import AsyncMock, Mock

import pytest

from dropbox_relay.api.endpoints.users import get_current_account
from dropbox_relay.exceptions import APIError
from dropbox_relay.models.auth import AccessToken


@pytest.mark.asyncio
async def test_get_current_account_parses_account(mock_http: Mock, token: AccessToken) -> None:
    mock_http.rpc = AsyncMock(
        return_value={
            "account_id": "dbid:AAH4f99",
            "name": {"display_name": "Studio Uploads", "given_name": "Studio"},
            "email": "studio@example.com",
        }
    )

    account = await get_current_account(mock_http, token)

    mock_http.rpc.assert_called_once_with(
        "https://api.dropboxapi.com/2/users/get_current_account", token=token
    )
    assert account.account_id == "dbid:AAH4f99"
    assert account.display_name == "Studio Uploads"
    assert account.email == "studio@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [None, ["dbid:AAH4f99"], "Studio Uploads"])
async def test_get_current_account_without_account_data_raises(
    mock_http: Mock, token: AccessToken, body: object
) -> None:
    mock_http.rpc = AsyncMock(return_value=body)

    with pytest.raises(APIError, match="no account data") as exc_info:
        await get_current_account(mock_http, token)

    assert exc_info.value.endpoint == "https://api.dropboxapi.com/2/users/get_current_account"
