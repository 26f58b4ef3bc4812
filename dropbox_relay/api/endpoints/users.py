"""User account endpoints."""

from dropbox_relay.api.http_client import AsyncHttpClient
from dropbox_relay.exceptions import APIError
from dropbox_relay.models.auth import AccessToken, Account


async def get_current_account(http: AsyncHttpClient, token: AccessToken) -> Account:
    """Get the account the access token belongs to."""
    url = f"{http.config.api_url}/2/users/get_current_account"
    response = await http.rpc(url, token=token)
    if not isinstance(response, dict):
        msg = "Account response carried no account data"
        raise APIError(msg, code=200, endpoint=url)
    name = response.get("name") or {}

    return Account(
        account_id=response.get("account_id", ""),
        display_name=name.get("display_name", ""),
        email=response.get("email", ""),
    )
