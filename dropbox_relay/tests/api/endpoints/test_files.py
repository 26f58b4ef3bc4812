from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from dropbox_relay.api.endpoints.files import (
    append_upload_session,
    finish_upload_session,
    start_upload_session,
    upload,
)
from dropbox_relay.exceptions import APIError
from dropbox_relay.models.auth import AccessToken
from dropbox_relay.models.transfer import CommitInfo

COMMIT = CommitInfo(path="/test/20261019_Doe_Jane_Intro.zip")
FILE_METADATA = {
    "id": "id:a4ayc_80_OEAAAAAAAAAXw",
    "name": "20261019_Doe_Jane_Intro.zip",
    "path_display": "/test/20261019_Doe_Jane_Intro.zip",
    "size": 250,
    "rev": "a1c10ce0dd78",
    "content_hash": "e3b0c442",
    "server_modified": "2026-10-19T09:30:00Z",
}


@pytest.mark.asyncio
async def test_upload_sends_commit_arg_and_parses_metadata(
    mock_http: Mock, token: AccessToken
) -> None:
    mock_http.content_upload = AsyncMock(return_value=FILE_METADATA)

    remote = await upload(mock_http, token, COMMIT, b"payload")

    mock_http.content_upload.assert_called_once_with(
        "https://content.dropboxapi.com/2/files/upload",
        token=token,
        arg={
            "path": "/test/20261019_Doe_Jane_Intro.zip",
            "mode": "add",
            "autorename": True,
            "mute": False,
        },
        content=b"payload",
    )
    assert remote.file_id == "id:a4ayc_80_OEAAAAAAAAAXw"
    assert remote.size == 250
    assert remote.server_modified == datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest.mark.asyncio
@pytest.mark.parametrize("server_modified", ["yesterday", "2026-13-45T99:00:00Z"])
async def test_upload_drops_unparseable_server_modified(
    mock_http: Mock, token: AccessToken, server_modified: object
) -> None:
    mock_http.content_upload = AsyncMock(
        return_value={**FILE_METADATA, "server_modified": server_modified}
    )

    remote = await upload(mock_http, token, COMMIT, b"payload")

    assert remote.server_modified is None
    assert remote.path_display == "/test/20261019_Doe_Jane_Intro.zip"


@pytest.mark.asyncio
async def test_upload_without_metadata_raises(mock_http: Mock, token: AccessToken) -> None:
    mock_http.content_upload = AsyncMock(return_value=None)

    with pytest.raises(APIError, match="no file metadata"):
        await upload(mock_http, token, COMMIT, b"payload")


@pytest.mark.asyncio
async def test_start_upload_session_returns_session_id(
    mock_http: Mock, token: AccessToken
) -> None:
    mock_http.content_upload = AsyncMock(return_value={"session_id": "AAAAAAAAAJ_"})

    session_id = await start_upload_session(mock_http, token, b"first chunk")

    assert session_id == "AAAAAAAAAJ_"
    call = mock_http.content_upload.call_args
    assert call.args == ("https://content.dropboxapi.com/2/files/upload_session/start",)
    assert call.kwargs["content"] == b"first chunk"


@pytest.mark.asyncio
async def test_start_upload_session_without_id_raises(
    mock_http: Mock, token: AccessToken
) -> None:
    mock_http.content_upload = AsyncMock(return_value={})

    with pytest.raises(APIError, match="no session_id"):
        await start_upload_session(mock_http, token, b"first chunk")


@pytest.mark.asyncio
async def test_append_upload_session_sends_cursor(mock_http: Mock, token: AccessToken) -> None:
    mock_http.content_upload = AsyncMock(return_value=None)
    cursor = {"session_id": "sid", "offset": 100}

    await append_upload_session(mock_http, token, cursor, b"second chunk")

    mock_http.content_upload.assert_called_once_with(
        "https://content.dropboxapi.com/2/files/upload_session/append_v2",
        token=token,
        arg={"cursor": {"session_id": "sid", "offset": 100}},
        content=b"second chunk",
    )


@pytest.mark.asyncio
async def test_finish_upload_session_sends_cursor_and_commit(
    mock_http: Mock, token: AccessToken
) -> None:
    mock_http.content_upload = AsyncMock(return_value=FILE_METADATA)
    cursor = {"session_id": "sid", "offset": 250}

    remote = await finish_upload_session(mock_http, token, cursor, COMMIT)

    mock_http.content_upload.assert_called_once_with(
        "https://content.dropboxapi.com/2/files/upload_session/finish",
        token=token,
        arg={"cursor": cursor, "commit": COMMIT.to_arg()},
        content=b"",
    )
    assert remote.path_display == "/test/20261019_Doe_Jane_Intro.zip"
