"""File upload endpoints (single upload and upload sessions)."""

from datetime import datetime
from typing import Any

import structlog

from dropbox_relay.api.http_client import AsyncHttpClient
from dropbox_relay.exceptions import APIError
from dropbox_relay.models.auth import AccessToken
from dropbox_relay.models.transfer import CommitInfo, RemoteFile

logger = structlog.get_logger(__name__)


async def upload(
    http: AsyncHttpClient, token: AccessToken, commit: CommitInfo, content: bytes
) -> RemoteFile:
    """
    Upload a whole file in one call.

    Args:
        http: Configured async HTTP client.
        token: Access token.
        commit: Destination path and collision policy.
        content: Full file content.

    Returns:
        Metadata of the committed file.
    """
    url = _content_url(http, "upload")
    response = await http.content_upload(url, token=token, arg=commit.to_arg(), content=content)
    return _parse_file_metadata(response, url)


async def start_upload_session(http: AsyncHttpClient, token: AccessToken, content: bytes) -> str:
    """
    Open an upload session carrying the first chunk.

    Returns:
        The session ID to use for subsequent appends and the finish call.
    """
    url = _content_url(http, "upload_session/start")
    response = await http.content_upload(url, token=token, arg={"close": False}, content=content)
    session_id = (response or {}).get("session_id")
    if not session_id:
        msg = "Upload session start returned no session_id"
        raise APIError(msg, code=200, endpoint=url)
    return session_id


async def append_upload_session(
    http: AsyncHttpClient,
    token: AccessToken,
    cursor: dict[str, Any],
    content: bytes,
) -> None:
    """
    Append a chunk to an open session.

    Args:
        http: Configured async HTTP client.
        token: Access token.
        cursor: ``{"session_id", "offset"}`` where offset is the bytes already acknowledged.
        content: Chunk bytes.
    """
    await http.content_upload(
        _content_url(http, "upload_session/append_v2"),
        token=token,
        arg={"cursor": cursor},
        content=content,
    )


async def finish_upload_session(
    http: AsyncHttpClient,
    token: AccessToken,
    cursor: dict[str, Any],
    commit: CommitInfo,
    content: bytes = b"",
) -> RemoteFile:
    """
    Commit an upload session, materializing the file.

    Returns:
        Metadata of the committed file.
    """
    url = _content_url(http, "upload_session/finish")
    response = await http.content_upload(
        url,
        token=token,
        arg={"cursor": cursor, "commit": commit.to_arg()},
        content=content,
    )
    return _parse_file_metadata(response, url)


def _content_url(http: AsyncHttpClient, route: str) -> str:
    return f"{http.config.content_url}/2/files/{route}"


def _parse_file_metadata(data: dict[str, Any] | None, endpoint: str) -> RemoteFile:
    if not data or "name" not in data:
        msg = "Upload response carried no file metadata"
        raise APIError(msg, code=200, endpoint=endpoint)

    return RemoteFile(
        file_id=data.get("id", ""),
        name=data["name"],
        path_display=data.get("path_display", ""),
        size=data.get("size", 0),
        content_hash=data.get("content_hash"),
        rev=data.get("rev"),
        server_modified=_parse_timestamp(data.get("server_modified")),
    )


def _parse_timestamp(value: Any) -> datetime | None:
    """
    Parse Dropbox ISO-8601 timestamps (``2024-01-31T12:00:00Z``).

    Unreadable values are logged and dropped; the file is committed either way.
    """
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring unparseable server_modified", value=str(value))
        return None
