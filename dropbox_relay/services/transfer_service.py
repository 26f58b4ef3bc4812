"""
Chunked transfer engine.

Writes a local file into the configured Dropbox folder, either in a single
call or through an upload session when the file exceeds the chunk size.
"""

import asyncio
from typing import BinaryIO

import structlog

from dropbox_relay.api.endpoints.files import (
    append_upload_session,
    finish_upload_session,
    start_upload_session,
    upload,
)
from dropbox_relay.api.http_client import AsyncHttpClient
from dropbox_relay.config import MAX_REQUEST_BODY
from dropbox_relay.exceptions import APIError, NetworkError, SessionStateError, TransferError
from dropbox_relay.models.auth import AccessToken
from dropbox_relay.models.transfer import CommitInfo, RemoteFile, TransferRequest, UploadSession

logger = structlog.get_logger(__name__)

_MIB = 1024 * 1024


class TransferService:
    """
    Uploads local files to Dropbox.

    Files up to ``chunk_size`` bytes go up in one ``files/upload`` call.
    Larger files are streamed through an upload session: the first chunk
    opens it, every following chunk is appended, and an empty finish call
    commits it.

    Every call is atomic-or-failed. The first failing call aborts the
    transfer with TransferError; nothing is retried. A session abandoned
    after start is left on the Dropbox side until it expires.
    """

    def __init__(self, http: AsyncHttpClient, *, chunk_size: int | None = None) -> None:
        """
        Args:
            http: Async HTTP client.
            chunk_size: Override for the configured chunk size, within the same bounds.

        Raises:
            ValueError: If the chunk size is not positive or exceeds the request body limit.
        """
        if chunk_size is None:
            chunk_size = http.config.chunk_size
        if not 0 < chunk_size <= MAX_REQUEST_BODY:
            msg = f"chunk_size must be between 1 and {MAX_REQUEST_BODY} bytes"
            raise ValueError(msg)
        self._http = http
        self._chunk_size = chunk_size

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def destination_path(self, name: str) -> str:
        """Full Dropbox path for a file name inside the upload folder."""
        folder = self._http.config.upload_path.rstrip("/")
        return f"{folder}/{name}"

    async def upload(self, request: TransferRequest, token: AccessToken) -> RemoteFile:
        """
        Upload a local file.

        Args:
            request: Source file, destination name and size.
            token: Access token used for every call of the sequence.

        Returns:
            Metadata of the committed file.

        Raises:
            TransferError: If any call in the sequence fails.
        """
        commit = CommitInfo(path=self.destination_path(request.destination_name))
        single_shot = request.size_bytes <= self._chunk_size
        logger.info(
            "upload.start",
            path=commit.path,
            size_mb=round(request.size_bytes / _MIB, 2),
            strategy="single" if single_shot else "session",
        )

        if single_shot:
            remote = await self._upload_single(request, token, commit)
        else:
            remote = await self._upload_session(request, token, commit)

        logger.info("upload.complete", path=remote.path_display, size=remote.size)
        return remote

    async def _upload_single(
        self, request: TransferRequest, token: AccessToken, commit: CommitInfo
    ) -> RemoteFile:
        try:
            content = await asyncio.to_thread(request.source_path.read_bytes)
        except OSError as e:
            msg = f"Cannot read source file: {e.strerror}"
            raise TransferError(msg, path=str(request.source_path)) from e

        if len(content) != request.size_bytes:
            msg = "Source file size changed before upload"
            raise TransferError(msg, expected=request.size_bytes, actual=len(content))

        try:
            return await upload(self._http, token, commit, content)
        except (APIError, NetworkError) as e:
            msg = f"Upload failed: {e.message}"
            raise TransferError(msg, step="upload", path=commit.path) from e

    async def _upload_session(
        self, request: TransferRequest, token: AccessToken, commit: CommitInfo
    ) -> RemoteFile:
        session = UploadSession()
        step = "start"
        try:
            with request.source_path.open("rb") as source:
                index = 0
                while chunk := await asyncio.to_thread(_read_exactly, source, self._chunk_size):
                    index += 1
                    logger.info(
                        "upload.chunk",
                        index=index,
                        uploaded_mb=round(session.offset / _MIB, 2),
                    )
                    if not session.is_open:
                        session_id = await start_upload_session(self._http, token, chunk)
                        session.start(session_id, len(chunk))
                        step = "append"
                        continue
                    await append_upload_session(self._http, token, session.cursor(), chunk)
                    session.append(len(chunk))

            step = "finish"
            session.verify_offset(request.size_bytes)
            logger.info("upload.finishing", session_id=session.session_id, offset=session.offset)
            remote = await finish_upload_session(self._http, token, session.cursor(), commit)
            session.finish(request.size_bytes)
            return remote

        except SessionStateError:
            self._abandon(session, step)
            raise
        except (APIError, NetworkError) as e:
            self._abandon(session, step)
            msg = f"Upload session {step} failed: {e.message}"
            raise TransferError(
                msg, step=step, session_id=session.session_id, offset=session.offset
            ) from e
        except OSError as e:
            self._abandon(session, step)
            msg = f"Cannot read source file: {e.strerror}"
            raise TransferError(msg, step=step, path=str(request.source_path)) from e

    @staticmethod
    def _abandon(session: UploadSession, step: str) -> None:
        if session.is_open:
            logger.warning(
                "Upload session abandoned before finish, remote session left orphaned",
                session_id=session.session_id,
                offset=session.offset,
                step=step,
            )
        session.fail()


def _read_exactly(f: BinaryIO, size: int) -> bytes:
    """Read ``size`` bytes unless EOF comes first; short reads are retried."""
    parts = []
    remaining = size
    while remaining > 0:
        data = f.read(remaining)
        if not data:
            break
        parts.append(data)
        remaining -= len(data)
    return b"".join(parts)
