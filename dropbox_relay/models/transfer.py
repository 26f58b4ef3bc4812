"""
Transfer-related domain models.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from dropbox_relay.exceptions import SessionStateError


class WriteMode(StrEnum):
    """Dropbox write modes used when committing an upload."""

    ADD = "add"


class SessionState(StrEnum):
    """Lifecycle of a chunked upload session."""

    NOT_STARTED = "not_started"
    OPEN = "open"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass(frozen=True, kw_only=True)
class TransferRequest:
    """
    One local file to be written to the remote folder.

    Attributes:
        source_path: Local file to read.
        destination_name: File name inside the configured upload folder.
        size_bytes: Size of the source at request time.
    """

    source_path: Path
    destination_name: str
    size_bytes: int

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            msg = "size_bytes must be non-negative"
            raise ValueError(msg)
        if not self.destination_name or "/" in self.destination_name:
            msg = f"Invalid destination name: {self.destination_name!r}"
            raise ValueError(msg)

    @classmethod
    def for_file(cls, path: Path, destination_name: str | None = None) -> "TransferRequest":
        """Build a request from an existing local file, sizing it with stat()."""
        return cls(
            source_path=path,
            destination_name=destination_name or path.name,
            size_bytes=path.stat().st_size,
        )


@dataclass(frozen=True, kw_only=True)
class CommitInfo:
    """
    Collision policy sent with a single upload or a session finish.

    The defaults never overwrite an existing file: on conflict Dropbox renames
    the new one.
    """

    path: str
    mode: WriteMode = WriteMode.ADD
    autorename: bool = True
    mute: bool = False

    def to_arg(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "mode": str(self.mode),
            "autorename": self.autorename,
            "mute": self.mute,
        }


@dataclass(frozen=True, kw_only=True)
class RemoteFile:
    """
    Metadata of a file committed to Dropbox.

    ``name`` and ``path_display`` may differ from the requested path when
    autorename kicked in.
    """

    file_id: str
    name: str
    path_display: str
    size: int
    content_hash: str | None = None
    rev: str | None = None
    server_modified: datetime | None = None


class UploadSession:
    """
    State machine for a chunked upload session.

    ``offset`` is the number of bytes Dropbox has acknowledged so far. It is
    advanced only after a call succeeds, so it is always the offset the next
    append or finish must carry.

    Transitions:
        NOT_STARTED --start--> OPEN --append--> OPEN --finish--> FINISHED
        any non-terminal --fail--> FAILED
    """

    def __init__(self) -> None:
        self._state = SessionState.NOT_STARTED
        self._session_id: str | None = None
        self._offset = 0
        self._appends = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def append_count(self) -> int:
        return self._appends

    @property
    def is_open(self) -> bool:
        return self._state == SessionState.OPEN

    def cursor(self) -> dict[str, Any]:
        """Cursor argument for the next append or finish call."""
        self._require(SessionState.OPEN, "build cursor")
        return {"session_id": self._session_id, "offset": self._offset}

    def start(self, session_id: str, acknowledged: int) -> None:
        """Record a successful start call that carried ``acknowledged`` bytes."""
        self._require(SessionState.NOT_STARTED, "start")
        if not session_id:
            msg = "Upload session start returned no session_id"
            raise SessionStateError(msg)
        self._check_length(acknowledged)
        self._session_id = session_id
        self._offset = acknowledged
        self._state = SessionState.OPEN

    def append(self, acknowledged: int) -> None:
        """Record a successful append call that carried ``acknowledged`` bytes."""
        self._require(SessionState.OPEN, "append")
        self._check_length(acknowledged)
        self._offset += acknowledged
        self._appends += 1

    def finish(self, expected_size: int) -> None:
        """
        Record a successful finish call.

        Raises:
            SessionStateError: If the acknowledged offset differs from
                ``expected_size``.
        """
        self._require(SessionState.OPEN, "finish")
        self.verify_offset(expected_size)
        self._state = SessionState.FINISHED

    def verify_offset(self, expected_size: int) -> None:
        """Fail if the acknowledged bytes differ from ``expected_size``."""
        if self._offset != expected_size:
            msg = "Upload session offset does not match source size"
            raise SessionStateError(
                msg,
                session_id=self._session_id,
                offset=self._offset,
                expected=expected_size,
            )

    def fail(self) -> None:
        """Abandon the session. The remote side keeps it until it expires."""
        if self._state in (SessionState.FINISHED, SessionState.FAILED):
            return
        self._state = SessionState.FAILED

    def _require(self, state: SessionState, action: str) -> None:
        if self._state != state:
            msg = f"Cannot {action} upload session in state {self._state}"
            raise SessionStateError(msg, session_id=self._session_id)

    @staticmethod
    def _check_length(length: int) -> None:
        if length <= 0:
            msg = "Upload session chunk must carry at least one byte"
            raise SessionStateError(msg, length=length)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(state={self._state}, "
            f"session_id={self._session_id!r}, offset={self._offset})"
        )
