"""
Relay request and outcome models.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Self

from dropbox_relay.models.transfer import RemoteFile

# Field names posted by the legacy upload form, in declaration order of UploadForm.
FORM_FIELD_ALIASES: dict[str, str] = {
    "field1": "last_name",
    "field2": "first_name",
    "field3": "email",
    "field4": "phone",
    "field5": "track_name",
    "field6": "artist",
    "field7": "bpm",
    "field8": "time_signature",
    "field9": "duration",
    "field10": "stems",
    "field11": "reference_stems",
    "field12": "constraints",
}


@dataclass(frozen=True, kw_only=True)
class StagedFile:
    """
    A file part already written to local disk by the front end.

    Attributes:
        path: Local staged path (deleted once the relay completes).
        original_name: Client-side file name, used as the archive entry name.
        size: Size in bytes.
    """

    path: Path
    original_name: str
    size: int

    @classmethod
    def from_path(cls, path: Path | str, original_name: str | None = None) -> Self:
        """Describe an existing file, sizing it with stat()."""
        resolved = Path(path)
        return cls(
            path=resolved,
            original_name=original_name or resolved.name,
            size=resolved.stat().st_size,
        )


@dataclass(frozen=True, kw_only=True)
class UploadForm:
    """
    Project metadata submitted alongside the files.

    Every field is optional; blanks are rendered with a placeholder.
    """

    last_name: str | None = None
    first_name: str | None = None
    email: str | None = None
    phone: str | None = None
    track_name: str | None = None
    artist: str | None = None
    bpm: str | None = None
    time_signature: str | None = None
    duration: str | None = None
    stems: str | None = None
    reference_stems: str | None = None
    constraints: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Self:
        """
        Build a form from submitted fields.

        Accepts both the canonical names and the legacy ``fieldN`` aliases;
        unknown keys are ignored and canonical names win over aliases.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, str] = {}
        for key, value in data.items():
            name = FORM_FIELD_ALIASES.get(key, key)
            if name not in known or value is None:
                continue
            if name in values and key in FORM_FIELD_ALIASES:
                continue
            values[name] = str(value).strip()
        return cls(**{k: v or None for k, v in values.items()})


@dataclass(frozen=True, kw_only=True)
class ProducedArchive:
    """Archive written to local disk, ready for transfer."""

    path: Path
    size: int


@dataclass(frozen=True, kw_only=True)
class RelayOutcome:
    """
    Result of a successful relay.

    Attributes:
        archive_name: Requested name of the archive in Dropbox.
        destination_path: Requested full Dropbox path.
        file_count: Number of file parts included.
        total_bytes: Sum of the input part sizes.
        archive_size: Size of the transferred archive.
        remote_file: Metadata returned by Dropbox for the committed file.
    """

    archive_name: str
    destination_path: str
    file_count: int
    total_bytes: int
    archive_size: int
    remote_file: RemoteFile
    success: bool = True


@dataclass(frozen=True, kw_only=True)
class UploadResponse:
    """JSON-like answer for the inbound upload operation."""

    status_code: int
    payload: dict[str, Any]

    @property
    def success(self) -> bool:
        return bool(self.payload.get("success"))

    @classmethod
    def from_outcome(cls, outcome: RelayOutcome) -> Self:
        return cls(
            status_code=200,
            payload={
                "success": True,
                "message": "Upload successful",
                "archiveName": outcome.archive_name,
                "filesCount": outcome.file_count,
                "totalSize": outcome.total_bytes,
            },
        )

    @classmethod
    def failure(cls, message: str, *, status_code: int = 500) -> Self:
        return cls(status_code=status_code, payload={"success": False, "message": message})


@dataclass(frozen=True, kw_only=True)
class ConnectionReport:
    """Outcome of a Dropbox connectivity check."""

    success: bool
    message: str
