"""
Archive production for relay requests.

Packs the staged file parts and a generated manifest into one zip file.
"""

import asyncio
import zipfile
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from dropbox_relay.exceptions import ArchiveError
from dropbox_relay.models.relay import ProducedArchive, StagedFile, UploadForm

logger = structlog.get_logger(__name__)

# (heading, [(label, UploadForm attribute)])
MANIFEST_SECTIONS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (
        "Technical contact",
        (
            ("Last name", "last_name"),
            ("First name", "first_name"),
            ("Email", "email"),
            ("Phone", "phone"),
        ),
    ),
    (
        "Track information",
        (
            ("Track name", "track_name"),
            ("Artist", "artist"),
            ("BPM", "bpm"),
            ("Time signature", "time_signature"),
            ("Total duration", "duration"),
        ),
    ),
    (
        "Technical information",
        (
            ("Stem list", "stems"),
            ("Reference stems", "reference_stems"),
            ("Artistic constraints", "constraints"),
        ),
    ),
)


def build_manifest(form: UploadForm, *, placeholder: str = "unknown") -> str:
    """
    Render the form as the human-readable manifest embedded in the archive.

    Args:
        form: Submitted metadata.
        placeholder: Text used for fields left blank.

    Returns:
        Manifest text.
    """
    lines = ["=== PROJECT INFORMATION ===", ""]
    for heading, entries in MANIFEST_SECTIONS:
        lines.append(f"{heading}:")
        for label, attribute in entries:
            lines.append(f"- {label}: {getattr(form, attribute) or placeholder}")
        lines.append("")
    return "\n".join(lines)


@runtime_checkable
class ArchiveProducer(Protocol):
    """Builds one archive file from staged parts plus a manifest entry."""

    async def produce(
        self,
        files: Sequence[StagedFile],
        manifest: str,
        manifest_name: str,
        destination: Path,
    ) -> ProducedArchive:
        """
        Write the archive to ``destination``.

        Raises:
            ArchiveError: If the archive cannot be written.
        """
        ...


class ZipArchiveProducer:
    """ArchiveProducer writing deflate-compressed zip files."""

    def __init__(self, compression_level: int = 6) -> None:
        """
        Args:
            compression_level: Deflate level, 0 (store) to 9 (smallest).
        """
        self._compression_level = compression_level

    async def produce(
        self,
        files: Sequence[StagedFile],
        manifest: str,
        manifest_name: str,
        destination: Path,
    ) -> ProducedArchive:
        logger.info("Creating archive", name=destination.name, files=len(files))
        try:
            await asyncio.to_thread(self._write, files, manifest, manifest_name, destination)
            size = destination.stat().st_size
        except (OSError, zipfile.BadZipFile, ValueError) as e:
            msg = f"Failed to create archive: {e}"
            raise ArchiveError(msg, destination=str(destination)) from e

        logger.info("Archive created", name=destination.name, size_mb=round(size / 1024**2, 2))
        return ProducedArchive(path=destination, size=size)

    def _write(
        self,
        files: Sequence[StagedFile],
        manifest: str,
        manifest_name: str,
        destination: Path,
    ) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(
            destination,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self._compression_level,
        ) as archive:
            for staged in files:
                logger.debug("Adding archive entry", name=staged.original_name)
                archive.write(staged.path, arcname=staged.original_name)
            archive.writestr(manifest_name, manifest)
