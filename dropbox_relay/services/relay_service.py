"""
Relay orchestration.

Turns a batch of staged file parts plus form metadata into one archive in
Dropbox: validate, authorize, pack, name, transfer, clean up.
"""

import re
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

import structlog

from dropbox_relay.config import DropboxRelayConfig
from dropbox_relay.core.clock import Clock, utc_now
from dropbox_relay.core.staging import StagingScope
from dropbox_relay.exceptions import (
    ArchiveError,
    AuthError,
    InvalidInputError,
    NoInputError,
    RelayError,
    TransferError,
)
from dropbox_relay.models.relay import RelayOutcome, StagedFile, UploadForm
from dropbox_relay.models.transfer import TransferRequest
from dropbox_relay.services.archive_service import ArchiveProducer, build_manifest
from dropbox_relay.services.token_manager import TokenManager
from dropbox_relay.services.transfer_service import TransferService

logger = structlog.get_logger(__name__)

ARCHIVE_EXTENSION = ".zip"
_UNSAFE_NAME_CHARS = re.compile(r"[/\\]")


def build_archive_name(form: UploadForm, when: datetime) -> str:
    """
    Build the deterministic archive name ``YYYYMMDD_<contact>_<track>.zip``.

    The contact is ``<last name>_<first name>``; the date is taken in UTC.

    Args:
        form: Submitted metadata.
        when: Aware datetime of the request.

    Returns:
        Archive file name.
    """
    date = when.astimezone(timezone.utc).strftime("%Y%m%d")
    contact = f"{_name_part(form.last_name, 'unknown')}_{_name_part(form.first_name, 'unknown')}"
    track = _name_part(form.track_name, "project")
    return f"{date}_{contact}_{track}{ARCHIVE_EXTENSION}"


def _name_part(value: str | None, default: str) -> str:
    return _UNSAFE_NAME_CHARS.sub("-", value) if value else default


class RelayService:
    """
    Sequences one relay request.

    Steps, each aborting the rest on failure:
    1. validate the file parts (no token is requested for an invalid request)
    2. get a valid access token
    3. pack the parts and the manifest into an archive
    4. name the archive from the date and form fields
    5. transfer the archive
    6. remove every staged part and the archive, whatever happened above

    AuthError, ArchiveError and TransferError are wrapped in RelayError with
    the failing ``stage``; the original is kept as ``__cause__``.
    """

    def __init__(
        self,
        config: DropboxRelayConfig,
        token_manager: TokenManager,
        transfer_service: TransferService,
        archive_producer: ArchiveProducer,
        *,
        clock: Clock = utc_now,
    ) -> None:
        """
        Args:
            config: Relay configuration.
            token_manager: Source of access tokens.
            transfer_service: Uploads the produced archive.
            archive_producer: Packs the staged parts.
            clock: Returns the current aware UTC datetime.
        """
        self._config = config
        self._tokens = token_manager
        self._transfer = transfer_service
        self._archives = archive_producer
        self._clock = clock

    async def relay(self, files: Sequence[StagedFile], form: UploadForm) -> RelayOutcome:
        """
        Relay staged files and their metadata to Dropbox as one archive.

        Args:
            files: Staged file parts. They are deleted once this returns.
            form: Submitted metadata.

        Returns:
            RelayOutcome describing the committed archive.

        Raises:
            NoInputError: If no file part was given.
            InvalidInputError: If the parts exceed the configured limits.
            RelayError: If authorization, packing or transfer failed.
        """
        with StagingScope() as staging:
            for staged in files:
                staging.register(staged.path)

            self._validate(files)
            logger.info("Relay started", files=len(files))

            try:
                token = await self._tokens.get_valid_token()
            except AuthError as e:
                raise RelayError(f"Authorization failed: {e.message}", stage="auth") from e

            archive_name = build_archive_name(form, self._clock())
            local_path = staging.register(
                self._config.staging_dir / f"{uuid.uuid4().hex}_{archive_name}"
            )
            manifest = build_manifest(form, placeholder=self._config.missing_field_placeholder)
            try:
                archive = await self._archives.produce(
                    files, manifest, self._config.manifest_name, local_path
                )
            except ArchiveError as e:
                raise RelayError(f"Archive creation failed: {e.message}", stage="archive") from e
            staging.register(archive.path)

            request = TransferRequest(
                source_path=archive.path,
                destination_name=archive_name,
                size_bytes=archive.size,
            )
            try:
                remote = await self._transfer.upload(request, token)
            except TransferError as e:
                raise RelayError(f"Transfer failed: {e.message}", stage="transfer") from e

        outcome = RelayOutcome(
            archive_name=archive_name,
            destination_path=self._transfer.destination_path(archive_name),
            file_count=len(files),
            total_bytes=sum(f.size for f in files),
            archive_size=archive.size,
            remote_file=remote,
        )
        logger.info(
            "Relay succeeded",
            archive_name=archive_name,
            remote_path=remote.path_display,
            files=outcome.file_count,
        )
        return outcome

    def _validate(self, files: Sequence[StagedFile]) -> None:
        if len(files) == 0:
            raise NoInputError()
        if len(files) > self._config.max_files:
            msg = f"Too many files: at most {self._config.max_files} allowed"
            raise InvalidInputError(msg, count=len(files))
        for staged in files:
            if staged.size > self._config.max_file_size:
                msg = f"File too large: {staged.original_name}"
                raise InvalidInputError(msg, size=staged.size, limit=self._config.max_file_size)
