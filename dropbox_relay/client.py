"""
Dropbox relay client facade.

This is the main entry point for users of the library. It wires the HTTP
client, token manager, transfer engine and relay orchestrator together and
exposes the inbound upload operation.
"""

import asyncio
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Self

import httpx
import structlog

from dropbox_relay.api.endpoints.users import get_current_account
from dropbox_relay.api.http_client import AsyncHttpClient
from dropbox_relay.config import DropboxRelayConfig
from dropbox_relay.core.clock import Clock, utc_now
from dropbox_relay.core.token_store import TokenStore
from dropbox_relay.exceptions import (
    APIError,
    AuthError,
    DropboxRelayError,
    InvalidInputError,
    NetworkError,
    NoInputError,
)
from dropbox_relay.models.auth import AccessToken
from dropbox_relay.models.relay import (
    ConnectionReport,
    RelayOutcome,
    StagedFile,
    UploadForm,
    UploadResponse,
)
from dropbox_relay.models.transfer import RemoteFile, TransferRequest
from dropbox_relay.services.archive_service import ArchiveProducer, ZipArchiveProducer
from dropbox_relay.services.relay_service import RelayService
from dropbox_relay.services.token_manager import TokenManager
from dropbox_relay.services.transfer_service import TransferService

logger = structlog.get_logger(__name__)


class DropboxRelayClient:
    """
    Async client relaying uploaded files to Dropbox.

    Example:
        ```python
        config = DropboxRelayConfig.from_env(upload_path="/submissions")

        async with DropboxRelayClient(config) as client:
            response = await client.handle_upload(
                [StagedFile.from_path("/tmp/uploads/kick.wav", "kick.wav")],
                {"last_name": "Doe", "first_name": "Jane", "track_name": "Intro"},
            )
            print(response.status_code, response.payload)
        ```

    Args:
        config: Relay configuration. Uses defaults if not provided.
        transport: Optional httpx transport for testing (mock transport).
        archive_producer: Archive builder. Defaults to a zip producer.
        token_store: Token store shared with other clients, if any.
        clock: Returns the current aware UTC datetime.
    """

    def __init__(
        self,
        config: DropboxRelayConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        archive_producer: ArchiveProducer | None = None,
        token_store: TokenStore | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config or DropboxRelayConfig()
        self._transport = transport
        self._archive_producer = archive_producer
        self._token_store = token_store or TokenStore()
        self._clock = clock

        self._http: AsyncHttpClient | None = None
        self._token_manager: TokenManager | None = None
        self._transfer_service: TransferService | None = None
        self._relay_service: RelayService | None = None

        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        """Enter async context."""
        await self._ensure_initialized()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        """Exit async context."""
        await self.close()

    @property
    def config(self) -> DropboxRelayConfig:
        return self._config

    async def _ensure_initialized(self) -> None:
        """Ensure all components are initialized."""
        async with self._init_lock:
            if self._initialized:
                return

            self._http = AsyncHttpClient(self._config, transport=self._transport)
            await self._http.__aenter__()

            self._token_manager = TokenManager(
                self._http, store=self._token_store, clock=self._clock
            )
            self._transfer_service = TransferService(self._http)
            self._relay_service = RelayService(
                self._config,
                self._token_manager,
                self._transfer_service,
                self._archive_producer or ZipArchiveProducer(self._config.compression_level),
                clock=self._clock,
            )

            self._initialized = True
            logger.debug("Client initialized")

    async def close(self) -> None:
        """Close the client and release resources."""
        async with self._init_lock:
            if self._http:
                await self._http.__aexit__(None, None, None)
                self._http = None

            self._token_manager = None
            self._transfer_service = None
            self._relay_service = None
            self._initialized = False
            logger.debug("Client closed")

    async def get_access_token(self) -> AccessToken:
        """
        Return a valid access token, refreshing it if needed.

        Raises:
            AuthError: If the refresh fails.
        """
        await self._ensure_initialized()
        if self._token_manager is None:
            raise RuntimeError("Client not initialized")
        return await self._token_manager.get_valid_token()

    async def relay(self, files: Sequence[StagedFile], form: UploadForm) -> RelayOutcome:
        """
        Pack staged files and metadata into one archive and upload it.

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
        await self._ensure_initialized()
        if self._relay_service is None:
            raise RuntimeError("Client not initialized")
        return await self._relay_service.relay(files, form)

    async def handle_upload(
        self, files: Sequence[StagedFile], fields: Mapping[str, Any]
    ) -> UploadResponse:
        """
        Inbound upload operation.

        Never raises: every failure becomes a ``{"success": False, "message"}``
        payload, with status 400 for rejected input and 500 otherwise. Staged
        files are removed in every case.

        Args:
            files: Staged file parts.
            fields: Submitted text fields (canonical names or ``fieldN`` aliases).

        Returns:
            UploadResponse with status code and JSON-like payload.
        """
        logger.info("Upload request received", files=len(files))
        try:
            outcome = await self.relay(files, UploadForm.from_mapping(fields))
        except (NoInputError, InvalidInputError) as e:
            logger.warning("Upload rejected", reason=e.message)
            return UploadResponse.failure(e.message, status_code=400)
        except DropboxRelayError as e:
            logger.error("Upload failed", error=str(e), stage=e.context.get("stage"))
            return UploadResponse.failure(e.message)
        except Exception as e:
            logger.exception("Upload failed unexpectedly", error_type=type(e).__name__)
            return UploadResponse.failure(f"Unexpected error: {type(e).__name__}")

        logger.info(
            "Upload successful",
            archive_name=outcome.archive_name,
            files=outcome.file_count,
        )
        return UploadResponse.from_outcome(outcome)

    async def upload_file(
        self, path: Path | str, destination_name: str | None = None
    ) -> RemoteFile:
        """
        Upload an existing local file into the configured folder as-is.

        The local file is not deleted.

        Args:
            path: Local file path.
            destination_name: Remote file name. Defaults to the local name.

        Returns:
            Metadata of the committed file.

        Raises:
            AuthError: If no valid token can be obtained.
            TransferError: If the upload fails.
        """
        await self._ensure_initialized()
        if self._transfer_service is None:
            raise RuntimeError("Client not initialized")
        token = await self.get_access_token()
        request = TransferRequest.for_file(Path(path), destination_name)
        return await self._transfer_service.upload(request, token)

    async def check_connection(self) -> ConnectionReport:
        """
        Check that the configured credentials reach a Dropbox account.

        Returns:
            ConnectionReport naming the account, or describing the failure.
        """
        await self._ensure_initialized()
        if self._http is None:
            raise RuntimeError("Client not initialized")
        try:
            token = await self.get_access_token()
            account = await get_current_account(self._http, token)
        except AuthError as e:
            return ConnectionReport(success=False, message=f"Connection error: {e.message}")
        except (APIError, NetworkError) as e:
            summary = getattr(e, "error_summary", None) or e.message
            return ConnectionReport(success=False, message=f"Error: {summary}")

        logger.info("Dropbox connection checked", account_id=account.account_id)
        return ConnectionReport(
            success=True,
            message=f"Connected as: {account.display_name}\nEmail: {account.email}",
        )
