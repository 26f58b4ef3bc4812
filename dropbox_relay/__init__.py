"""
Dropbox relay.

Bundles uploaded files and their project metadata into one zip archive and
relays it to a Dropbox folder, using upload sessions for large archives.

Example:
    ```python
    from dropbox_relay import DropboxRelayClient, DropboxRelayConfig, StagedFile

    config = DropboxRelayConfig.from_env()

    async with DropboxRelayClient(config) as client:
        report = await client.check_connection()
        print(report.message)

        response = await client.handle_upload(
            [StagedFile.from_path("uploads/1718000000_bass.wav", "bass.wav")],
            {"field1": "Doe", "field2": "Jane", "field5": "Intro"},
        )
        print(response.payload)
    ```
"""

from dropbox_relay.client import DropboxRelayClient
from dropbox_relay.config import DropboxRelayConfig
from dropbox_relay.exceptions import (
    APIError,
    ArchiveError,
    AuthError,
    DropboxRelayError,
    InvalidInputError,
    InvalidTokenError,
    NetworkError,
    NoInputError,
    RateLimitError,
    RelayError,
    ServerError,
    SessionStateError,
    TransferError,
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

__version__ = "0.1.0"

__all__ = [
    # Main client
    "DropboxRelayClient",
    "DropboxRelayConfig",
    # Models
    "AccessToken",
    "ConnectionReport",
    "RelayOutcome",
    "RemoteFile",
    "StagedFile",
    "TransferRequest",
    "UploadForm",
    "UploadResponse",
    # Exceptions
    "DropboxRelayError",
    "AuthError",
    "APIError",
    "InvalidTokenError",
    "RateLimitError",
    "ServerError",
    "NetworkError",
    "TransferError",
    "SessionStateError",
    "ArchiveError",
    "RelayError",
    "NoInputError",
    "InvalidInputError",
]
