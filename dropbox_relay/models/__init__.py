"""
Domain models for the Dropbox relay.

These are immutable (frozen) dataclasses, plus the UploadSession state machine.
"""

from dropbox_relay.models.auth import AccessToken, Account
from dropbox_relay.models.relay import (
    FORM_FIELD_ALIASES,
    ConnectionReport,
    ProducedArchive,
    RelayOutcome,
    StagedFile,
    UploadForm,
    UploadResponse,
)
from dropbox_relay.models.transfer import (
    CommitInfo,
    RemoteFile,
    SessionState,
    TransferRequest,
    UploadSession,
    WriteMode,
)

__all__ = [
    # Auth
    "AccessToken",
    "Account",
    # Transfer
    "CommitInfo",
    "RemoteFile",
    "SessionState",
    "TransferRequest",
    "UploadSession",
    "WriteMode",
    # Relay
    "FORM_FIELD_ALIASES",
    "ConnectionReport",
    "ProducedArchive",
    "RelayOutcome",
    "StagedFile",
    "UploadForm",
    "UploadResponse",
]
