"""
Business logic services for the Dropbox relay.
"""

from dropbox_relay.services.archive_service import ArchiveProducer, ZipArchiveProducer
from dropbox_relay.services.relay_service import RelayService
from dropbox_relay.services.token_manager import TokenManager
from dropbox_relay.services.transfer_service import TransferService

__all__ = [
    "ArchiveProducer",
    "RelayService",
    "TokenManager",
    "TransferService",
    "ZipArchiveProducer",
]
