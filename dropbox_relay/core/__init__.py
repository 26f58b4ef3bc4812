"""
Low-level building blocks shared by the services.
"""

from dropbox_relay.core.clock import Clock, utc_now
from dropbox_relay.core.staging import StagingScope
from dropbox_relay.core.token_store import TokenStore
from dropbox_relay.core.wait_group import WaitGroup

__all__ = ["Clock", "StagingScope", "TokenStore", "WaitGroup", "utc_now"]
