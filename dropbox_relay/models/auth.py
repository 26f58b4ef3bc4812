"""
Authentication-related domain models.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, kw_only=True)
class AccessToken:
    """
    Short-lived OAuth bearer token.

    Attributes:
        token: Bearer token value.
        expires_at: Aware UTC datetime after which the token is no longer valid.
    """

    token: str = field(repr=False)
    expires_at: datetime

    def is_valid_at(self, now: datetime) -> bool:
        """Check if the token is still valid at ``now``."""
        return now < self.expires_at

    @property
    def authorization(self) -> str:
        """Value for the Authorization header."""
        return f"Bearer {self.token}"


@dataclass(frozen=True, kw_only=True)
class Account:
    """
    Dropbox account owning the refresh token.

    Attributes:
        account_id: Dropbox account ID.
        display_name: Human-readable account name.
        email: Account email address.
    """

    account_id: str
    display_name: str
    email: str
