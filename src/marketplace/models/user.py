"""
marketplace/models/user.py — User and verified identity models.
"""

from datetime import datetime

from pydantic import Field

from marketplace.exceptions import ValidationError
from marketplace.models.common import MarketplaceBase


class VerifiedIdentity(MarketplaceBase):
    """
    Identity proven by a verified Firebase ID token.

    Lives for one request only. ``email`` and ``name`` are optional claims;
    callers that need an email use ``require_email()``.
    """
    uid: str = Field(..., min_length=1, max_length=128)
    email: str | None = None
    name: str | None = None

    def require_email(self) -> str:
        """Returns the email claim or raises ValidationError when it is absent."""
        if not self.email:
            raise ValidationError(
                "Verified identity has no email address",
                details={"uid": self.uid},
            )
        return self.email


class UserRead(MarketplaceBase):
    """User record as returned to the client."""
    id: str
    email: str
    name: str = ""
    payment_account_id: str | None = None
    created_at: datetime | None = None
