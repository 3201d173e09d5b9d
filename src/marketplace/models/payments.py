"""
marketplace/models/payments.py — Payment platform models.

``PaymentAccount`` is the normalized view of a Stripe Connect account;
``AccountStatus`` and ``OnboardingLink`` are response schemas.
"""

from pydantic import Field

from marketplace.models.common import MarketplaceBase
from marketplace.models.enums import OnboardingState


class PaymentAccount(MarketplaceBase):
    """The three capability flags tracked for a seller account."""
    id: str
    details_submitted: bool = False
    charges_enabled: bool = False
    payouts_enabled: bool = False

    @property
    def verified(self) -> bool:
        return self.details_submitted and self.charges_enabled


class AccountStatus(MarketplaceBase):
    """Response of ``GET /payments/account`` for a seller with an account."""
    id: str
    verified: bool
    payouts_enabled: bool
    charges_enabled: bool

    @classmethod
    def from_account(cls, account: PaymentAccount) -> "AccountStatus":
        return cls(
            id=account.id,
            verified=account.verified,
            payouts_enabled=account.payouts_enabled,
            charges_enabled=account.charges_enabled,
        )


class OnboardingLink(MarketplaceBase):
    """Response of ``POST /payments/onboarding``."""
    model_config = {**MarketplaceBase.model_config, "populate_by_name": True}

    account_link_url: str = Field(..., alias="accountLinkUrl")


def onboarding_state(account_id: str | None, account: PaymentAccount | None = None) -> OnboardingState:
    """NotStarted → Pending → Verified, computed from what is known now."""
    if not account_id:
        return OnboardingState.NOT_STARTED
    if account is not None and account.verified:
        return OnboardingState.VERIFIED
    return OnboardingState.PENDING
