"""
marketplace.models — Data models of the marketplace domain.

Re-exports the main classes:
    from marketplace.models import UserRead, VerifiedIdentity, AccountStatus
"""

from marketplace.models.enums import OnboardingState  # noqa: F401
from marketplace.models.user import UserRead, VerifiedIdentity  # noqa: F401
from marketplace.models.payments import (  # noqa: F401
    AccountStatus,
    OnboardingLink,
    PaymentAccount,
    onboarding_state,
)
