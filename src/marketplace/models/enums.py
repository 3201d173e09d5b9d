"""
marketplace/models/enums.py — Enumerations of the marketplace domain.

    • OnboardingState — derived seller onboarding status (never stored)
"""

from enum import Enum


class OnboardingState(str, Enum):
    """Seller payment onboarding status, derived from the account id and platform flags."""
    NOT_STARTED = "not_started"
    PENDING = "pending"
    VERIFIED = "verified"
