"""
marketplace/api/payments.py — Seller payment onboarding endpoints (Stripe Connect).

    POST /payments/onboarding — onboarding link, account created on first call
    GET  /payments/account    — account status or ``{"account": null}``
"""

from fastapi import APIRouter, Depends

from marketplace.dependencies import get_onboarding_service, get_verified_identity
from marketplace.models.payments import OnboardingLink
from marketplace.models.user import VerifiedIdentity
from marketplace.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/onboarding",
    response_model=OnboardingLink,
    summary="Start or continue Stripe Connect onboarding",
)
async def start_onboarding(
    identity: VerifiedIdentity = Depends(get_verified_identity),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Redirect the seller to the returned ``accountLinkUrl``."""
    return await service.start_onboarding(identity)


@router.get(
    "/account",
    summary="Stripe Connect account status",
)
async def account_status(
    identity: VerifiedIdentity = Depends(get_verified_identity),
    service: OnboardingService = Depends(get_onboarding_service),
):
    status = await service.get_account_status(identity)
    if status is None:
        return {"account": None}
    return status.model_dump()
