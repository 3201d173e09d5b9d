"""
═══════════════════════════════════════════════════════════════════════════════
Marketplace — FastAPI Dependencies (Dependency Injection)
═══════════════════════════════════════════════════════════════════════════════

Collaborators (users repository, token verifier, Stripe gateway, event
publisher) are built once in ``marketplace.main:lifespan`` and kept on
``app.state``; the functions below hand them to the routes.

``get_verified_identity`` is the authorization gate of every protected route.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Header, Request

from marketplace.adapters.firebase_auth import FirebaseTokenVerifier
from marketplace.adapters.stripe_gateway import StripeGateway
from marketplace.config import MarketplaceSettings
from marketplace.events import EventPublisher
from marketplace.exceptions import AuthenticationError
from marketplace.models.user import VerifiedIdentity
from marketplace.services.onboarding_service import OnboardingService

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> MarketplaceSettings:
    return request.app.state.settings


def get_user_repo(request: Request):
    return request.app.state.user_repo


def get_token_verifier(request: Request) -> FirebaseTokenVerifier:
    return request.app.state.token_verifier


def get_payment_gateway(request: Request) -> StripeGateway:
    return request.app.state.payment_gateway


def get_event_publisher(request: Request) -> EventPublisher | None:
    return getattr(request.app.state, "events", None)


async def get_verified_identity(
    authorization: str | None = Header(None),
    verifier: FirebaseTokenVerifier = Depends(get_token_verifier),
) -> VerifiedIdentity:
    """
    Extracts and verifies the Firebase ID token from ``Authorization``.

    Algorithm:
        1. The header must be present and of the form ``Bearer <token>``;
           otherwise fail without contacting the issuer.
        2. Verify the token once (no retries).
        3. Return the VerifiedIdentity (uid, email, name).

    Raises:
        AuthenticationError(401): for every failure; the client cannot tell a
            missing header from a rejected token.
    """
    # ── Step 1: header presence and format ──
    if not authorization:
        raise AuthenticationError(details={"reason": "missing Authorization header"})

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError(details={"reason": "Authorization header must be 'Bearer <token>'"})

    # ── Step 2: verification against the issuer ──
    try:
        return await verifier.verify(token)
    except AuthenticationError as exc:
        logger.info("Rejected bearer token: %s", exc.details.get("reason", exc.message))
        raise


def get_onboarding_service(
    users=Depends(get_user_repo),
    gateway: StripeGateway = Depends(get_payment_gateway),
    settings: MarketplaceSettings = Depends(get_app_settings),
    events: EventPublisher | None = Depends(get_event_publisher),
) -> OnboardingService:
    return OnboardingService(users, gateway, settings, events)
