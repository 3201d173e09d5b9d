"""
marketplace/services/onboarding_service.py — Seller payment onboarding.

Two operations for an authenticated seller:

    • start_onboarding()   — make sure a Stripe account exists, issue an onboarding link
    • get_account_status() — read the account flags, ``None`` if never onboarded

The account id is attached to the user with a conditional write (only while
unset). An account created by a request that lost that race, or whose id
could not be saved, is deleted again so no orphan is left on Stripe.
"""

from __future__ import annotations

import asyncio
import logging

import stripe

from marketplace.adapters.stripe_gateway import StripeGateway
from marketplace.config import MarketplaceSettings
from marketplace.events import EventPublisher
from marketplace.exceptions import (
    NotFoundError,
    ProvisioningError,
    RetrievalError,
    StoreError,
)
from marketplace.models.payments import AccountStatus, OnboardingLink, onboarding_state
from marketplace.models.user import VerifiedIdentity

logger = logging.getLogger(__name__)

_PLATFORM_ERRORS = (stripe.StripeError, asyncio.TimeoutError)


class OnboardingService:
    """Stripe Connect onboarding for one request; collaborators are injected."""

    def __init__(
        self,
        users,
        gateway: StripeGateway,
        settings: MarketplaceSettings,
        events: EventPublisher | None = None,
    ) -> None:
        self._users = users
        self._gateway = gateway
        self._settings = settings
        self._events = events

    # ═══════════════════════════════════════════════════════════════════════
    # INITIATE / CONTINUE ONBOARDING
    # ═══════════════════════════════════════════════════════════════════════

    async def start_onboarding(self, identity: VerifiedIdentity) -> OnboardingLink:
        """
        Returns a fresh onboarding link, creating the Stripe account on first use.

        Raises:
            ValidationError: the identity has no email.
            NotFoundError: no local user for the uid (login first).
            ProvisioningError: Stripe refused or timed out, or the new id
                could not be saved.
        """
        identity.require_email()

        user = await self._users.get_user_by_id(identity.uid)
        if not user:
            raise NotFoundError("User", identity.uid)

        account_id = user.get("payment_account_id")
        if not account_id:
            account_id = await self._provision_account(user)

        try:
            url = await self._gateway.create_onboarding_link(
                account_id,
                refresh_url=self._settings.onboarding_refresh_url,
                return_url=self._settings.onboarding_return_url,
            )
        except _PLATFORM_ERRORS as exc:
            logger.error("Stripe account link failed for %s: %r", account_id, exc)
            raise ProvisioningError(details={"account_id": account_id}) from exc

        return OnboardingLink(account_link_url=url)

    async def _provision_account(self, user: dict) -> str:
        """Creates an account and attaches it to ``user``; returns the stored id."""
        user_id = user["id"]
        try:
            created_id = await self._gateway.create_account(email=user["email"])
        except _PLATFORM_ERRORS as exc:
            logger.error("Stripe account creation failed for user %s: %r", user_id, exc)
            raise ProvisioningError(details={"user_id": user_id}) from exc

        try:
            stored_id = await self._users.assign_payment_account_id(user_id, created_id)
        except StoreError as exc:
            await self._discard_orphan(user_id, created_id)
            raise ProvisioningError(details={"user_id": user_id}) from exc

        if stored_id is None:
            # User vanished between lookup and write.
            await self._discard_orphan(user_id, created_id)
            raise NotFoundError("User", user_id)

        if stored_id != created_id:
            logger.warning(
                "Concurrent onboarding for user %s: keeping %s, discarding %s",
                user_id, stored_id, created_id,
            )
            await self._discard_orphan(user_id, created_id)
            return stored_id

        logger.info("Stripe account %s attached to user %s", created_id, user_id)
        if self._events is not None:
            await self._events.emit_account_created(user_id=user_id, account_id=created_id)
        return created_id

    async def _discard_orphan(self, user_id: str, account_id: str) -> None:
        """Deletes an account no user points to; failure is logged, not raised."""
        deleted = True
        try:
            await self._gateway.delete_account(account_id)
        except _PLATFORM_ERRORS as exc:
            deleted = False
            logger.error(
                "ORPHANED Stripe account %s (user %s) could not be deleted: %r",
                account_id, user_id, exc,
            )
        if self._events is not None:
            await self._events.emit_orphan_discarded(
                user_id=user_id, account_id=account_id, deleted=deleted,
            )

    # ═══════════════════════════════════════════════════════════════════════
    # ACCOUNT STATUS
    # ═══════════════════════════════════════════════════════════════════════

    async def get_account_status(self, identity: VerifiedIdentity) -> AccountStatus | None:
        """
        Returns the account summary, or ``None`` when the seller never onboarded.

        Stripe is not contacted when there is no stored account id.

        Raises:
            RetrievalError: Stripe refused or timed out.
        """
        user = await self._users.get_user_by_id(identity.uid)
        account_id = user.get("payment_account_id") if user else None
        if not account_id:
            logger.info("Onboarding state for %s: %s", identity.uid, onboarding_state(None).value)
            return None

        try:
            account = await self._gateway.retrieve_account(account_id)
        except _PLATFORM_ERRORS as exc:
            logger.error("Stripe account retrieval failed for %s: %r", account_id, exc)
            raise RetrievalError(details={"account_id": account_id}) from exc

        logger.info(
            "Onboarding state for %s: %s",
            identity.uid, onboarding_state(account_id, account).value,
        )
        return AccountStatus.from_account(account)
