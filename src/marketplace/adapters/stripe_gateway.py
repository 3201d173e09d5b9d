"""
marketplace/adapters/stripe_gateway.py — Stripe Connect client.

Thin wrapper over the ``stripe`` SDK async resource methods. The API key is
passed per request (no global ``stripe.api_key``), every call is bounded by
``asyncio.wait_for`` and no call is retried.

Errors surface as ``stripe.StripeError`` or ``asyncio.TimeoutError``;
mapping to domain errors is done by the onboarding service.
"""

from __future__ import annotations

import asyncio
import logging

import stripe

from marketplace.models.payments import PaymentAccount

logger = logging.getLogger(__name__)

STRIPE_API_VERSION = "2025-06-30.basil"


class StripeGateway:
    """Stripe Connect operations used by seller onboarding."""

    def __init__(
        self,
        secret_key: str,
        *,
        account_type: str = "express",
        country: str = "US",
        timeout: float = 10.0,
    ) -> None:
        self._secret_key = secret_key
        self._account_type = account_type
        self._country = country
        self._timeout = timeout

    def _opts(self) -> dict:
        return {"api_key": self._secret_key, "stripe_version": STRIPE_API_VERSION}

    async def create_account(self, email: str) -> str:
        """Creates a Connect account for a seller and returns its id."""
        account = await asyncio.wait_for(
            stripe.Account.create_async(
                type=self._account_type,
                country=self._country,
                email=email,
                **self._opts(),
            ),
            timeout=self._timeout,
        )
        logger.info("Stripe account created: %s", account.id)
        return account.id

    async def create_onboarding_link(self, account_id: str, refresh_url: str, return_url: str) -> str:
        """Issues a one-time ``account_onboarding`` link and returns its URL."""
        link = await asyncio.wait_for(
            stripe.AccountLink.create_async(
                account=account_id,
                refresh_url=refresh_url,
                return_url=return_url,
                type="account_onboarding",
                **self._opts(),
            ),
            timeout=self._timeout,
        )
        return link.url

    async def retrieve_account(self, account_id: str) -> PaymentAccount:
        """Fetches the account and keeps the three capability flags."""
        account = await asyncio.wait_for(
            stripe.Account.retrieve_async(account_id, **self._opts()),
            timeout=self._timeout,
        )
        return PaymentAccount(
            id=account.id,
            details_submitted=bool(account.details_submitted),
            charges_enabled=bool(account.charges_enabled),
            payouts_enabled=bool(account.payouts_enabled),
        )

    async def delete_account(self, account_id: str) -> None:
        """Deletes an account that never got attached to a user."""
        await asyncio.wait_for(
            stripe.Account.delete_async(account_id, **self._opts()),
            timeout=self._timeout,
        )
        logger.info("Stripe account deleted: %s", account_id)
