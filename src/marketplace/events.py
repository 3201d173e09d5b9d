"""
marketplace/events.py — NATS Event Publisher.

Publishes marketplace domain events to NATS:
    • ``marketplace.user.registered``             — first login created a user
    • ``marketplace.payments.account_created``    — seller got a Stripe account
    • ``marketplace.payments.orphan_discarded``   — a losing/unsaved account was cleaned up

Graceful degradation: if NATS is unavailable the event is skipped with a
warning in the log; publishing never breaks the request.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import nats
from nats.aio.client import Client as NATSClient

logger = logging.getLogger(__name__)


class EventPublisher:
    """One NATS connection per process, opened and drained by the app lifespan."""

    def __init__(self, url: str, *, connect_timeout: float = 2.0) -> None:
        self._url = url
        self._connect_timeout = connect_timeout
        self._nc: NATSClient | None = None

    @property
    def is_connected(self) -> bool:
        return self._nc is not None and self._nc.is_connected

    async def connect(self) -> NATSClient | None:
        """Connects to NATS (if not connected yet)."""
        if self.is_connected:
            return self._nc
        try:
            self._nc = await nats.connect(
                self._url,
                connect_timeout=self._connect_timeout,
                max_reconnect_attempts=1,
            )
            logger.info("NATS publisher connected: %s", self._url)
            return self._nc
        except Exception as exc:
            logger.warning("NATS connect failed (events will be skipped): %s", exc)
            self._nc = None
            return None

    async def disconnect(self) -> None:
        """Drains and closes the NATS connection."""
        if self.is_connected:
            await self._nc.drain()
            logger.info("NATS publisher disconnected")
        self._nc = None

    async def publish(self, subject: str, data: dict[str, Any]) -> None:
        """
        Publishes a JSON event to NATS.

        Args:
            subject: Message subject (e.g. ``marketplace.user.registered``).
            data: Payload (serialized to JSON).
        """
        if not self.is_connected:
            logger.debug("NATS unavailable — skipping event %s", subject)
            return
        try:
            payload = json.dumps(data, default=str).encode("utf-8")
            await self._nc.publish(subject, payload)
            logger.info("NATS event published: %s", subject)
        except Exception as exc:
            logger.warning("NATS publish failed for %s: %s", subject, exc)

    # ── Marketplace domain events ─────────────────────────────────────────

    async def emit_user_registered(self, user_id: str, email: str) -> None:
        await self.publish("marketplace.user.registered", {
            "event": "user.registered",
            "user_id": user_id,
            "email": email,
        })

    async def emit_account_created(self, user_id: str, account_id: str) -> None:
        await self.publish("marketplace.payments.account_created", {
            "event": "payments.account_created",
            "user_id": user_id,
            "account_id": account_id,
        })

    async def emit_orphan_discarded(self, user_id: str, account_id: str, deleted: bool) -> None:
        await self.publish("marketplace.payments.orphan_discarded", {
            "event": "payments.orphan_discarded",
            "user_id": user_id,
            "account_id": account_id,
            "deleted": deleted,
        })
