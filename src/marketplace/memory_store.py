"""
═══════════════════════════════════════════════════════════════════════════════
Marketplace — In-Memory store (replacement for PostgreSQL in local development)
═══════════════════════════════════════════════════════════════════════════════

``MemoryUserRepository`` mirrors ``UserRepository`` method for method,
including the conditional payment-account write. ``marketplace.main`` falls
back to it when the database is unreachable at startup. Data is lost on restart.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_now = lambda: datetime.now(timezone.utc)  # noqa: E731


class MemoryUserRepository:
    """Users keyed by Firebase uid, held in a dict."""

    backend = "memory"

    def __init__(self) -> None:
        self._users: dict[str, dict] = {}

    async def get_user_by_id(self, user_id: str) -> dict | None:
        user = self._users.get(user_id)
        return dict(user) if user else None

    async def get_user_by_email(self, email: str) -> dict | None:
        for u in self._users.values():
            if u["email"] == email:
                return dict(u)
        return None

    async def create_user(self, user_id: str, email: str, name: str) -> tuple[dict, bool]:
        """Creates a user in memory unless the uid or email is already taken."""
        existing = await self.get_user_by_id(user_id) or await self.get_user_by_email(email)
        if existing:
            return existing, False
        now = _now()
        user = {
            "id": user_id, "email": email, "name": name,
            "payment_account_id": None, "created_at": now, "updated_at": now,
        }
        self._users[user_id] = user
        logger.info("Marketplace memory store: created user %s <%s>", user_id, email)
        return dict(user), True

    async def assign_payment_account_id(self, user_id: str, account_id: str) -> str | None:
        # No await between check and set: atomic on the event loop.
        user = self._users.get(user_id)
        if user is None:
            return None
        if user["payment_account_id"] is None:
            user["payment_account_id"] = account_id
            user["updated_at"] = _now()
        return user["payment_account_id"]

    async def ping(self) -> bool:
        return False
