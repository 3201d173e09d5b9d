"""
marketplace/services/auth_service.py — Login upsert.

A verified Firebase identity is mapped onto a local user record; the record
is created on the first login.
"""

from __future__ import annotations

import logging

from marketplace.events import EventPublisher
from marketplace.models.user import UserRead, VerifiedIdentity

logger = logging.getLogger(__name__)


def _row_to_read(row: dict) -> UserRead:
    """Converts a DB row (dict) → UserRead."""
    return UserRead(
        id=row["id"],
        email=row["email"],
        name=row.get("name") or "",
        payment_account_id=row.get("payment_account_id"),
        created_at=row.get("created_at"),
    )


async def login(identity: VerifiedIdentity, users, events: EventPublisher | None = None) -> UserRead:
    """Returns the user for ``identity``, creating it on first login."""
    email = identity.require_email()

    user = await users.get_user_by_email(email)
    if user:
        return _row_to_read(user)

    user, created = await users.create_user(
        user_id=identity.uid,
        email=email,
        name=identity.name or "",
    )
    if created:
        logger.info("User registered: %s <%s>", user["id"], email)
        if events is not None:
            await events.emit_user_registered(user_id=user["id"], email=email)
    return _row_to_read(user)
