"""
marketplace/db/repositories/user_repo.py — Users repository (PostgreSQL).

Rows are returned as plain dicts: id, email, name, payment_account_id,
created_at, updated_at. ``MemoryUserRepository`` in ``marketplace.memory_store``
implements the same methods for local development.
"""

from __future__ import annotations

import asyncpg

from marketplace.database import check_connection, get_connection
from marketplace.exceptions import StoreError


class UserRepository:
    """Users table access over an asyncpg pool."""

    backend = "postgres"

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get_user_by_id(self, user_id: str) -> dict | None:
        """Find a user by Firebase uid."""
        async with get_connection(self._pool) as conn:
            row = await conn.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
            return dict(row) if row else None

    async def get_user_by_email(self, email: str) -> dict | None:
        """Find a user by email."""
        async with get_connection(self._pool) as conn:
            row = await conn.fetchrow("SELECT * FROM users WHERE email = $1", email)
            return dict(row) if row else None

    async def create_user(self, user_id: str, email: str, name: str) -> tuple[dict, bool]:
        """
        Insert a user, or return the row already holding this uid or email.

        Returns ``(row, created)``. Two concurrent first logins for the same
        account both receive the same row; only one of them sees ``created``.
        """
        async with get_connection(self._pool) as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO users (id, email, name)
                VALUES ($1, $2, $3)
                ON CONFLICT DO NOTHING
                RETURNING *
                """,
                user_id, email, name,
            )
            if row:
                return dict(row), True
            row = await conn.fetchrow(
                "SELECT * FROM users WHERE id = $1 OR email = $2 ORDER BY id = $1 DESC LIMIT 1",
                user_id, email,
            )
            if row is None:
                # Conflicting row was deleted between the two statements.
                raise StoreError(details={"cause": "conflicting user row disappeared", "user_id": user_id})
            return dict(row), False

    async def assign_payment_account_id(self, user_id: str, account_id: str) -> str | None:
        """
        Set ``payment_account_id`` only if it is still NULL.

        Returns the id stored after the call: ``account_id`` when this write
        won, the previously stored id when another request got there first,
        ``None`` when the user does not exist.
        """
        async with get_connection(self._pool) as conn:
            stored = await conn.fetchval(
                """
                UPDATE users
                SET payment_account_id = $2, updated_at = NOW()
                WHERE id = $1 AND payment_account_id IS NULL
                RETURNING payment_account_id
                """,
                user_id, account_id,
            )
            if stored is not None:
                return stored
            # Separate statement: sees the competing write once it committed.
            return await conn.fetchval(
                "SELECT payment_account_id FROM users WHERE id = $1", user_id
            )

    async def ping(self) -> bool:
        return await check_connection(self._pool)
