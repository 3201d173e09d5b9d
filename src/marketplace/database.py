"""
═══════════════════════════════════════════════════════════════════════════════
Marketplace — Database Connection Pool
═══════════════════════════════════════════════════════════════════════════════

PostgreSQL pool for the users table. The pool is created in the application
lifespan and handed to ``UserRepository``; nothing here is module-global.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import asyncpg

from marketplace.config import MarketplaceSettings
from marketplace.exceptions import StoreError

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "db" / "migrations"


async def create_pool(settings: MarketplaceSettings) -> asyncpg.Pool:
    """
    Creates the PostgreSQL pool with the bounds from MarketplaceSettings.

    ``command_timeout`` caps every statement, so a hung database cannot hang
    a request indefinitely.
    """
    pool = await asyncio.wait_for(
        asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.database_pool_min,
            max_size=settings.database_pool_max,
            command_timeout=settings.outbound_timeout_seconds,
        ),
        timeout=settings.outbound_timeout_seconds,
    )
    logger.info(
        f"Marketplace DB pool created "
        f"(min={settings.database_pool_min}, max={settings.database_pool_max})"
    )
    return pool


async def close_pool(pool: asyncpg.Pool) -> None:
    """Closes the pool."""
    await pool.close()
    logger.info("Marketplace DB pool closed")


@asynccontextmanager
async def get_connection(
    pool: asyncpg.Pool, timeout: float | None = None
) -> AsyncGenerator[asyncpg.Connection, None]:
    """
    Yields a pooled connection and turns driver failures into ``StoreError``.

    Usage::

        async with get_connection(pool) as conn:
            row = await conn.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
    """
    try:
        async with pool.acquire(timeout=timeout) as conn:
            yield conn
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as exc:
        logger.error(f"Marketplace DB error: {exc!r}")
        raise StoreError(details={"cause": repr(exc)}) from exc


async def check_connection(pool: asyncpg.Pool) -> bool:
    """Checks that PostgreSQL answers (health check)."""
    try:
        async with get_connection(pool, timeout=5) as conn:
            result = await conn.fetchval("SELECT 1")
            return result == 1
    except StoreError:
        return False


async def apply_migrations(pool: asyncpg.Pool, migrations_dir: Path = MIGRATIONS_DIR) -> int:
    """
    Applies SQL migrations from ``marketplace/db/migrations/``.

    Applied files are tracked in ``_applied_migrations``; each file runs in
    its own transaction. Returns the number of newly applied files.
    """
    sql_files = sorted(migrations_dir.glob("*.sql")) if migrations_dir.is_dir() else []
    if not sql_files:
        logger.info("No SQL migration files found — skipping")
        return 0

    applied_now = 0
    async with pool.acquire() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS _applied_migrations (
                filename TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ DEFAULT NOW()
            )
        """)

        rows = await conn.fetch("SELECT filename FROM _applied_migrations")
        applied = {row["filename"] for row in rows}

        for sql_file in sql_files:
            if sql_file.name in applied:
                continue

            logger.info(f"📄 Applying migration: {sql_file.name}")
            sql_text = sql_file.read_text(encoding="utf-8")
            async with conn.transaction():
                await conn.execute(sql_text)
                await conn.execute(
                    "INSERT INTO _applied_migrations (filename) VALUES ($1)",
                    sql_file.name,
                )
            applied_now += 1
            logger.info(f"✅ Migration applied: {sql_file.name}")

    logger.info(f"✅ Marketplace migrations up to date ({len(sql_files)} files checked)")
    return applied_now
