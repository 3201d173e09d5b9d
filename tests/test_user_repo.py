import asyncio

import pytest

from marketplace.db.repositories.user_repo import UserRepository
from marketplace.exceptions import StoreError

ALICE_ROW = {
    "id": "uid-alice",
    "email": "alice@example.com",
    "name": "Alice",
    "payment_account_id": None,
}


class FakeConnection:
    """Replays scripted results and records every statement with its arguments."""

    def __init__(self, results=None, error=None) -> None:
        self.results = list(results or [])
        self.error = error
        self.statements: list[tuple[str, tuple]] = []

    async def _next(self, sql, args):
        self.statements.append((" ".join(sql.split()), args))
        if self.error is not None:
            raise self.error
        return self.results.pop(0)

    async def fetchrow(self, sql, *args):
        return await self._next(sql, args)

    async def fetchval(self, sql, *args):
        return await self._next(sql, args)


class _Acquire:
    def __init__(self, conn) -> None:
        self.conn = conn

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, *exc):
        return False


class FakePool:
    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn

    def acquire(self, timeout=None):
        return _Acquire(self.conn)


def _repo(*results, error=None):
    conn = FakeConnection(results, error)
    return UserRepository(FakePool(conn)), conn


def test_assign_payment_account_id_wins_with_one_conditional_update():
    repo, conn = _repo("acct_123")
    assert asyncio.run(repo.assign_payment_account_id("uid-alice", "acct_123")) == "acct_123"

    assert len(conn.statements) == 1
    sql, args = conn.statements[0]
    assert sql.startswith("UPDATE users SET payment_account_id = $2")
    assert "WHERE id = $1 AND payment_account_id IS NULL" in sql
    assert "RETURNING payment_account_id" in sql
    assert args == ("uid-alice", "acct_123")


def test_assign_payment_account_id_loses_and_returns_stored_id():
    repo, conn = _repo(None, "acct_999")
    assert asyncio.run(repo.assign_payment_account_id("uid-alice", "acct_123")) == "acct_999"

    assert len(conn.statements) == 2
    sql, args = conn.statements[1]
    assert sql == "SELECT payment_account_id FROM users WHERE id = $1"
    assert args == ("uid-alice",)


def test_assign_payment_account_id_for_missing_user_returns_none():
    repo, _ = _repo(None, None)
    assert asyncio.run(repo.assign_payment_account_id("uid-nobody", "acct_123")) is None


def test_create_user_inserted():
    repo, conn = _repo(dict(ALICE_ROW))
    row, created = asyncio.run(repo.create_user("uid-alice", "alice@example.com", "Alice"))

    assert created is True
    assert row == ALICE_ROW
    sql, args = conn.statements[0]
    assert "ON CONFLICT DO NOTHING RETURNING *" in sql
    assert args == ("uid-alice", "alice@example.com", "Alice")


def test_create_user_conflict_returns_existing_row():
    repo, conn = _repo(None, dict(ALICE_ROW))
    row, created = asyncio.run(repo.create_user("uid-alice-2", "alice@example.com", "Alice"))

    assert created is False
    assert row["id"] == "uid-alice"
    sql, args = conn.statements[1]
    assert sql.startswith("SELECT * FROM users WHERE id = $1 OR email = $2")
    assert args == ("uid-alice-2", "alice@example.com")


def test_create_user_conflicting_row_gone_is_store_error():
    repo, _ = _repo(None, None)
    with pytest.raises(StoreError):
        asyncio.run(repo.create_user("uid-alice", "alice@example.com", "Alice"))


def test_driver_failure_is_store_error():
    repo, _ = _repo(error=OSError("connection reset"))
    with pytest.raises(StoreError) as exc_info:
        asyncio.run(repo.get_user_by_id("uid-alice"))
    assert "connection reset" in exc_info.value.details["cause"]


def test_get_user_by_id_returns_plain_dict_or_none():
    repo, _ = _repo(dict(ALICE_ROW), None)
    assert asyncio.run(repo.get_user_by_id("uid-alice")) == ALICE_ROW
    assert asyncio.run(repo.get_user_by_id("uid-nobody")) is None
