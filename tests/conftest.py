# tests/conftest.py
from __future__ import annotations

import asyncio
import itertools

import pytest
import stripe
from fastapi.testclient import TestClient

from marketplace.config import MarketplaceSettings
from marketplace.exceptions import AuthenticationError
from marketplace.main import create_app
from marketplace.memory_store import MemoryUserRepository
from marketplace.models.payments import PaymentAccount
from marketplace.models.user import VerifiedIdentity

ALICE = VerifiedIdentity(uid="uid-alice", email="alice@example.com", name="Alice")


# ---------- Fakes for the external collaborators ----------
class FakeVerifier:
    """Token → identity table; anything else is rejected like an invalid ID token."""

    def __init__(self) -> None:
        self.tokens: dict[str, VerifiedIdentity] = {}
        self.calls: list[str] = []

    async def verify(self, token: str) -> VerifiedIdentity:
        self.calls.append(token)
        identity = self.tokens.get(token)
        if identity is None:
            raise AuthenticationError(details={"reason": "unknown test token"})
        return identity


class FakeGateway:
    """Records every Stripe call; ``fail_*`` switches inject platform errors."""

    def __init__(self) -> None:
        self.next_ids = iter(["acct_123", "acct_456", "acct_789"])
        self.created: list[str] = []
        self.links: list[tuple[str, str, str]] = []
        self.retrieved: list[str] = []
        self.deleted: list[str] = []
        self.accounts: dict[str, PaymentAccount] = {}
        self.fail_create = False
        self.fail_link = False
        self.fail_retrieve = False
        self.fail_delete = False
        self._link_seq = itertools.count(1)

    async def create_account(self, email: str) -> str:
        if self.fail_create:
            raise stripe.APIConnectionError("stripe down")
        self.created.append(email)
        return next(self.next_ids)

    async def create_onboarding_link(self, account_id: str, refresh_url: str, return_url: str) -> str:
        if self.fail_link:
            raise asyncio.TimeoutError()
        self.links.append((account_id, refresh_url, return_url))
        return f"https://connect.stripe.com/setup/e/{account_id}/{next(self._link_seq)}"

    async def retrieve_account(self, account_id: str) -> PaymentAccount:
        self.retrieved.append(account_id)
        if self.fail_retrieve:
            raise stripe.APIConnectionError("stripe down")
        return self.accounts.get(account_id, PaymentAccount(id=account_id))

    async def delete_account(self, account_id: str) -> None:
        if self.fail_delete:
            raise stripe.APIConnectionError("stripe down")
        self.deleted.append(account_id)


class FakeEvents:
    def __init__(self) -> None:
        self.emitted: list[tuple[str, dict]] = []

    async def emit_user_registered(self, **data) -> None:
        self.emitted.append(("user.registered", data))

    async def emit_account_created(self, **data) -> None:
        self.emitted.append(("payments.account_created", data))

    async def emit_orphan_discarded(self, **data) -> None:
        self.emitted.append(("payments.orphan_discarded", data))

    async def disconnect(self) -> None:
        pass


# ---------- Fixtures ----------
@pytest.fixture
def settings() -> MarketplaceSettings:
    return MarketplaceSettings(
        _env_file=None,
        app_env="test",
        firebase_project_id="demo-marketplace",
        stripe_secret_key="sk_test_dummy",
        frontend_url="https://shop.example.com",
    )


@pytest.fixture
def users() -> MemoryUserRepository:
    return MemoryUserRepository()


@pytest.fixture
def verifier() -> FakeVerifier:
    v = FakeVerifier()
    v.tokens["alice-token"] = ALICE
    return v


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def events() -> FakeEvents:
    return FakeEvents()


@pytest.fixture
def app(settings, users, verifier, gateway, events):
    application = create_app(settings)
    application.state.user_repo = users
    application.state.token_verifier = verifier
    application.state.payment_gateway = gateway
    application.state.events = events
    return application


@pytest.fixture
def client(app) -> TestClient:
    # No context manager: the lifespan must not replace the fakes.
    return TestClient(app)


@pytest.fixture
def alice_client(client) -> TestClient:
    client.headers.update({"Authorization": "Bearer alice-token"})
    return client


@pytest.fixture
def alice(users) -> dict:
    """Alice's user row, as created by her first login."""
    row, _ = asyncio.run(users.create_user(ALICE.uid, ALICE.email, ALICE.name))
    return row
