import pytest

PROTECTED = [
    ("post", "/api/v1/auth/login"),
    ("post", "/api/v1/payments/onboarding"),
    ("get", "/api/v1/payments/account"),
]


@pytest.mark.parametrize("method,path", PROTECTED)
def test_missing_header_is_rejected_without_issuer_call(client, verifier, method, path):
    r = getattr(client, method)(path)
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}
    assert r.headers["www-authenticate"] == "Bearer"
    assert verifier.calls == []


@pytest.mark.parametrize("header", ["Basic YWxpY2U6cHc=", "Bearer", "Bearer    ", "alice-token"])
def test_malformed_header_is_rejected_without_issuer_call(client, verifier, header):
    r = client.post("/api/v1/auth/login", headers={"Authorization": header})
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}
    assert verifier.calls == []


def test_rejected_token_looks_like_missing_header(client, verifier):
    missing = client.get("/api/v1/payments/account")
    rejected = client.get("/api/v1/payments/account", headers={"Authorization": "Bearer forged"})
    assert rejected.status_code == missing.status_code == 401
    assert rejected.json() == missing.json()
    assert verifier.calls == ["forged"]


def test_rejected_token_never_reaches_handler(client, users, gateway):
    r = client.post("/api/v1/payments/onboarding", headers={"Authorization": "Bearer expired"})
    assert r.status_code == 401
    assert gateway.created == [] and gateway.links == []


def test_valid_token_is_verified_exactly_once(alice_client, verifier):
    r = alice_client.post("/api/v1/auth/login")
    assert r.status_code == 200, r.text
    assert verifier.calls == ["alice-token"]
    assert r.json()["id"] == "uid-alice"


def test_scheme_is_case_insensitive(client, verifier):
    r = client.post("/api/v1/auth/login", headers={"Authorization": "bearer alice-token"})
    assert r.status_code == 200, r.text
    assert verifier.calls == ["alice-token"]
