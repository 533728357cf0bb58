import pytest

from kitchen.core import config
from kitchen.services.auth import create_identity_token
from tests.fixtures_data import ORDER_PAYLOAD
from tests.support import build_client

SECRET = "test-secret"


@pytest.fixture
def token_auth(monkeypatch):
    monkeypatch.setattr(config, "AUTH_DISABLED", False)
    monkeypatch.setattr(config, "AUTH_JWT_SECRET", SECRET)
    monkeypatch.setattr(config, "AUTH_JWT_AUDIENCE", None)
    monkeypatch.setattr(config, "AUTH_JWT_ISSUER", None)


def _headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_missing_token_is_rejected(token_auth):
    client, _ = build_client(authenticated=False)

    response = client.get("/api/orders")

    assert response.status_code == 401
    assert response.json()["error"]["kind"] == "unauthorized"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_token_is_rejected(token_auth):
    client, _ = build_client(authenticated=False)
    forged = create_identity_token("cook-42", secret="another-secret")

    response = client.get("/api/dishes", headers=_headers(forged))

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid or expired token"


def test_expired_token_is_rejected(token_auth):
    client, _ = build_client(authenticated=False)
    expired = create_identity_token("cook-42", expires_minutes=-5)

    response = client.get("/api/dishes", headers=_headers(expired))

    assert response.status_code == 401


def test_valid_token_identifies_the_history_author(token_auth):
    client, _ = build_client(authenticated=False)
    headers = _headers(create_identity_token("cook-42", email="cook@example.com"))

    created = client.post("/api/orders", json=ORDER_PAYLOAD, headers=headers)
    assert created.status_code == 201
    order_id = created.json()["id"]
    client.patch(f"/api/orders/{order_id}/status", json={"status": "CONFIRMED"}, headers=headers)

    detail = client.get(f"/api/orders/{order_id}", headers=headers).json()

    assert [entry["action"] for entry in detail["history"]] == ["status_change", "created"]
    assert {entry["userId"] for entry in detail["history"]} == {"cook-42"}


def test_disabled_auth_uses_system_principal(monkeypatch):
    monkeypatch.setattr(config, "AUTH_DISABLED", True)
    client, _ = build_client(authenticated=False)

    created = client.post("/api/orders", json=ORDER_PAYLOAD)
    detail = client.get(f"/api/orders/{created.json()['id']}").json()

    assert detail["history"][0]["userId"] == "system"
