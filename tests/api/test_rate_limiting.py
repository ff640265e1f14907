import pytest
from fastapi.testclient import TestClient

from supply_chain_partners.api.app import app
from supply_chain_partners.config import AppSettings
from supply_chain_partners.observability import rate_limiter
from supply_chain_partners.services.reconciliation import ReconciliationService
from supply_chain_partners.services.relationship_service import RelationshipService

ADMIN_HEADERS = {"X-API-Key": "test-admin-key"}


@pytest.fixture
def limited_client(monkeypatch, store, directory):
    """Client with the limiter switched on at 2 req/min (5 with an API key)."""
    monkeypatch.setattr(
        rate_limiter,
        "settings",
        AppSettings(RATE_LIMIT_PER_MINUTE=2, RATE_LIMIT_PER_MINUTE_AUTHENTICATED=5),
    )
    monkeypatch.setattr(rate_limiter.limiter, "enabled", True)
    rate_limiter.limiter.reset()
    client = TestClient(app)
    client.app.state.relationship_service = RelationshipService(store, directory)
    client.app.state.reconciliation_service = ReconciliationService(store, directory)
    yield client
    rate_limiter.limiter.reset()


def test_requests_over_the_limit_get_429(limited_client):
    statuses = [
        limited_client.get("/api/partners", params={"selfAddress": "0xaa"}).status_code for _ in range(3)
    ]

    assert statuses == [200, 200, 429]


def test_429_uses_error_body_and_headers(limited_client):
    for _ in range(2):
        limited_client.get("/api/partners", params={"selfAddress": "0xaa"})

    resp = limited_client.get("/api/partners", params={"selfAddress": "0xaa"})

    assert resp.status_code == 429
    assert resp.json()["error"] == "Too many requests. Please try again later."
    assert resp.headers["Retry-After"] == "60"
    assert resp.headers["X-RateLimit-Limit"] == "2"


def test_api_key_clients_get_the_higher_limit(limited_client):
    statuses = [
        limited_client.get(
            "/api/partners", params={"selfAddress": "0xaa"}, headers=ADMIN_HEADERS
        ).status_code
        for _ in range(6)
    ]

    assert statuses == [200] * 5 + [429]


def test_unlimited_routes_are_not_affected(limited_client):
    statuses = [limited_client.get("/api/_healthz").status_code for _ in range(4)]
    assert statuses == [200] * 4
