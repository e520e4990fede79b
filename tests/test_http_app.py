"""Tests for the HTTP bundle surface."""

import pytest
from fastapi.testclient import TestClient

from conftest import HOOKS_KEY, ORCHESTRATOR_KEY

from keyservice.observability import KeyServiceMetrics
from keyservice.transport import create_app

BUNDLE_FIELDS = {
    "user_service",
    "hooks_service",
    "company_service",
    "billing_service",
    "permissions",
}


@pytest.fixture
def metrics():
    return KeyServiceMetrics()


@pytest.fixture
def client(service, metrics):
    return TestClient(create_app(service, metrics=metrics))


def _headers(user_id="u1", service_key=HOOKS_KEY):
    return {"X-User-ID": user_id, "X-Service-Key": service_key}


class TestCreateBundle:

    def test_create(self, client):
        response = client.post("/", headers=_headers())
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert BUNDLE_FIELDS <= set(body)
        assert all(len(body[name]) == 25 for name in BUNDLE_FIELDS)

    def test_missing_service_key(self, client):
        response = client.post("/", headers={"X-User-ID": "u1"})
        assert response.status_code == 400
        assert response.json() == {"status": "missing service key"}

    def test_invalid_service_key(self, client):
        response = client.post("/", headers=_headers(service_key="nope"))
        assert response.status_code == 401
        assert response.json() == {"status": "invalid service key"}

    def test_missing_user_id(self, client):
        response = client.post("/", headers={"X-Service-Key": HOOKS_KEY})
        assert response.status_code == 400
        assert response.json() == {"status": "missing user id"}


class TestGetBundle:

    def test_get_after_create(self, client):
        created = client.post("/", headers=_headers()).json()
        response = client.get("/", headers=_headers(service_key=ORCHESTRATOR_KEY))
        assert response.status_code == 200
        assert response.json() == created

    def test_get_missing(self, client):
        response = client.get("/", headers=_headers())
        assert response.status_code == 404
        assert response.json() == {"status": "not found"}

    def test_get_stale(self, client, clock):
        client.post("/", headers=_headers())
        clock.advance(2 * 60 * 60 + 1)
        assert client.get("/", headers=_headers()).status_code == 404


class TestValidate:

    def test_valid_key(self, client):
        created = client.post("/", headers=_headers()).json()
        response = client.get(
            f"/validate/{created['billing_service']}", headers={"X-User-ID": "u1"}
        )
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_unknown_key(self, client):
        client.post("/", headers=_headers())
        response = client.get("/validate/notakey", headers={"X-User-ID": "u1"})
        assert response.status_code == 401
        assert response.json() == {"status": "not allowed"}

    def test_missing_user(self, client):
        response = client.get("/validate/anykey")
        assert response.status_code == 400
        assert response.json() == {"status": "missing user id"}


class TestOperational:

    def test_ping(self, client):
        response = client.get("/ping")
        assert response.status_code == 200
        assert response.text == "."

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_health_unavailable(self, client, memory_store, monkeypatch):
        async def unreachable():
            return False

        monkeypatch.setattr(memory_store, "health_check", unreachable)
        assert client.get("/health").status_code == 503

    def test_probe(self, client):
        assert client.get("/probe").json() == {"status": "ok"}

    def test_metrics_exposed(self, client):
        client.post("/", headers=_headers())
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "keyservice_operations_total" in response.text

    def test_metrics_never_label_raw_paths(self, client):
        client.get("/validate/SECRETCANDIDATE", headers={"X-User-ID": "u1"})
        text = client.get("/metrics").text
        assert "SECRETCANDIDATE" not in text
        assert "/validate/{key}" in text

    def test_metrics_disabled(self, service):
        client = TestClient(create_app(service))
        assert client.get("/metrics").status_code == 404
