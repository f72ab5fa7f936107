"""
App-level behaviour: health check, security headers, audit trail, rate limiting
"""

import json

import pytest
from fastapi.testclient import TestClient

from clinic.audit import parse_entity
from clinic.database import get_db
from clinic.main import create_app
from clinic.models import AuditLog, UserRole
from clinic.rate_limiter import FixedWindowCounter


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_security_headers(client, headers):
    response = client.get("/api/patients", headers=headers)

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "default-src 'none'" in response.headers["Content-Security-Policy"]
    assert "Strict-Transport-Security" not in response.headers


def test_unknown_route_uses_error_envelope(client, headers):
    response = client.get("/api/nothing-here", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


class TestAudit:
    def test_parse_entity(self):
        assert parse_entity("/api/invoices/12/pdf") == ("invoices", "12")
        assert parse_entity("/api/appointments/availability") == ("appointments", None)
        assert parse_entity("/api") == ("unknown", None)

    def test_mutations_are_recorded(self, client, db, auth_headers, users):
        client.post(
            "/api/inventory",
            json={"name": "Masks", "category": "Consumables", "unit": "box"},
            headers=auth_headers[UserRole.STAFF],
        )

        entry = db.query(AuditLog).one()
        assert entry.action == "POST /api/inventory"
        assert entry.entity_type == "inventory"
        assert entry.user_id == users[UserRole.STAFF].id
        assert json.loads(entry.details)["status"] == 201

    def test_reads_are_not_recorded(self, client, db, headers):
        client.get("/api/inventory", headers=headers)
        assert db.query(AuditLog).count() == 0

    def test_rejected_requests_are_recorded(self, client, db):
        client.post("/api/inventory", json={"name": "Masks", "category": "Consumables", "unit": "box"})

        entry = db.query(AuditLog).one()
        assert entry.user_id is None
        assert json.loads(entry.details)["status"] == 401


class TestRateLimit:
    def test_window_counts_and_resets(self):
        now = [1000.0]
        counter = FixedWindowCounter(limit=2, window_seconds=60, clock=lambda: now[0])

        assert counter.hit("10.0.0.1") == (True, 1, 60)
        assert counter.hit("10.0.0.1")[0] is True
        assert counter.hit("10.0.0.1") == (False, 2, 60)
        assert counter.hit("10.0.0.2")[0] is True

        now[0] += 45
        assert counter.hit("10.0.0.1") == (False, 2, 15)

        now[0] += 15
        assert counter.hit("10.0.0.1") == (True, 1, 60)

    @pytest.fixture
    def limited_client(self, session_factory):
        app = create_app(use_lifespan=False, rate_limit=2)

        def override_get_db():
            session = session_factory()
            try:
                yield session
            finally:
                session.close()

        app.dependency_overrides[get_db] = override_get_db
        with TestClient(app) as test_client:
            yield test_client

    def test_api_requests_beyond_the_limit_get_429(self, limited_client, headers):
        for _ in range(2):
            response = limited_client.get("/api/patients", headers=headers)
            assert response.status_code == 200
        assert response.headers["X-RateLimit-Remaining"] == "0"

        blocked = limited_client.get("/api/patients", headers=headers)
        assert blocked.status_code == 429
        assert blocked.json()["success"] is False
        assert blocked.json()["message"] == "Too many requests, please try again later."
        assert int(blocked.headers["Retry-After"]) > 0

        assert limited_client.get("/health").status_code == 200

    def test_limit_is_per_client_ip(self, limited_client, headers):
        for _ in range(2):
            limited_client.get("/api/patients", headers={**headers, "X-Forwarded-For": "10.0.0.1"})

        other = limited_client.get("/api/patients", headers={**headers, "X-Forwarded-For": "10.0.0.2"})
        assert other.status_code == 200
