"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against a live store
  - No authentication required
"""

from __future__ import annotations

import asyncio


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _store = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any headers."""
    client, _store = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_health_pings_database_off_the_event_loop(api_client, monkeypatch):
    """The blocking ping runs in a worker thread, where no loop is running."""
    client, store = api_client
    seen: list[bool] = []

    def ping() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            seen.append(False)
        else:
            seen.append(True)
        return True

    monkeypatch.setattr(store, "ping", ping)
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert seen == [False]


def test_health_reports_degraded_database(api_client, monkeypatch):
    client, store = api_client
    monkeypatch.setattr(store, "ping", lambda: False)
    data = client.get("/api/v1/health").json()
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "error"
