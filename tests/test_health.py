"""
tests/test_health.py -- Integration tests for GET /api/health and GET /api.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the test store
  - No authentication required
  - Unknown routes come back in the failure envelope
  - Middleware wraps in the documented order, request logging outermost
"""

from __future__ import annotations

from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from api.main import app, log_requests


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _ = api_client
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _ = api_client
    resp = client.get("/api/health", headers={})
    assert resp.status_code == 200


def test_health_reports_database_error(api_client, monkeypatch):
    """A failing ping degrades the database component instead of failing the health check."""
    client, _ = api_client
    store = client.app.state.store

    def broken_ping():
        raise RuntimeError("database unreachable")

    monkeypatch.setattr(store, "ping", broken_ping)
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["components"]["database"] == "error"


def test_api_index(api_client):
    client, _ = api_client
    resp = client.get("/api")
    assert resp.status_code == 200
    assert resp.json()["message"] == "API is running"


def test_unknown_route_uses_error_envelope(api_client):
    client, _ = api_client
    resp = client.get("/api/does-not-exist")
    assert resp.status_code == 404
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "http_404"


def test_api_index_lists_routes(api_client):
    client, _ = api_client
    routes = client.get("/api").json()["routes"]
    assert "POST /api/auth/login" in routes
    assert "GET /api/dashboard/student" in routes
    assert "PATCH /api/institutes/me/details" in routes


def test_middleware_order():
    """user_middleware lists the outermost wrapper first."""
    stack = [m.cls for m in app.user_middleware]
    assert stack == [BaseHTTPMiddleware, TrustedHostMiddleware, CORSMiddleware, SlowAPIMiddleware]
    assert app.user_middleware[0].kwargs["dispatch"] is log_requests
