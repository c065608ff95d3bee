"""
tests/conftest.py -- Shared fixtures for the Exam Adda test suite.

This module provides:
  - make_store(): an isolated in-memory CredentialStore
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - store: function-scoped store for unit tests
  - api_client: module-scoped TestClient plus a seeded super admin token
  - helpers for registering accounts through the HTTP API

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

ENVIRONMENT, BCRYPT_ROUNDS and RATE_LIMIT_ENABLED must be set before any
core/auth/api import: get_settings() is cached on first use.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any core/auth/api import so get_settings() generates
# a development JWT_SECRET instead of raising ValueError.
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Role, User
from auth.store import CredentialStore
from auth.tokens import create_access_token, hash_password

SUPER_ADMIN_EMAIL = "admin@examadda.com"
SUPER_ADMIN_PASSWORD = "adminpass123"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_store(name: str | None = None) -> CredentialStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        name: Database name. Defaults to a random one so each call gets a
              blank schema.
    """
    name = name or uuid.uuid4().hex
    return CredentialStore(f"sqlite:///file:test_{name}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: CredentialStore):
    """Return an async context manager that replaces the real lifespan.

    The real lifespan would open the database named by DATABASE_URL; this one
    installs the pre-created test store instead.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        yield

    return test_lifespan


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register_institute(client: TestClient, email: str, institute_name: str, password: str = "ownerpass1") -> dict:
    """Register an institute owner via the API and return the response data."""
    resp = client.post(
        "/api/auth/register/institute",
        json={
            "email": email,
            "password": password,
            "ownerName": "Owner Name",
            "phone": "9876543210",
            "instituteName": institute_name,
        },
    )
    assert resp.status_code == 200, f"Institute registration failed: {resp.status_code} {resp.text}"
    return resp.json()["data"]


def register_student(client: TestClient, email: str, institute_id: str, password: str = "studentpass1") -> dict:
    """Register a student via the API and return the response data."""
    resp = client.post(
        "/api/auth/register/student",
        json={
            "email": email,
            "password": password,
            "fullName": "Student Name",
            "phone": "9123456780",
            "instituteId": institute_id,
        },
    )
    assert resp.status_code == 200, f"Student registration failed: {resp.status_code} {resp.text}"
    return resp.json()["data"]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[CredentialStore, None, None]:
    """Blank CredentialStore for unit tests. Disposed after the test."""
    s = make_store()
    yield s
    s.close()


@pytest.fixture(scope="module")
def api_client(request: pytest.FixtureRequest) -> Generator[tuple[TestClient, str], None, None]:
    """Yield (client, super_admin_token) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so
    tests hit real route handlers but use an isolated in-memory store, one
    per test module. A super admin is seeded before the client starts.
    """
    store = make_store(request.module.__name__.replace(".", "_"))

    admin = store.create_user(
        User(email=SUPER_ADMIN_EMAIL, role=Role.SUPER_ADMIN, password_hash=hash_password(SUPER_ADMIN_PASSWORD))
    )
    token = create_access_token(admin.id, admin.email, admin.role)

    app.router.lifespan_context = _patch_lifespan(store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token

    store.close()
