"""
tests/test_cli.py -- The seed-superadmin command in main.py.

The command opens its own CredentialStore from DATABASE_URL and closes it
when done, so each test keeps a second handle on the same named in-memory
database to inspect what was written.
"""

from __future__ import annotations

import uuid

import pytest

import main
from auth.models import Role
from conftest import make_store
from core.config import get_settings


@pytest.fixture
def seeded_db(monkeypatch: pytest.MonkeyPatch):
    """Point DATABASE_URL at a fresh in-memory store and yield a handle on it."""
    name = uuid.uuid4().hex
    store = make_store(name)
    monkeypatch.setattr(
        get_settings(),
        "database_url",
        f"sqlite:///file:test_{name}?mode=memory&cache=shared&uri=true",
    )
    yield store
    store.close()


def test_seed_from_arguments(seeded_db) -> None:
    assert main.main(["seed-superadmin", "--email", "Root@Example.com", "--password", "rootpass1"]) == 0
    user = seeded_db.find_user_by_email("root@example.com")
    assert user is not None
    assert user.role is Role.SUPER_ADMIN


def test_seed_defaults_come_from_settings(seeded_db, monkeypatch: pytest.MonkeyPatch) -> None:
    """SUPER_ADMIN_EMAIL / SUPER_ADMIN_PASSWORD are read through Settings."""
    monkeypatch.setattr(get_settings(), "super_admin_email", "settings-admin@example.com")
    monkeypatch.setattr(get_settings(), "super_admin_password", "fromsettings1")
    assert main.main(["seed-superadmin"]) == 0
    assert seeded_db.find_user_by_email("settings-admin@example.com") is not None


def test_seed_without_credentials_exits(seeded_db, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(get_settings(), "super_admin_email", "")
    monkeypatch.setattr(get_settings(), "super_admin_password", "")
    with pytest.raises(SystemExit):
        main.main(["seed-superadmin"])


def test_seed_rejects_overlong_password(seeded_db) -> None:
    """A password bcrypt cannot hash whole is reported, not truncated."""
    code = main.main(["seed-superadmin", "--email", "long@example.com", "--password", "пароль" * 10])
    assert code == 1
    assert seeded_db.find_user_by_email("long@example.com") is None
