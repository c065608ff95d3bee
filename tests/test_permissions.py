"""
tests/test_permissions.py -- The capability table in auth.permissions.
"""

from __future__ import annotations

import pytest

from auth.models import Role
from auth.permissions import CAPABILITIES, TENANT_PORTAL_ROLES, is_permitted


@pytest.mark.parametrize(
    "operation,role,allowed",
    [
        ("auth.logout", Role.STUDENT, True),
        ("auth.logout", Role.SUPER_ADMIN, True),
        ("users.create", Role.SUPER_ADMIN, True),
        ("users.create", Role.INSTITUTE, False),
        ("institutes.create", Role.INSTITUTE, True),
        ("institutes.create", Role.SUPER_ADMIN, True),
        ("institutes.create", Role.STUDENT, False),
        ("institutes.update_details", Role.INSTITUTE, True),
        ("institutes.update_details", Role.SUPER_ADMIN, False),
        ("dashboard.super_admin", Role.SUPER_ADMIN, True),
        ("dashboard.super_admin", Role.INSTITUTE, False),
        ("dashboard.institute", Role.INSTITUTE, True),
        ("dashboard.institute", Role.STUDENT, False),
        ("dashboard.student", Role.STUDENT, True),
        ("dashboard.student", Role.SUPER_ADMIN, False),
    ],
)
def test_capability_table(operation: str, role: Role, allowed: bool) -> None:
    assert is_permitted(operation, role) is allowed, f"{role.value} on {operation} should be {allowed}"


def test_unknown_operation_denied_for_every_role() -> None:
    for role in Role:
        assert is_permitted("no.such.operation", role) is False


def test_unknown_role_denied() -> None:
    assert is_permitted("auth.logout", "JANITOR") is False


def test_role_strings_accepted() -> None:
    assert is_permitted("dashboard.student", "STUDENT") is True


def test_every_operation_allows_some_role() -> None:
    assert all(CAPABILITIES[op] for op in CAPABILITIES)


def test_super_admin_cannot_use_tenant_portal() -> None:
    assert Role.SUPER_ADMIN not in TENANT_PORTAL_ROLES
    assert TENANT_PORTAL_ROLES == {Role.INSTITUTE, Role.STUDENT}
