"""
auth/permissions.py -- Which roles may invoke which protected operation.

One table, checked in one place. Route handlers declare the operation name
they implement (see auth.dependencies.require_capability) instead of
listing roles inline, so the whole access policy reads top to bottom here.

Operations missing from the table are denied for every role.
"""

from __future__ import annotations

from auth.models import Role

_ALL_ROLES = frozenset(Role)

CAPABILITIES: dict[str, frozenset[Role]] = {
    "auth.logout": _ALL_ROLES,
    "users.create": frozenset({Role.SUPER_ADMIN}),
    "institutes.create": frozenset({Role.INSTITUTE, Role.SUPER_ADMIN}),
    "institutes.read_mine": _ALL_ROLES,
    "institutes.update_details": frozenset({Role.INSTITUTE}),
    "dashboard.super_admin": frozenset({Role.SUPER_ADMIN}),
    "dashboard.institute": frozenset({Role.INSTITUTE}),
    "dashboard.student": frozenset({Role.STUDENT}),
}

# Roles allowed through an institute's login portal.
TENANT_PORTAL_ROLES = frozenset({Role.INSTITUTE, Role.STUDENT})


def is_permitted(operation: str, role: Role | str) -> bool:
    allowed = CAPABILITIES.get(operation)
    if allowed is None:
        return False
    try:
        return Role(role) in allowed
    except ValueError:
        return False
