"""
auth/models.py -- Domain dataclasses for accounts and tenants.

Pattern: Data class (pure data container, zero logic). Stores and services
do the work; these only own the domain shape.

Layer rule: no imports from api/ or institutes/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    INSTITUTE = "INSTITUTE"
    STUDENT = "STUDENT"


@dataclass
class User:
    """An account that can log in.

    email is stored trimmed and lower-cased and is unique across every role.
    full_name / phone are filled for institute owners and students; a
    super-admin or a bare account created through POST /auth/register has
    neither.
    """

    email: str
    role: Role
    password_hash: str
    id: str | None = None
    full_name: str | None = None
    phone: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class Institute:
    """A tenant. Owned by exactly one INSTITUTE user.

    slug is None only for rows that predate slug assignment; the canonical
    slug of such a row is derived from its name (see TenantScope).
    """

    name: str
    owner_id: str
    id: str | None = None
    slug: str | None = None
    description: str | None = None
    logo_url: str | None = None
    address: str | None = None
    phone: str | None = None
    show_info_on_login: bool = False
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class StudentProfile:
    """One-to-one extension of a STUDENT user, linking it to its institute."""

    user_id: str
    institute_id: str
    full_name: str
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class TenantScope:
    """The institute a user belongs to, as seen by the tenant portal login."""

    institute_id: str
    institute_name: str
    institute_slug: str
