"""
institutes/service.py -- Institute profile management.

Owners create their institute (if they registered without one), read it,
and edit the details shown on their login portal. Anyone may list
institutes or fetch one by slug to render a portal's login page; contact
details are only exposed when the owner has opted in with
show_info_on_login.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from auth.errors import ForbiddenError, InvalidRequestError, NotFoundError
from auth.models import Institute, Role, User
from auth.store import CredentialStore
from core.slug import slug_normalize

logger = logging.getLogger("examadda.institutes")

_CREATOR_ROLES = frozenset({Role.INSTITUTE, Role.SUPER_ADMIN})


@dataclass(frozen=True)
class PublicInstitute:
    """What an unauthenticated visitor may see about an institute."""

    id: str
    name: str
    slug: str
    description: str | None = None
    logo_url: str | None = None
    address: str | None = None
    phone: str | None = None
    show_info_on_login: bool = False


class InstituteService:
    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    def create(self, owner: User, name: str, description: str | None = None) -> Institute:
        """Create an institute owned by the calling user.

        Raises ForbiddenError for students, ConflictError if the caller
        already owns an institute or the derived slug is taken.
        """
        if owner.role not in _CREATOR_ROLES:
            raise ForbiddenError("Only institute users can create an institute")
        slug = slug_normalize(name)
        if not slug:
            raise InvalidRequestError(
                "Institute name must contain at least one letter or digit",
                code="invalid_slug",
            )
        institute = self._store.create_institute_for_owner(
            owner.id,
            Institute(name=name, owner_id=owner.id, slug=slug, description=description),
        )
        logger.info("Institute %s created by %s", institute.id, owner.id)
        return institute

    def find_mine(self, owner: User) -> Institute:
        institute = self._store.get_institute_by_owner(owner.id)
        if institute is None:
            raise NotFoundError("Institute not found")
        return institute

    def update_my_details(self, owner: User, **fields) -> Institute:
        """Apply owner edits to logo_url, address, phone and show_info_on_login.

        Fields passed as None are left unchanged.
        """
        changes = {key: value for key, value in fields.items() if value is not None}
        if not changes:
            raise InvalidRequestError("No fields to update", code="no_changes")
        institute = self.find_mine(owner)
        self._store.update_institute(institute.id, **changes)
        logger.info("Institute %s details updated (%s)", institute.id, ", ".join(sorted(changes)))
        return self.find_mine(owner)

    def find_public_by_slug(self, slug: str) -> PublicInstitute:
        normalized = slug_normalize(slug)
        institute = self._store.get_institute_by_slug(normalized) if normalized else None
        if institute is None:
            raise NotFoundError("Institute not found")
        return _to_public(institute)

    def list_public(self) -> list[PublicInstitute]:
        """Return id/name/slug for every institute, alphabetically."""
        return [
            PublicInstitute(
                id=institute.id,
                name=institute.name,
                slug=institute.slug or slug_normalize(institute.name),
            )
            for institute in self._store.list_institutes(order_by_name=True)
        ]


def _to_public(institute: Institute) -> PublicInstitute:
    slug = institute.slug or slug_normalize(institute.name)
    if not institute.show_info_on_login:
        return PublicInstitute(
            id=institute.id,
            name=institute.name,
            slug=slug,
            description=institute.description,
        )
    return PublicInstitute(
        id=institute.id,
        name=institute.name,
        slug=slug,
        description=institute.description,
        logo_url=institute.logo_url,
        address=institute.address,
        phone=institute.phone,
        show_info_on_login=True,
    )
