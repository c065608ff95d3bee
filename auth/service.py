"""
auth/service.py -- Registration, login and tenant-portal login.

AuthService coordinates the credential store, the password hasher and the
token issuer. It never imports FastAPI: failures are raised as
auth.errors.ServiceError subclasses and mapped to HTTP by api/main.py.

Invariants kept here:
  - SUPER_ADMIN accounts cannot be self-registered.
  - A user and its institute (or student profile) are written in one
    UnitOfWork; a failure at any step leaves neither row behind.
  - Unknown email and wrong password produce the same UnauthorizedError.
  - A tenant-portal login only succeeds through the caller's own
    institute's slug.

Password hashing is CPU-bound and synchronous. Callers on an event loop
must run these methods in a worker thread (the FastAPI routes are plain
`def` handlers for this reason).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from auth.errors import ForbiddenError, InvalidRequestError, NotFoundError, UnauthorizedError
from auth.models import Institute, Role, User
from auth.permissions import TENANT_PORTAL_ROLES
from auth.store import CredentialStore
from auth.tokens import authenticate, create_access_token, hash_password
from core.slug import slug_normalize

logger = logging.getLogger("examadda.auth")

_BAD_CREDENTIALS = "Invalid credentials"


@dataclass(frozen=True)
class AuthResult:
    """A freshly issued token and the account it was issued for."""

    access_token: str
    user: User


class AuthService:
    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, email: str, password: str, role: Role = Role.STUDENT) -> AuthResult:
        """Create a bare account of the given role and log it in."""
        role = Role(role)
        if role is Role.SUPER_ADMIN:
            raise ForbiddenError("Super admin accounts cannot be self-registered", code="role_not_allowed")
        user = self._store.create_user(User(email=email, role=role, password_hash=hash_password(password)))
        logger.info("Registered %s user %s", role.value, user.id)
        return self._issue(user)

    def register_institute(
        self,
        email: str,
        password: str,
        owner_name: str,
        phone: str,
        institute_name: str,
        description: str | None = None,
    ) -> AuthResult:
        """Create an INSTITUTE owner and its institute in one transaction."""
        slug = slug_normalize(institute_name)
        if not slug:
            raise InvalidRequestError(
                "Institute name must contain at least one letter or digit",
                code="invalid_slug",
            )
        password_hash = hash_password(password)
        with self._store.unit_of_work() as uow:
            owner = self._store.create_user(
                User(
                    email=email,
                    role=Role.INSTITUTE,
                    password_hash=password_hash,
                    full_name=owner_name,
                    phone=phone,
                ),
                uow=uow,
            )
            institute = self._store.create_institute_for_owner(
                owner.id,
                Institute(name=institute_name, owner_id=owner.id, slug=slug, description=description),
                uow=uow,
            )
        logger.info("Registered institute %s (slug=%s) for owner %s", institute.id, institute.slug, owner.id)
        return self._issue(owner)

    def register_student(
        self,
        email: str,
        password: str,
        full_name: str,
        phone: str,
        institute_id: str,
    ) -> AuthResult:
        """Create a STUDENT and its profile under an existing institute."""
        password_hash = hash_password(password)
        with self._store.unit_of_work() as uow:
            if self._store.get_institute(institute_id, uow=uow) is None:
                raise NotFoundError("Institute not found", code="institute_not_found")
            student = self._store.create_user(
                User(
                    email=email,
                    role=Role.STUDENT,
                    password_hash=password_hash,
                    full_name=full_name,
                    phone=phone,
                ),
                uow=uow,
            )
            self._store.create_student_profile(student.id, institute_id, full_name, uow=uow)
        logger.info("Registered student %s under institute %s", student.id, institute_id)
        return self._issue(student)

    def create_account(self, email: str, password: str, role: Role) -> User:
        """Create an account of any role without logging it in. Admin use only."""
        user = self._store.create_user(User(email=email, role=Role(role), password_hash=hash_password(password)))
        logger.info("Created %s account %s", user.role.value, user.id)
        return user

    def seed_super_admin(self, email: str, password: str) -> User:
        """Create the super admin, or reset the password and role of an existing account."""
        password_hash = hash_password(password)
        existing = self._store.find_user_by_email(email)
        if existing is None:
            user = self._store.create_user(User(email=email, role=Role.SUPER_ADMIN, password_hash=password_hash))
            logger.info("Seeded super admin %s", user.id)
            return user
        self._store.reset_credentials(existing.id, password_hash, Role.SUPER_ADMIN)
        logger.info("Reset credentials of existing account %s to super admin", existing.id)
        existing.password_hash = password_hash
        existing.role = Role.SUPER_ADMIN
        return existing

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> AuthResult:
        return self._issue(self._check_credentials(email, password))

    def login_for_institute(self, slug: str, email: str, password: str) -> AuthResult:
        """Log in through one institute's portal.

        Only the institute's owner and its students get through. Every
        failure, including a valid user of another tenant, is reported as
        the same UnauthorizedError as a bad password.
        """
        user = self._check_credentials(email, password)
        if user.role not in TENANT_PORTAL_ROLES:
            logger.info("Portal login refused for %s user %s", user.role.value, user.id)
            raise UnauthorizedError(_BAD_CREDENTIALS, code="bad_credentials")

        try:
            scope = self._store.resolve_tenant_scope(user.id, user.role)
        except NotFoundError as exc:
            logger.info("Portal login refused for user %s: no tenant scope", user.id)
            raise UnauthorizedError(_BAD_CREDENTIALS, code="bad_credentials") from exc

        if scope.institute_slug != slug_normalize(slug):
            logger.info("Portal login refused for user %s: tenant mismatch", user.id)
            raise UnauthorizedError(_BAD_CREDENTIALS, code="bad_credentials")
        return self._issue(user)

    def logout(self) -> str:
        # Tokens are stateless; the client discards its copy.
        return "Logged out successfully"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_credentials(self, email: str, password: str) -> User:
        user = authenticate(self._store, email, password)
        if user is None:
            logger.info("Login failed")
            raise UnauthorizedError(_BAD_CREDENTIALS, code="bad_credentials")
        return user

    @staticmethod
    def _issue(user: User) -> AuthResult:
        token = create_access_token(user.id, user.email, user.role)
        return AuthResult(access_token=token, user=user)
