"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts and tenants.

Pattern: Repository + Data Mapper. CredentialStore is the repository;
_row_to_user / _row_to_institute / _row_to_student are the mappers. Services
and route code never touch SQL directly.

Transactions:
  Every write method accepts an optional UnitOfWork. Without one, the call
  runs in its own short transaction. With one, it joins the caller's
  transaction, and nothing is visible to other connections until the
  unit_of_work() block exits cleanly. Any exception inside the block rolls
  back every row written in it -- this is how a user and its institute (or
  student profile) are created all-or-nothing.

Uniqueness:
  email, institutes.slug and institutes.owner_id carry UNIQUE constraints.
  The store checks each one first so it can raise a ConflictError with a
  specific code; an IntegrityError from a concurrent writer that slips past
  the check is still reported as a ConflictError.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or institutes/.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import ConflictError, NotFoundError
from auth.models import Institute, Role, StudentProfile, TenantScope, User
from core.slug import slug_normalize

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False),  # bcrypt hash
    Column("role", String(20), nullable=False),
    Column("full_name", Text),
    Column("phone", String(20)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_institutes = Table(
    "institutes",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("name", Text, nullable=False),
    Column("slug", String(255), unique=True),
    Column("description", Text),
    Column("owner_id", String(36), ForeignKey("users.id"), nullable=False, unique=True),
    Column("logo_url", Text),
    Column("address", Text),
    Column("phone", String(20)),
    Column("show_info_on_login", Boolean, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_student_profiles = Table(
    "student_profiles",
    _metadata,
    Column("user_id", String(36), ForeignKey("users.id"), primary_key=True),
    Column("institute_id", String(36), ForeignKey("institutes.id"), nullable=False),
    Column("full_name", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Institute columns an owner may change after creation.
_MUTABLE_INSTITUTE_FIELDS = {"logo_url", "address", "phone", "show_info_on_login"}


# ---------------------------------------------------------------------------
# SQLite connection setup
# ---------------------------------------------------------------------------


def _configure_sqlite(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. Foreign keys are off by default in SQLite.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Unit of work
# ---------------------------------------------------------------------------


class UnitOfWork:
    """One open database transaction shared by several store calls.

    Obtain one from CredentialStore.unit_of_work(); never construct it
    directly. Commit and rollback belong to the context manager that
    created it.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for users, institutes and student profiles.

    Usage:
        store = CredentialStore("sqlite:///./examadda.db")
        with store.unit_of_work() as uow:
            owner = store.create_user(User(...), uow=uow)
            store.create_institute_for_owner(owner.id, Institute(...), uow=uow)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _configure_sqlite)
        _metadata.create_all(self.engine)

    @contextmanager
    def unit_of_work(self) -> Iterator[UnitOfWork]:
        """Open a transaction; commit on clean exit, roll back on any exception."""
        with self.engine.begin() as conn:
            yield UnitOfWork(conn)

    @contextmanager
    def _connection(self, uow: UnitOfWork | None) -> Iterator[Connection]:
        if uow is not None:
            yield uow.conn
        else:
            with self.engine.begin() as conn:
                yield conn

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def find_user_by_email(self, email: str, uow: UnitOfWork | None = None) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self._connection(uow) as conn:
            row = conn.execute(_users.select().where(_users.c.email == normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_user(self, user_id: str, uow: UnitOfWork | None = None) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self._connection(uow) as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_users_by_ids(self, user_ids: Iterable[str]) -> dict[str, User]:
        """Return {id: User} for the given ids. Unknown ids are skipped."""
        ids = list(user_ids)
        if not ids:
            return {}
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().where(_users.c.id.in_(ids))).fetchall()
        return {row.id: _row_to_user(row) for row in rows}

    def list_users(self) -> list[User]:
        """Return every user, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.created_at.desc())).fetchall()
        return [_row_to_user(r) for r in rows]

    def create_user(self, user: User, uow: UnitOfWork | None = None) -> User:
        """Insert a user and return it with id and timestamps filled in.

        Raises ConflictError (code "email_taken") if the email is already
        registered under any role.
        """
        email = normalize_email(user.email)
        now = _now_iso()
        user_id = user.id or _new_id()
        with self._connection(uow) as conn:
            exists = conn.execute(select(_users.c.id).where(_users.c.email == email)).fetchone()
            if exists is not None:
                raise ConflictError("Email already registered", code="email_taken")
            try:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        email=email,
                        password=user.password_hash,
                        role=Role(user.role).value,
                        full_name=user.full_name,
                        phone=user.phone,
                        created_at=now,
                        updated_at=now,
                    )
                )
            except IntegrityError as exc:
                raise ConflictError("Email already registered", code="email_taken") from exc
        return User(
            id=user_id,
            email=email,
            role=Role(user.role),
            password_hash=user.password_hash,
            full_name=user.full_name,
            phone=user.phone,
            created_at=now,
            updated_at=now,
        )

    def reset_credentials(self, user_id: str, password_hash: str, role: Role) -> bool:
        """Overwrite a user's password hash and role. Returns False if user_id is unknown."""
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(password=password_hash, role=Role(role).value, updated_at=_now_iso())
            )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Institutes
    # ------------------------------------------------------------------

    def create_institute_for_owner(
        self,
        owner_id: str,
        institute: Institute,
        uow: UnitOfWork | None = None,
    ) -> Institute:
        """Insert an institute owned by owner_id.

        The slug defaults to slug_normalize(institute.name) when not set.
        Raises ConflictError with code "institute_exists" if the owner
        already has an institute, or "slug_taken" if the slug is in use.
        """
        slug = institute.slug or slug_normalize(institute.name)
        now = _now_iso()
        institute_id = institute.id or _new_id()
        with self._connection(uow) as conn:
            owned = conn.execute(select(_institutes.c.id).where(_institutes.c.owner_id == owner_id)).fetchone()
            if owned is not None:
                raise ConflictError("User already owns an institute", code="institute_exists")
            taken = conn.execute(select(_institutes.c.id).where(_institutes.c.slug == slug)).fetchone()
            if taken is not None:
                raise ConflictError(f"Institute slug '{slug}' is already taken", code="slug_taken")
            try:
                conn.execute(
                    _institutes.insert().values(
                        id=institute_id,
                        name=institute.name,
                        slug=slug,
                        description=institute.description,
                        owner_id=owner_id,
                        logo_url=institute.logo_url,
                        address=institute.address,
                        phone=institute.phone,
                        show_info_on_login=institute.show_info_on_login,
                        created_at=now,
                        updated_at=now,
                    )
                )
            except IntegrityError as exc:
                raise ConflictError("Institute owner or slug already in use") from exc
        return Institute(
            id=institute_id,
            name=institute.name,
            slug=slug,
            description=institute.description,
            owner_id=owner_id,
            logo_url=institute.logo_url,
            address=institute.address,
            phone=institute.phone,
            show_info_on_login=institute.show_info_on_login,
            created_at=now,
            updated_at=now,
        )

    def get_institute(self, institute_id: str, uow: UnitOfWork | None = None) -> Institute | None:
        with self._connection(uow) as conn:
            row = conn.execute(_institutes.select().where(_institutes.c.id == institute_id)).fetchone()
        return _row_to_institute(row) if row is not None else None

    def get_institute_by_owner(self, owner_id: str, uow: UnitOfWork | None = None) -> Institute | None:
        with self._connection(uow) as conn:
            row = conn.execute(_institutes.select().where(_institutes.c.owner_id == owner_id)).fetchone()
        return _row_to_institute(row) if row is not None else None

    def get_institute_by_slug(self, slug: str) -> Institute | None:
        """Look up an institute by its stored slug (exact match on the normalized form)."""
        with self.engine.connect() as conn:
            row = conn.execute(_institutes.select().where(_institutes.c.slug == slug_normalize(slug))).fetchone()
        return _row_to_institute(row) if row is not None else None

    def list_institutes(self, order_by_name: bool = False) -> list[Institute]:
        """Return every institute, newest first (or alphabetically)."""
        order = _institutes.c.name.asc() if order_by_name else _institutes.c.created_at.desc()
        with self.engine.connect() as conn:
            rows = conn.execute(_institutes.select().order_by(order)).fetchall()
        return [_row_to_institute(r) for r in rows]

    def update_institute(self, institute_id: str, **fields) -> bool:
        """Update owner-editable fields on an institute.

        Accepted fields: logo_url, address, phone, show_info_on_login.
        Unknown keys raise ValueError. Returns True if a row was updated.
        """
        unknown = set(fields) - _MUTABLE_INSTITUTE_FIELDS
        if unknown:
            raise ValueError(f"Unknown institute fields: {unknown!r}")
        with self.engine.begin() as conn:
            result = conn.execute(
                _institutes.update()
                .where(_institutes.c.id == institute_id)
                .values(updated_at=_now_iso(), **fields)
            )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Student profiles
    # ------------------------------------------------------------------

    def create_student_profile(
        self,
        user_id: str,
        institute_id: str,
        full_name: str,
        uow: UnitOfWork | None = None,
    ) -> StudentProfile:
        """Link a STUDENT user to an institute.

        Raises NotFoundError (code "institute_not_found") if the institute
        does not exist.
        """
        now = _now_iso()
        with self._connection(uow) as conn:
            found = conn.execute(select(_institutes.c.id).where(_institutes.c.id == institute_id)).fetchone()
            if found is None:
                raise NotFoundError("Institute not found", code="institute_not_found")
            try:
                conn.execute(
                    _student_profiles.insert().values(
                        user_id=user_id,
                        institute_id=institute_id,
                        full_name=full_name,
                        created_at=now,
                        updated_at=now,
                    )
                )
            except IntegrityError as exc:
                raise ConflictError("Student profile already exists") from exc
        return StudentProfile(
            user_id=user_id,
            institute_id=institute_id,
            full_name=full_name,
            created_at=now,
            updated_at=now,
        )

    def get_student_profile(self, user_id: str) -> StudentProfile | None:
        with self.engine.connect() as conn:
            row = conn.execute(_student_profiles.select().where(_student_profiles.c.user_id == user_id)).fetchone()
        return _row_to_student(row) if row is not None else None

    def list_student_profiles(self, institute_id: str | None = None) -> list[StudentProfile]:
        """Return student profiles, newest first, optionally for one institute."""
        query = _student_profiles.select().order_by(_student_profiles.c.created_at.desc())
        if institute_id is not None:
            query = query.where(_student_profiles.c.institute_id == institute_id)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_student(r) for r in rows]

    # ------------------------------------------------------------------
    # Tenant scope
    # ------------------------------------------------------------------

    def resolve_tenant_scope(self, user_id: str, role: Role, uow: UnitOfWork | None = None) -> TenantScope:
        """Return the institute a user belongs to.

        INSTITUTE -> the institute it owns.
        STUDENT   -> the institute referenced by its profile.

        The slug is the stored one, or derived from the institute name when
        the row has none. Raises NotFoundError when there is no such
        institute, including for roles that never belong to a tenant.
        """
        role = Role(role)
        if role is Role.INSTITUTE:
            query = _institutes.select().where(_institutes.c.owner_id == user_id)
        elif role is Role.STUDENT:
            query = _institutes.select().join(
                _student_profiles, _student_profiles.c.institute_id == _institutes.c.id
            ).where(_student_profiles.c.user_id == user_id)
        else:
            raise NotFoundError("Role has no tenant scope", code="tenant_not_found")

        with self._connection(uow) as conn:
            row = conn.execute(query).fetchone()
        if row is None:
            raise NotFoundError("Institute not found for user", code="tenant_not_found")
        return TenantScope(
            institute_id=row.id,
            institute_name=row.name,
            institute_slug=row.slug or slug_normalize(row.name),
        )

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        role=Role(row.role),
        password_hash=row.password,
        full_name=row.full_name,
        phone=row.phone,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_institute(row) -> Institute:
    return Institute(
        id=row.id,
        name=row.name,
        slug=row.slug,
        description=row.description,
        owner_id=row.owner_id,
        logo_url=row.logo_url,
        address=row.address,
        phone=row.phone,
        show_info_on_login=bool(row.show_info_on_login),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_student(row) -> StudentProfile:
    return StudentProfile(
        user_id=row.user_id,
        institute_id=row.institute_id,
        full_name=row.full_name,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
