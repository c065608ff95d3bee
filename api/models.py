"""
API request and response models for the Exam Adda REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Wire format: JSON keys are camelCase (accessToken, instituteName, ...).
Python attributes stay snake_case; _CamelModel supplies the aliases and
accepts either spelling on input.

Every response is wrapped in Envelope: {success, message, data}. Failures
use ErrorResponse, which is the same envelope with data=null plus a
machine-readable error object.
"""

from typing import Annotated, Generic, Optional, TypeVar
from uuid import UUID

from pydantic import AfterValidator, AnyHttpUrl, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import Institute, Role, User
from auth.tokens import MAX_PASSWORD_BYTES
from core.slug import slug_normalize

T = TypeVar("T")

PHONE_PATTERN = r"^[0-9]{10,15}$"


def _within_bcrypt_limit(value: str) -> str:
    """Reject passwords bcrypt cannot hash whole. max_length counts characters, not bytes."""
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
    return value


Password = Annotated[str, Field(min_length=6, max_length=64), AfterValidator(_within_bcrypt_limit)]
LoginPassword = Annotated[str, Field(min_length=1, max_length=64), AfterValidator(_within_bcrypt_limit)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _CamelRequest(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class Envelope(BaseModel, Generic[T]):
    """Success envelope shared by every route."""

    success: bool = True
    message: str
    data: Optional[T] = None


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Failure envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    message: str
    data: None = None
    error: ErrorDetail


def error_body(code: str, message: str, detail: Optional[str] = None) -> dict:
    return ErrorResponse(message=message, error=ErrorDetail(code=code, message=message, detail=detail)).model_dump()


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(_CamelRequest):
    """Body for POST /api/auth/register. role defaults to STUDENT."""

    email: EmailStr
    password: Password
    role: Optional[Role] = None


class RegisterInstituteRequest(_CamelRequest):
    email: EmailStr
    password: Password
    owner_name: str = Field(min_length=2, max_length=255)
    phone: str = Field(pattern=PHONE_PATTERN)
    institute_name: str = Field(min_length=2, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("institute_name")
    @classmethod
    def name_has_slug(cls, value: str) -> str:
        """Reject names that would produce an empty portal slug (e.g. "!!")."""
        if not slug_normalize(value):
            raise ValueError("institute name must contain at least one letter or digit")
        return value


class RegisterStudentRequest(_CamelRequest):
    email: EmailStr
    password: Password
    full_name: str = Field(min_length=2, max_length=255)
    phone: str = Field(pattern=PHONE_PATTERN)
    institute_id: UUID


class LoginRequest(_CamelRequest):
    email: EmailStr
    password: LoginPassword


class CreateUserRequest(_CamelRequest):
    """Body for POST /api/users (super admin only)."""

    email: EmailStr
    password: Password
    role: Role


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class UserSummary(_CamelModel):
    id: str
    email: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, email=user.email, role=user.role)


class AuthPayload(_CamelModel):
    access_token: str
    user: UserSummary


# ---------------------------------------------------------------------------
# Institutes
# ---------------------------------------------------------------------------


class CreateInstituteRequest(_CamelRequest):
    name: str = Field(min_length=2, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("name")
    @classmethod
    def name_has_slug(cls, value: str) -> str:
        if not slug_normalize(value):
            raise ValueError("institute name must contain at least one letter or digit")
        return value


class UpdateInstituteDetailsRequest(_CamelRequest):
    """Body for PATCH /api/institutes/me/details. Omitted fields are left unchanged."""

    logo_url: Optional[AnyHttpUrl] = None
    address: Optional[str] = Field(default=None, max_length=500)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    show_info_on_login: Optional[bool] = None


class InstituteResponse(_CamelModel):
    """Full institute record, as seen by its owner."""

    id: str
    name: str
    slug: Optional[str]
    description: Optional[str]
    owner_id: str
    logo_url: Optional[str]
    address: Optional[str]
    phone: Optional[str]
    show_info_on_login: bool
    created_at: Optional[str]

    @classmethod
    def from_institute(cls, institute: Institute) -> "InstituteResponse":
        return cls(
            id=institute.id,
            name=institute.name,
            slug=institute.slug,
            description=institute.description,
            owner_id=institute.owner_id,
            logo_url=institute.logo_url,
            address=institute.address,
            phone=institute.phone,
            show_info_on_login=institute.show_info_on_login,
            created_at=institute.created_at,
        )


class PublicInstituteResponse(_CamelModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    show_info_on_login: bool = False


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------


class EntityRef(_CamelModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class DashboardUser(_CamelModel):
    id: str
    email: str
    role: Role
    created_at: Optional[str]


class DashboardInstitute(_CamelModel):
    id: str
    name: str
    slug: Optional[str]
    description: Optional[str]
    logo_url: Optional[str]
    address: Optional[str]
    phone: Optional[str]
    show_info_on_login: bool
    owner: Optional[EntityRef] = None
    created_at: Optional[str] = None

    @classmethod
    def from_institute(cls, institute: Institute, owner: Optional[EntityRef] = None) -> "DashboardInstitute":
        return cls(
            id=institute.id,
            name=institute.name,
            slug=institute.slug,
            description=institute.description,
            logo_url=institute.logo_url,
            address=institute.address,
            phone=institute.phone,
            show_info_on_login=institute.show_info_on_login,
            owner=owner,
            created_at=institute.created_at,
        )


class DashboardStudent(_CamelModel):
    id: str
    full_name: str
    user: EntityRef
    institute: Optional[EntityRef] = None
    created_at: Optional[str] = None


class SuperAdminDashboard(_CamelModel):
    counts: dict[str, int]
    users: list[DashboardUser]
    institutes: list[DashboardInstitute]
    students: list[DashboardStudent]


class InstituteDashboard(_CamelModel):
    institute: DashboardInstitute
    students: list[DashboardStudent]
    counts: dict[str, int]


class StudentDashboard(_CamelModel):
    id: str
    full_name: str
    user: EntityRef
    institute: DashboardInstitute


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
