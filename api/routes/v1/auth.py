"""
api/routes/v1/auth.py -- Registration, login and logout endpoints.

Routes:
  POST /api/auth/register                 -- bare account (STUDENT/INSTITUTE)
  POST /api/auth/register/institute       -- owner account + institute
  POST /api/auth/register/student         -- student account + profile
  POST /api/auth/login                    -- email/password login
  POST /api/auth/login/institute/{slug}   -- tenant portal login
  POST /api/auth/logout                   -- acknowledgement (requires auth)

Every handler that hashes or verifies a password is a plain `def` so
FastAPI runs it in the threadpool and bcrypt never blocks the event loop.

Security:
  Credential-checking routes are rate-limited per client IP (LOGIN_RATE_LIMIT).
  Unknown email and wrong password share one error ("bad_credentials").
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter, login_rate_limit
from api.models import (
    AuthPayload,
    Envelope,
    LoginRequest,
    RegisterInstituteRequest,
    RegisterRequest,
    RegisterStudentRequest,
    UserSummary,
)
from auth.dependencies import require_capability
from auth.models import Role, User
from auth.service import AuthResult, AuthService

# Auth policy:
# - POST /api/auth/register*:               public
# - POST /api/auth/login, /login/institute: public, rate-limited
# - POST /api/auth/logout:                  requires auth ("auth.logout")
router = APIRouter()


def _service(request: Request) -> AuthService:
    return AuthService(request.app.state.store)


def _token_envelope(response: Response, message: str, result: AuthResult) -> Envelope[AuthPayload]:
    response.headers["Cache-Control"] = "no-store"
    return Envelope[AuthPayload](
        message=message,
        data=AuthPayload(access_token=result.access_token, user=UserSummary.from_user(result.user)),
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@limiter.limit(login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=Envelope[AuthPayload])
def register(request: Request, response: Response, body: RegisterRequest) -> Envelope[AuthPayload]:
    """Register a bare account. SUPER_ADMIN is refused with 403."""
    result = _service(request).register(body.email, body.password, body.role or Role.STUDENT)
    return _token_envelope(response, "Registration successful", result)


@limiter.limit(login_rate_limit)
@router.post("/auth/register/institute", response_model=Envelope[AuthPayload])
def register_institute(
    request: Request,
    response: Response,
    body: RegisterInstituteRequest,
) -> Envelope[AuthPayload]:
    """Register an institute owner together with the institute.

    Both rows are written in one transaction. 409 if the email or the
    institute's slug is already taken.
    """
    result = _service(request).register_institute(
        email=body.email,
        password=body.password,
        owner_name=body.owner_name,
        phone=body.phone,
        institute_name=body.institute_name,
        description=body.description,
    )
    return _token_envelope(response, "Institute registration successful", result)


@limiter.limit(login_rate_limit)
@router.post("/auth/register/student", response_model=Envelope[AuthPayload])
def register_student(
    request: Request,
    response: Response,
    body: RegisterStudentRequest,
) -> Envelope[AuthPayload]:
    """Register a student under an existing institute (404 if it does not exist)."""
    result = _service(request).register_student(
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        phone=body.phone,
        institute_id=str(body.institute_id),
    )
    return _token_envelope(response, "Student registration successful", result)


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------


@limiter.limit(login_rate_limit)
@router.post("/auth/login", response_model=Envelope[AuthPayload])
def login(request: Request, response: Response, body: LoginRequest) -> Envelope[AuthPayload]:
    """Authenticate with email and password."""
    result = _service(request).login(body.email, body.password)
    return _token_envelope(response, "Login successful", result)


@limiter.limit(login_rate_limit)
@router.post("/auth/login/institute/{slug}", response_model=Envelope[AuthPayload])
def login_for_institute(
    request: Request,
    response: Response,
    slug: str,
    body: LoginRequest,
) -> Envelope[AuthPayload]:
    """Log in through an institute's portal.

    Only the institute's owner and its students are admitted; a valid
    account of another institute gets the same 401 as a wrong password.
    """
    result = _service(request).login_for_institute(slug, body.email, body.password)
    return _token_envelope(response, "Institute login successful", result)


@router.post("/auth/logout", response_model=Envelope[None])
async def logout(
    request: Request,
    current_user: User = Depends(require_capability("auth.logout")),
) -> Envelope[None]:
    """Acknowledge logout. Tokens are stateless; the client must discard its copy."""
    return Envelope[None](message=_service(request).logout())
