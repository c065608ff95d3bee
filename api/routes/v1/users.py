"""
api/routes/v1/users.py -- Direct account creation for super admins.

Unlike POST /api/auth/register this may create SUPER_ADMIN accounts and
does not log the new account in.
"""

from fastapi import APIRouter, Depends, Request

from api.models import CreateUserRequest, Envelope, UserSummary
from auth.dependencies import require_capability
from auth.models import User
from auth.service import AuthService

# Auth policy:
# - POST /api/users: SUPER_ADMIN only ("users.create")
router = APIRouter()


@router.post("/users", response_model=Envelope[UserSummary], status_code=201)
def create_user(
    request: Request,
    body: CreateUserRequest,
    current_user: User = Depends(require_capability("users.create")),
) -> Envelope[UserSummary]:
    """Create an account of any role. 409 if the email is already registered."""
    user = AuthService(request.app.state.store).create_account(body.email, body.password, body.role)
    return Envelope[UserSummary](message="User created", data=UserSummary.from_user(user))
