"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Requests authenticate with `Authorization: Bearer <jwt>`. The token is
verified (signature and expiry) and the user it names is loaded from the
store, so tokens of deleted accounts stop working immediately.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises UnauthorizedError if unauthenticated.
require_capability(op) wraps get_current_user() and raises ForbiddenError
when the caller's role is not allowed to perform op (see auth/permissions.py).

Layer rule: no imports from api/ or institutes/.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from auth.errors import ForbiddenError, UnauthorizedError
from auth.models import User
from auth.permissions import is_permitted
from auth.store import CredentialStore
from auth.tokens import decode_access_token


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def try_get_current_user(request: Request) -> User | None:
    """Authenticate the request via its Bearer token. Never raises."""
    token = _bearer_token(request)
    if token is None:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    store: CredentialStore = request.app.state.store
    user = store.get_user(payload["sub"])
    if user is None or user.role.value != payload["role"]:
        return None
    return user


def get_current_user(request: Request) -> User:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise UnauthorizedError("Authentication required.")
    return user


def require_capability(operation: str) -> Callable[[Request], User]:
    """Build a dependency that admits only roles allowed to perform operation.

        @router.get("/dashboard/student")
        def route(user: User = Depends(require_capability("dashboard.student"))): ...
    """

    def dependency(request: Request) -> User:
        user = get_current_user(request)
        if not is_permitted(operation, user.role):
            raise ForbiddenError("Your role is not allowed to perform this action.")
        return user

    dependency.__name__ = f"require_{operation.replace('.', '_')}"
    return dependency
