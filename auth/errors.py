"""
auth/errors.py -- Service-layer exception taxonomy.

Services and the store raise these; api/main.py maps every ServiceError to
the failure envelope using status_code and code. Nothing below api/ imports
FastAPI, so the services stay usable from the CLI and from plain unit tests.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code: int = 400
    code: str = "bad_request"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidRequestError(ServiceError):
    """Well-formed request that the service still cannot act on."""

    status_code = 400
    code = "invalid_request"


class UnauthorizedError(ServiceError):
    """Bad credentials, wrong tenant portal, or a missing/expired/invalid token."""

    status_code = 401
    code = "unauthorized"


class ForbiddenError(ServiceError):
    """Authenticated, but the role may not perform this operation."""

    status_code = 403
    code = "forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    code = "not_found"


class ConflictError(ServiceError):
    """A uniqueness rule would be broken: email, slug, or institute owner."""

    status_code = 409
    code = "conflict"
