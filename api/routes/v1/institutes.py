"""
api/routes/v1/institutes.py -- Institute profile endpoints.

Routes:
  POST  /api/institutes              -- create the caller's institute
  GET   /api/institutes/me           -- the caller's institute
  PATCH /api/institutes/me/details   -- edit portal details (logo, address, phone, flag)
  GET   /api/institutes/slug/{slug}  -- public portal details
  GET   /api/institutes              -- public list for sign-up forms
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from api.models import (
    CreateInstituteRequest,
    Envelope,
    InstituteResponse,
    PublicInstituteResponse,
    UpdateInstituteDetailsRequest,
)
from auth.dependencies import require_capability
from auth.models import User
from institutes.service import InstituteService

# Auth policy:
# - POST  /api/institutes:             INSTITUTE or SUPER_ADMIN ("institutes.create")
# - GET   /api/institutes/me:          any authenticated role ("institutes.read_mine")
# - PATCH /api/institutes/me/details:  INSTITUTE ("institutes.update_details")
# - GET   /api/institutes/slug/{slug}: public -- portal login pages call this
# - GET   /api/institutes:             public -- student sign-up lists institutes
router = APIRouter()


def _service(request: Request) -> InstituteService:
    return InstituteService(request.app.state.store)


@router.post("/institutes", response_model=Envelope[InstituteResponse], status_code=201)
def create_institute(
    request: Request,
    body: CreateInstituteRequest,
    current_user: User = Depends(require_capability("institutes.create")),
) -> Envelope[InstituteResponse]:
    """Create an institute owned by the caller. 409 if one already exists or the slug is taken."""
    institute = _service(request).create(current_user, body.name, body.description)
    return Envelope[InstituteResponse](
        message="Institute created",
        data=InstituteResponse.from_institute(institute),
    )


@router.get("/institutes/me", response_model=Envelope[InstituteResponse])
def my_institute(
    request: Request,
    current_user: User = Depends(require_capability("institutes.read_mine")),
) -> Envelope[InstituteResponse]:
    institute = _service(request).find_mine(current_user)
    return Envelope[InstituteResponse](
        message="Institute fetched",
        data=InstituteResponse.from_institute(institute),
    )


@router.patch("/institutes/me/details", response_model=Envelope[InstituteResponse])
def update_my_details(
    request: Request,
    body: UpdateInstituteDetailsRequest,
    current_user: User = Depends(require_capability("institutes.update_details")),
) -> Envelope[InstituteResponse]:
    """Update the details shown on the institute's login portal. Omitted fields are unchanged."""
    institute = _service(request).update_my_details(
        current_user,
        logo_url=str(body.logo_url) if body.logo_url is not None else None,
        address=body.address,
        phone=body.phone,
        show_info_on_login=body.show_info_on_login,
    )
    return Envelope[InstituteResponse](
        message="Institute details updated",
        data=InstituteResponse.from_institute(institute),
    )


@router.get("/institutes/slug/{slug}", response_model=Envelope[PublicInstituteResponse])
def institute_by_slug(request: Request, slug: str) -> Envelope[PublicInstituteResponse]:
    """Public portal details. Contact fields are only present when the owner opted in."""
    institute = _service(request).find_public_by_slug(slug)
    return Envelope[PublicInstituteResponse](
        message="Institute fetched",
        data=PublicInstituteResponse(**asdict(institute)),
    )


@router.get("/institutes", response_model=Envelope[list[PublicInstituteResponse]])
def list_institutes(request: Request) -> Envelope[list[PublicInstituteResponse]]:
    institutes = _service(request).list_public()
    return Envelope[list[PublicInstituteResponse]](
        message="Institutes fetched",
        data=[PublicInstituteResponse(**asdict(i)) for i in institutes],
    )
