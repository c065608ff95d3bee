"""
api/routes/v1/dashboard.py -- Per-role dashboard summaries.

Routes:
  GET /api/dashboard/super-admin -- every user, institute and student
  GET /api/dashboard/institute   -- the caller's institute and its students
  GET /api/dashboard/student     -- the caller's profile and institute

Read-only aggregate routes -- no mutations here. Related records are joined
in Python from id maps (one query per table, no N+1). A dangling reference
is shown as "N/A" rather than failing the whole dashboard.
"""

from fastapi import APIRouter, Depends, Request

from api.limiter import limiter
from api.models import (
    DashboardInstitute,
    DashboardStudent,
    DashboardUser,
    EntityRef,
    Envelope,
    InstituteDashboard,
    StudentDashboard,
    SuperAdminDashboard,
)
from auth.dependencies import require_capability
from auth.errors import NotFoundError
from auth.models import User
from auth.store import CredentialStore

_MISSING = "N/A"

# Auth policy: one capability per dashboard, see auth/permissions.py.
router = APIRouter()


@limiter.limit("60/minute")
@router.get("/dashboard/super-admin", response_model=Envelope[SuperAdminDashboard])
def super_admin_dashboard(
    request: Request,
    current_user: User = Depends(require_capability("dashboard.super_admin")),
) -> Envelope[SuperAdminDashboard]:
    """Return platform-wide records, newest first.

    Response:
      counts      -- {"users": N, "institutes": N, "students": N}
      users       -- id, email, role, createdAt (never password hashes)
      institutes  -- full profile plus owner {id, email}
      students    -- id, fullName, user {id, email}, institute {id, name}
    """
    store: CredentialStore = request.app.state.store

    users = store.list_users()
    institutes = store.list_institutes()
    students = store.list_student_profiles()

    user_map = {u.id: u for u in users}
    institute_map = {i.id: i for i in institutes}

    def _email(user_id: str) -> str:
        user = user_map.get(user_id)
        return user.email if user else _MISSING

    data = SuperAdminDashboard(
        counts={"users": len(users), "institutes": len(institutes), "students": len(students)},
        users=[DashboardUser(id=u.id, email=u.email, role=u.role, created_at=u.created_at) for u in users],
        institutes=[
            DashboardInstitute.from_institute(i, owner=EntityRef(id=i.owner_id, email=_email(i.owner_id)))
            for i in institutes
        ],
        students=[
            DashboardStudent(
                id=s.user_id,
                full_name=s.full_name,
                user=EntityRef(id=s.user_id, email=_email(s.user_id)),
                institute=EntityRef(
                    id=s.institute_id,
                    name=institute_map[s.institute_id].name if s.institute_id in institute_map else _MISSING,
                ),
                created_at=s.created_at,
            )
            for s in students
        ],
    )
    return Envelope[SuperAdminDashboard](message="Super admin dashboard", data=data)


@limiter.limit("60/minute")
@router.get("/dashboard/institute", response_model=Envelope[InstituteDashboard])
def institute_dashboard(
    request: Request,
    current_user: User = Depends(require_capability("dashboard.institute")),
) -> Envelope[InstituteDashboard]:
    """Return the caller's institute and its students. 404 if the caller owns none."""
    store: CredentialStore = request.app.state.store

    institute = store.get_institute_by_owner(current_user.id)
    if institute is None:
        raise NotFoundError("Institute not found")

    students = store.list_student_profiles(institute_id=institute.id)
    user_map = store.get_users_by_ids(s.user_id for s in students)

    data = InstituteDashboard(
        institute=DashboardInstitute.from_institute(institute),
        students=[
            DashboardStudent(
                id=s.user_id,
                full_name=s.full_name,
                user=EntityRef(
                    id=s.user_id,
                    email=user_map[s.user_id].email if s.user_id in user_map else _MISSING,
                ),
                created_at=s.created_at,
            )
            for s in students
        ],
        counts={"students": len(students)},
    )
    return Envelope[InstituteDashboard](message="Institute dashboard", data=data)


@limiter.limit("60/minute")
@router.get("/dashboard/student", response_model=Envelope[StudentDashboard])
def student_dashboard(
    request: Request,
    current_user: User = Depends(require_capability("dashboard.student")),
) -> Envelope[StudentDashboard]:
    """Return the caller's student profile and institute. 404 if no profile exists."""
    store: CredentialStore = request.app.state.store

    profile = store.get_student_profile(current_user.id)
    institute = store.get_institute(profile.institute_id) if profile else None
    if profile is None or institute is None:
        raise NotFoundError("Student profile not found")

    data = StudentDashboard(
        id=profile.user_id,
        full_name=profile.full_name,
        user=EntityRef(id=current_user.id, email=current_user.email),
        institute=DashboardInstitute.from_institute(institute),
    )
    return Envelope[StudentDashboard](message="Student dashboard", data=data)
