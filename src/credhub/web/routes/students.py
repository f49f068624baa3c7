"""Student endpoints: profile, dashboard and own certificates."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from credhub.core.certificates import list_student_certificates
from credhub.core.profiles import (
    ensure_student_profile,
    get_student_profile,
    update_student_profile,
)
from credhub.core.review import compute_student_summary
from credhub.db.users_repository import UserRecord
from credhub.web.deps import require_student
from credhub.web.schemas import (
    CertificateListResponse,
    CertificateResponse,
    StudentDashboardResponse,
    StudentProfileResponse,
    StudentProfileUpdate,
)

router = APIRouter(prefix="/api/students/me", tags=["students"])


def _ensure_profile(user: UserRecord) -> StudentProfileResponse:
    """Create the profile on first access, then return it."""
    result = ensure_student_profile(user.id)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to initialize student profile. Please refresh the page.",
        )

    profile = get_student_profile(user.id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student profile not found",
        )
    return StudentProfileResponse.model_validate(profile)


@router.get("/profile", response_model=StudentProfileResponse)
async def get_profile(user: UserRecord = Depends(require_student)) -> StudentProfileResponse:
    """Get the signed-in student's profile."""
    return _ensure_profile(user)


@router.patch("/profile", response_model=StudentProfileResponse)
async def patch_profile(
    update: StudentProfileUpdate,
    user: UserRecord = Depends(require_student),
) -> StudentProfileResponse:
    """Update roll number and/or course."""
    _ensure_profile(user)
    profile = update_student_profile(user.id, roll_no=update.roll_no, course=update.course)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student profile not found",
        )
    return StudentProfileResponse.model_validate(profile)


@router.get("/dashboard", response_model=StudentDashboardResponse)
async def dashboard(user: UserRecord = Depends(require_student)) -> StudentDashboardResponse:
    """Counters and approved certificates for the student dashboard."""
    profile = _ensure_profile(user)
    summary = compute_student_summary(list_student_certificates(user.id))

    return StudentDashboardResponse(
        profile=profile,
        approved_count=len(summary.approved),
        project_count=summary.project_count,
        course_count=summary.course_count,
        status_counts=summary.status_counts,
        approved_certificates=[
            CertificateResponse.model_validate(c) for c in summary.approved
        ],
    )


@router.get("/certificates", response_model=CertificateListResponse)
async def my_certificates(
    status_filter: str = Query("all", alias="status"),
    search: str = Query(""),
    user: UserRecord = Depends(require_student),
) -> CertificateListResponse:
    """List the student's certificates, newest first."""
    certificates = list_student_certificates(user.id, status=status_filter, search=search)
    return CertificateListResponse(
        certificates=[CertificateResponse.model_validate(c) for c in certificates],
        count=len(certificates),
    )
