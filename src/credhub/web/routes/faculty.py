"""Faculty endpoints: review queue, stats, approve/reject, audit history."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from credhub.config.app_config import load_app_config
from credhub.core.audit import list_audit_logs
from credhub.core.certificates import (
    ReviewError,
    ReviewResult,
    approve_certificates,
    reject_certificates,
)
from credhub.core.review import (
    ALL,
    DATE_RANGES,
    ReviewFilters,
    compute_faculty_stats,
    filter_certificates,
    paginate,
)
from credhub.db.certificates_repository import get_all_certificates
from credhub.db.users_repository import UserRecord
from credhub.utils.validators import CertificateNotFoundError
from credhub.web.deps import require_faculty
from credhub.web.schemas import (
    ApproveRequest,
    AuditLogListResponse,
    AuditLogResponse,
    CertificateResponse,
    FacultyStatsResponse,
    RejectRequest,
    ReviewActionResponse,
    ReviewQueueResponse,
)

router = APIRouter(prefix="/api/faculty", tags=["faculty"])


@router.get("/certificates", response_model=ReviewQueueResponse)
async def review_queue(
    search: str = Query(""),
    category: str = Query(ALL),
    date_range: str = Query(ALL),
    status_filter: str = Query("pending", alias="status"),
    page: int = Query(1, ge=1),
    user: UserRecord = Depends(require_faculty),
) -> ReviewQueueResponse:
    """Filtered, paginated review queue (pending by default)."""
    if date_range not in DATE_RANGES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"date_range must be one of: {', '.join(DATE_RANGES)}",
        )

    filters = ReviewFilters(
        search=search,
        category=category,
        date_range=date_range,
        status=status_filter,
    )
    filtered = filter_certificates(get_all_certificates(), filters)
    result = paginate(filtered, page, load_app_config().review.items_per_page)

    return ReviewQueueResponse(
        certificates=[CertificateResponse.model_validate(c) for c in result.items],
        page=result.page,
        per_page=result.per_page,
        total=result.total,
        total_pages=result.total_pages,
        filters={
            "search": filters.search,
            "category": filters.category,
            "date_range": filters.date_range,
            "status": filters.status,
        },
    )


@router.get("/stats", response_model=FacultyStatsResponse)
async def stats(user: UserRecord = Depends(require_faculty)) -> FacultyStatsResponse:
    """Pending count, approvals today, total processed."""
    result = compute_faculty_stats(get_all_certificates())
    return FacultyStatsResponse(
        pending_count=result.pending_count,
        approved_today=result.approved_today,
        total_processed=result.total_processed,
    )


def _action_response(result: ReviewResult, verb: str) -> ReviewActionResponse:
    suffix = " successfully" if result.action == "approve" else ""
    return ReviewActionResponse(
        action=result.action,
        count=result.count,
        certificate_ids=result.certificate_ids,
        audit_logged=result.audit_logged,
        message=f"{result.count} certificate(s) {verb}{suffix}",
    )


@router.post("/certificates/approve", response_model=ReviewActionResponse)
async def approve(
    request: ApproveRequest,
    user: UserRecord = Depends(require_faculty),
) -> ReviewActionResponse:
    """Approve one or more certificates."""
    try:
        result = approve_certificates(request.certificate_ids, approver_id=user.id)
    except ReviewError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CertificateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return _action_response(result, "approved")


@router.post("/certificates/reject", response_model=ReviewActionResponse)
async def reject(
    request: RejectRequest,
    user: UserRecord = Depends(require_faculty),
) -> ReviewActionResponse:
    """Reject one or more certificates with a reason."""
    try:
        result = reject_certificates(
            request.certificate_ids, request.reason, approver_id=user.id
        )
    except ReviewError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CertificateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return _action_response(result, "rejected")


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def audit_logs(
    resource_id: str | None = Query(None),
    actor_id: str | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    user: UserRecord = Depends(require_faculty),
) -> AuditLogListResponse:
    """Audit history, newest first."""
    logs = list_audit_logs(resource_id=resource_id, actor_id=actor_id, limit=limit)
    return AuditLogListResponse(
        audit_logs=[AuditLogResponse.model_validate(log) for log in logs],
        count=len(logs),
    )
