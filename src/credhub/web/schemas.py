"""Pydantic schemas for Web API.

Serialization models for users, profiles, certificates, review actions
and audit logs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


# =============================================================================
# AUTH SCHEMAS
# =============================================================================


class RegisterRequest(BaseModel):
    """Request body for creating an account."""

    email: str = Field(..., max_length=200)
    password: str = Field(..., max_length=200)
    confirm_password: str = Field(..., max_length=200)
    role: str | None = None
    full_name: str | None = Field(default=None, max_length=200)


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    """Response for a user account."""

    id: str
    email: str
    role: str
    full_name: str | None = None
    created_at: str

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Response for a successful sign-in."""

    access_token: str
    token_type: str = "bearer"
    redirect_path: str
    user: UserResponse


# =============================================================================
# STUDENT SCHEMAS
# =============================================================================


class StudentProfileResponse(BaseModel):
    id: str
    roll_no: str | None = None
    course: str | None = None
    credits: int = 0
    attendance_percentage: float = 0
    created_at: str

    model_config = {"from_attributes": True}


class StudentProfileUpdate(BaseModel):
    """Request body for updating a profile. Omitted fields stay unchanged."""

    roll_no: str | None = Field(default=None, max_length=50)
    course: str | None = Field(default=None, max_length=200)


# =============================================================================
# CERTIFICATE SCHEMAS
# =============================================================================


class CertificateResponse(BaseModel):
    """Response for a certificate."""

    id: str
    student_id: str
    title: str
    category: str | None = None
    issuer: str | None = None
    issue_date: str | None = None
    description: str | None = None
    file_path: str | None = None
    status: str
    blockchain_verified: bool = False
    submitted_at: str
    approved_at: str | None = None
    approver_id: str | None = None
    rejection_reason: str | None = None
    student_name: str | None = None
    student_roll_no: str | None = None
    student_course: str | None = None

    model_config = {"from_attributes": True}


class CertificateListResponse(BaseModel):
    certificates: list[CertificateResponse]
    count: int


class UploadResponse(BaseModel):
    certificate_id: str
    status: str = "pending"


class CategoryResponse(BaseModel):
    value: str
    label: str


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]


class FileUrlResponse(BaseModel):
    url: str
    expires_in: int


class StudentDashboardResponse(BaseModel):
    """Counters and approved certificates for the student dashboard."""

    profile: StudentProfileResponse | None = None
    approved_count: int
    project_count: int
    course_count: int
    status_counts: dict[str, int]
    approved_certificates: list[CertificateResponse]


# =============================================================================
# FACULTY SCHEMAS
# =============================================================================


class ReviewQueueResponse(BaseModel):
    """One page of the faculty review queue."""

    certificates: list[CertificateResponse]
    page: int
    per_page: int
    total: int
    total_pages: int
    filters: dict[str, str]


class FacultyStatsResponse(BaseModel):
    pending_count: int
    approved_today: int
    total_processed: int


class ApproveRequest(BaseModel):
    certificate_ids: list[str] = Field(..., min_length=1)


class RejectRequest(BaseModel):
    certificate_ids: list[str] = Field(..., min_length=1)
    reason: str = Field(..., max_length=1000)


class ReviewActionResponse(BaseModel):
    action: str
    count: int
    certificate_ids: list[str]
    audit_logged: bool
    message: str


class AuditLogResponse(BaseModel):
    id: str
    actor_id: str | None = None
    action_type: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: str

    model_config = {"from_attributes": True}


class AuditLogListResponse(BaseModel):
    audit_logs: list[AuditLogResponse]
    count: int


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
