"""Certificate upload and review operations.

Responsibilities:
- Store an uploaded certificate file and create its pending record
- Issue signed download URLs for certificate files
- Approve or reject certificates (single or bulk) with audit logging
- Publish change events for realtime listeners

Upload and URL helpers report failures through their return value;
review operations raise on invalid requests.
"""

from __future__ import annotations

import re
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from credhub.config.app_config import load_app_config
from credhub.core.audit import (
    AuditedCertificate,
    AuditResult,
    log_bulk_certificate_approval,
    log_bulk_certificate_rejection,
    log_certificate_approval,
    log_certificate_rejection,
)
from credhub.core.certificate_schema import CertificateForm
from credhub.core.events import ChangeEvent, ChangeFeed, get_change_feed
from credhub.core.review import filter_student_certificates
from credhub.core.storage import (
    FileStorage,
    StorageError,
    create_signed_url,
    get_storage,
)
from credhub.db.certificates_repository import (
    CertificateRecord,
    get_certificate_by_id,
    get_certificates_by_ids,
    get_certificates_by_student,
    insert_certificate,
    update_certificates_status,
)
from credhub.db.profiles_repository import get_profile
from credhub.db.users_repository import UserRecord
from credhub.utils.validators import CertificateNotFoundError

logger = structlog.get_logger(__name__)

CERTIFICATES_TABLE = "certificates"
CERTIFICATES_FOLDER = "certificates"
EXTENSION_PATTERN = re.compile(r"[A-Za-z0-9]{1,10}")
CONTENT_TYPE_EXTENSIONS = {
    "application/pdf": "pdf",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
}


@dataclass
class UploadResult:
    """Outcome of a certificate upload."""

    success: bool
    certificate_id: str | None = None
    error: str | None = None


@dataclass
class ReviewResult:
    """Outcome of an approve/reject action."""

    action: str
    certificate_ids: list[str]
    audit_logged: bool
    audit_error: str | None = None
    certificates: list[CertificateRecord] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.certificate_ids)


class ReviewError(Exception):
    """Invalid review request (empty selection, missing reason)."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_file_path(student_id: str, filename: str, content_type: str | None = None) -> str:
    """certificates/<student_id>/<uuid4>.<ext of filename>

    Extensions that are not plain alphanumerics are replaced by one derived
    from the content type.
    """
    extension = filename.rsplit(".", 1)[-1]
    if not EXTENSION_PATTERN.fullmatch(extension):
        extension = CONTENT_TYPE_EXTENSIONS.get(content_type or "", "bin")
    return f"{CERTIFICATES_FOLDER}/{student_id}/{uuid.uuid4()}.{extension}"


# =============================================================================
# UPLOAD
# =============================================================================


def upload_certificate(
    student_id: str,
    form: CertificateForm,
    user: UserRecord | None,
    storage: FileStorage | None = None,
    feed: ChangeFeed | None = None,
) -> UploadResult:
    """Store the file and create a pending certificate record.

    If the record cannot be saved, the stored file is removed again.
    """
    if user is None:
        logger.warning("certificates.upload_unauthenticated", student_id=student_id)
        return UploadResult(
            success=False, error="You must be logged in to upload certificates"
        )

    if user.id != student_id:
        logger.warning(
            "certificates.upload_forbidden", user_id=user.id, student_id=student_id
        )
        return UploadResult(
            success=False,
            error="You can only upload certificates to your own profile",
        )

    storage = storage or get_storage()
    feed = feed or get_change_feed()

    try:
        if get_profile(student_id) is None:
            logger.warning("certificates.profile_missing", student_id=student_id)
            return UploadResult(
                success=False,
                error="Student profile not found. Please contact support.",
            )

        file_path = build_file_path(student_id, form.file.filename, form.file.content_type)
        logger.info("certificates.uploading", path=file_path)

        try:
            stored_path = storage.upload(file_path, form.file.content, upsert=False)
        except StorageError as e:
            logger.error("certificates.file_upload_failed", path=file_path, error=str(e))
            return UploadResult(success=False, error=f"Failed to upload file: {e}")

        certificate_id = str(uuid.uuid4())
        try:
            insert_certificate(
                certificate_id=certificate_id,
                student_id=student_id,
                title=form.title,
                category=form.category,
                issuer=form.issuer,
                issue_date=form.issue_date,
                description=form.description,
                file_path=stored_path,
                submitted_at=_now_iso(),
            )
        except sqlite3.Error as e:
            logger.error(
                "certificates.insert_failed", path=stored_path, error=str(e)
            )
            storage.remove([stored_path])
            return UploadResult(
                success=False,
                error=f"Failed to save certificate record: {e}",
            )
    except Exception:
        logger.exception("certificates.upload_unexpected_error", student_id=student_id)
        return UploadResult(
            success=False,
            error="An unexpected error occurred. Please try again.",
        )

    logger.info(
        "certificates.uploaded", certificate_id=certificate_id, student_id=student_id
    )

    record = get_certificate_by_id(certificate_id)
    if record is not None:
        feed.publish(
            ChangeEvent(
                event_type="INSERT", table=CERTIFICATES_TABLE, record=record.to_dict()
            )
        )

    return UploadResult(success=True, certificate_id=certificate_id)


def get_certificate_file_url(file_path: str | None, expires_in: int | None = None) -> str | None:
    """Signed download URL for a stored file, None on failure."""
    if not file_path:
        return None

    config = load_app_config()
    if expires_in is None:
        expires_in = config.storage.signed_url_ttl_seconds

    try:
        return create_signed_url(file_path, expires_in, config=config)
    except StorageError as e:
        logger.error("certificates.signed_url_failed", path=file_path, error=str(e))
        return None


# =============================================================================
# QUERIES
# =============================================================================


def get_certificate(certificate_id: str) -> CertificateRecord:
    """Get a certificate.

    Raises:
        CertificateNotFoundError: If it does not exist
    """
    record = get_certificate_by_id(certificate_id)
    if record is None:
        raise CertificateNotFoundError(certificate_id)
    return record


def list_student_certificates(
    student_id: str,
    status: str | None = None,
    search: str = "",
) -> list[CertificateRecord]:
    """A student's certificates, newest first, filtered."""
    certificates = get_certificates_by_student(student_id)
    return filter_student_certificates(certificates, status=status, search=search)


# =============================================================================
# REVIEW
# =============================================================================


def _load_for_review(certificate_ids: list[str]) -> tuple[list[str], list[CertificateRecord]]:
    if not certificate_ids:
        raise ReviewError("No certificates selected")

    # dedupe, keep request order
    ids = list(dict.fromkeys(certificate_ids))
    records = {c.id: c for c in get_certificates_by_ids(ids)}

    missing = [cid for cid in ids if cid not in records]
    if missing:
        raise CertificateNotFoundError(missing[0])

    return ids, [records[cid] for cid in ids]


def _publish_updates(
    feed: ChangeFeed,
    before: list[CertificateRecord],
) -> list[CertificateRecord]:
    after = {c.id: c for c in get_certificates_by_ids([c.id for c in before])}
    updated = []
    for old in before:
        new = after.get(old.id)
        if new is None:
            continue
        updated.append(new)
        feed.publish(
            ChangeEvent(
                event_type="UPDATE",
                table=CERTIFICATES_TABLE,
                record=new.to_dict(),
                old_record=old.to_dict(),
            )
        )
    return updated


def _audited(records: list[CertificateRecord]) -> list[AuditedCertificate]:
    return [
        AuditedCertificate(id=c.id, title=c.title, student_name=c.student_name)
        for c in records
    ]


def approve_certificates(
    certificate_ids: list[str],
    approver_id: str,
    feed: ChangeFeed | None = None,
) -> ReviewResult:
    """Approve certificates and write audit entries.

    Raises:
        ReviewError: If no ids are given
        CertificateNotFoundError: If any id is unknown
    """
    feed = feed or get_change_feed()
    ids, records = _load_for_review(certificate_ids)

    update_certificates_status(
        ids,
        status="approved",
        approver_id=approver_id,
        approved_at=_now_iso(),
        blockchain_verified=True,
    )

    if len(ids) == 1:
        cert = records[0]
        audit = log_certificate_approval(approver_id, cert.id, cert.title, cert.student_name)
    else:
        audit = log_bulk_certificate_approval(approver_id, ids, _audited(records))

    _warn_audit_failure(audit, "approve", ids)
    updated = _publish_updates(feed, records)

    logger.info("certificates.approved", count=len(ids), approver_id=approver_id)
    return ReviewResult(
        action="approve",
        certificate_ids=ids,
        audit_logged=audit.success,
        audit_error=audit.error,
        certificates=updated,
    )


def reject_certificates(
    certificate_ids: list[str],
    reason: str,
    approver_id: str,
    feed: ChangeFeed | None = None,
) -> ReviewResult:
    """Reject certificates with a reason and write audit entries.

    Raises:
        ReviewError: If no ids are given or the reason is blank
        CertificateNotFoundError: If any id is unknown
    """
    reason = (reason or "").strip()
    if not reason:
        raise ReviewError("A rejection reason is required to proceed.")

    feed = feed or get_change_feed()
    ids, records = _load_for_review(certificate_ids)

    update_certificates_status(
        ids,
        status="rejected",
        approver_id=approver_id,
        rejection_reason=reason,
    )

    if len(ids) == 1:
        cert = records[0]
        audit = log_certificate_rejection(
            approver_id, cert.id, cert.title, reason, cert.student_name
        )
    else:
        audit = log_bulk_certificate_rejection(approver_id, ids, _audited(records), reason)

    _warn_audit_failure(audit, "reject", ids)
    updated = _publish_updates(feed, records)

    logger.info("certificates.rejected", count=len(ids), approver_id=approver_id)
    return ReviewResult(
        action="reject",
        certificate_ids=ids,
        audit_logged=audit.success,
        audit_error=audit.error,
        certificates=updated,
    )


def _warn_audit_failure(audit: AuditResult, action: str, ids: list[str]) -> None:
    if not audit.success:
        logger.warning(
            "certificates.audit_not_logged", action=action, count=len(ids), error=audit.error
        )
