"""Audit logging for certificate review actions.

Every approval or rejection writes one audit row per certificate. Bulk
actions mark their rows with bulk_operation/bulk_count and are written in
a single transaction. Logging failures are reported in AuditResult, never
raised, so a review action is not undone by a failed audit write.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

import structlog

from credhub.db.audit_repository import (
    AuditLogRecord,
    get_audit_logs,
    insert_audit_logs,
)

logger = structlog.get_logger(__name__)

ActionType = Literal["approve", "reject", "bulk_approve", "bulk_reject"]


@dataclass
class AuditLogEntry:
    """A single audit event."""

    actor_id: str
    action_type: ActionType
    resource_id: str
    resource_type: str = "certificate"
    details: dict[str, Any] = field(default_factory=dict)

    def to_row(self) -> dict[str, Any]:
        return {
            "id": str(uuid.uuid4()),
            "actor_id": self.actor_id,
            "action_type": self.action_type,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "details": self.details,
            "created_at": _now_iso(),
        }


@dataclass
class AuditResult:
    """Outcome of an audit write."""

    success: bool
    error: str | None = None


@dataclass
class AuditedCertificate:
    """Certificate fields recorded in audit details."""

    id: str
    title: str
    student_name: str | None = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _write(entries: list[AuditLogEntry], event: str) -> AuditResult:
    try:
        insert_audit_logs([e.to_row() for e in entries])
    except sqlite3.Error as e:
        logger.error(event, error=str(e), count=len(entries))
        return AuditResult(success=False, error=str(e))
    return AuditResult(success=True)


def log_audit_entry(entry: AuditLogEntry) -> AuditResult:
    """Write one audit entry."""
    return _write([entry], "audit.insert_failed")


def log_certificate_approval(
    actor_id: str,
    certificate_id: str,
    certificate_title: str,
    student_name: str | None = None,
) -> AuditResult:
    return log_audit_entry(
        AuditLogEntry(
            actor_id=actor_id,
            action_type="approve",
            resource_id=certificate_id,
            details={
                "certificate_title": certificate_title,
                "student_name": student_name,
                "timestamp": _now_iso(),
            },
        )
    )


def log_certificate_rejection(
    actor_id: str,
    certificate_id: str,
    certificate_title: str,
    rejection_reason: str,
    student_name: str | None = None,
) -> AuditResult:
    return log_audit_entry(
        AuditLogEntry(
            actor_id=actor_id,
            action_type="reject",
            resource_id=certificate_id,
            details={
                "certificate_title": certificate_title,
                "student_name": student_name,
                "rejection_reason": rejection_reason,
                "timestamp": _now_iso(),
            },
        )
    )


def log_bulk_certificate_approval(
    actor_id: str,
    certificate_ids: list[str],
    certificates: list[AuditedCertificate],
) -> AuditResult:
    """Write one bulk_approve row per certificate.

    bulk_count is the size of the requested id list.
    """
    timestamp = _now_iso()
    entries = [
        AuditLogEntry(
            actor_id=actor_id,
            action_type="bulk_approve",
            resource_id=cert.id,
            details={
                "certificate_title": cert.title,
                "student_name": cert.student_name,
                "bulk_operation": True,
                "bulk_count": len(certificate_ids),
                "timestamp": timestamp,
            },
        )
        for cert in certificates
    ]
    return _write(entries, "audit.bulk_insert_failed")


def log_bulk_certificate_rejection(
    actor_id: str,
    certificate_ids: list[str],
    certificates: list[AuditedCertificate],
    rejection_reason: str,
) -> AuditResult:
    """Write one bulk_reject row per certificate."""
    timestamp = _now_iso()
    entries = [
        AuditLogEntry(
            actor_id=actor_id,
            action_type="bulk_reject",
            resource_id=cert.id,
            details={
                "certificate_title": cert.title,
                "student_name": cert.student_name,
                "rejection_reason": rejection_reason,
                "bulk_operation": True,
                "bulk_count": len(certificate_ids),
                "timestamp": timestamp,
            },
        )
        for cert in certificates
    ]
    return _write(entries, "audit.bulk_reject_insert_failed")


def list_audit_logs(
    resource_id: str | None = None,
    actor_id: str | None = None,
    limit: int = 100,
) -> list[AuditLogRecord]:
    """Audit history, newest first."""
    return get_audit_logs(resource_id=resource_id, actor_id=actor_id, limit=limit)
