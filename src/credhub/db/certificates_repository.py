"""Repository functions for certificates table.

Reads join the owning student's profile and user rows so that review
screens get student name, roll number and course with each certificate.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import structlog

from credhub.db.database import get_db

logger = structlog.get_logger(__name__)

UNKNOWN_STUDENT = "Unknown Student"

_SELECT_JOINED = """
    SELECT c.*,
           p.roll_no AS student_roll_no,
           p.course AS student_course,
           u.full_name AS student_full_name
    FROM certificates c
    LEFT JOIN student_profiles p ON p.id = c.student_id
    LEFT JOIN users u ON u.id = c.student_id
"""


@dataclass
class CertificateRecord:
    """Certificate record from database."""

    id: str
    student_id: str
    title: str
    category: str | None
    issuer: str | None
    issue_date: str | None
    description: str | None
    file_path: str | None
    status: str
    blockchain_verified: bool
    submitted_at: str
    approved_at: str | None = None
    approver_id: str | None = None
    rejection_reason: str | None = None
    student_name: str = UNKNOWN_STUDENT
    student_roll_no: str | None = None
    student_course: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


def insert_certificate(
    certificate_id: str,
    student_id: str,
    title: str,
    category: str,
    issuer: str,
    issue_date: str,
    description: str | None,
    file_path: str,
    submitted_at: str,
    status: str = "pending",
) -> None:
    """Insert a new certificate record.

    Raises:
        sqlite3.IntegrityError: If the id exists or the student profile does not
    """
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO certificates (
                id, student_id, title, category, issuer, issue_date,
                description, file_path, status, submitted_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                certificate_id,
                student_id,
                title,
                category,
                issuer,
                issue_date,
                description,
                file_path,
                status,
                submitted_at,
            ),
        )

    logger.debug("certificates.inserted", certificate_id=certificate_id)


def get_certificate_by_id(certificate_id: str) -> CertificateRecord | None:
    """Get certificate by ID."""
    with get_db() as conn:
        row = conn.execute(
            _SELECT_JOINED + " WHERE c.id = ?", (certificate_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_certificates_by_ids(certificate_ids: list[str]) -> list[CertificateRecord]:
    """Get all certificates whose id is in the given list."""
    if not certificate_ids:
        return []

    placeholders = ", ".join("?" for _ in certificate_ids)
    with get_db() as conn:
        rows = conn.execute(
            _SELECT_JOINED + f" WHERE c.id IN ({placeholders}) ORDER BY c.submitted_at DESC",
            tuple(certificate_ids),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def get_certificates_by_student(student_id: str) -> list[CertificateRecord]:
    """Get a student's certificates, newest submission first."""
    with get_db() as conn:
        rows = conn.execute(
            _SELECT_JOINED + " WHERE c.student_id = ? ORDER BY c.submitted_at DESC",
            (student_id,),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def get_all_certificates() -> list[CertificateRecord]:
    """Get all certificates, newest submission first."""
    with get_db() as conn:
        rows = conn.execute(
            _SELECT_JOINED + " ORDER BY c.submitted_at DESC"
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def get_all_certificate_ids() -> list[str]:
    """Get the ids of all certificates."""
    with get_db() as conn:
        rows = conn.execute("SELECT id FROM certificates").fetchall()

    return [row["id"] for row in rows]


def update_certificates_status(
    certificate_ids: list[str],
    status: str,
    approver_id: str | None,
    approved_at: str | None = None,
    rejection_reason: str | None = None,
    blockchain_verified: bool | None = None,
) -> int:
    """Update status of several certificates in one statement.

    Returns:
        Number of rows updated
    """
    if not certificate_ids:
        return 0

    assignments = ["status = ?", "approver_id = ?"]
    params: list[Any] = [status, approver_id]

    if approved_at is not None:
        assignments.append("approved_at = ?")
        params.append(approved_at)
    if rejection_reason is not None:
        assignments.append("rejection_reason = ?")
        params.append(rejection_reason)
    if blockchain_verified is not None:
        assignments.append("blockchain_verified = ?")
        params.append(int(blockchain_verified))

    placeholders = ", ".join("?" for _ in certificate_ids)
    params.extend(certificate_ids)

    with get_db() as conn:
        cursor = conn.execute(
            f"UPDATE certificates SET {', '.join(assignments)} WHERE id IN ({placeholders})",
            tuple(params),
        )

    logger.debug(
        "certificates.status_updated",
        status=status,
        count=cursor.rowcount,
    )
    return cursor.rowcount


def _row_to_record(row) -> CertificateRecord:
    """Convert joined database row to CertificateRecord."""
    keys = row.keys()
    roll_no = row["student_roll_no"] if "student_roll_no" in keys else None
    full_name = row["student_full_name"] if "student_full_name" in keys else None

    return CertificateRecord(
        id=row["id"],
        student_id=row["student_id"],
        title=row["title"],
        category=row["category"],
        issuer=row["issuer"],
        issue_date=row["issue_date"],
        description=row["description"],
        file_path=row["file_path"],
        status=row["status"],
        blockchain_verified=bool(row["blockchain_verified"]),
        submitted_at=row["submitted_at"],
        approved_at=row["approved_at"],
        approver_id=row["approver_id"],
        rejection_reason=row["rejection_reason"],
        student_name=full_name or roll_no or UNKNOWN_STUDENT,
        student_roll_no=roll_no,
        student_course=row["student_course"] if "student_course" in keys else None,
    )
