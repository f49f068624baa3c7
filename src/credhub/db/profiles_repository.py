"""Repository functions for student_profiles table."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from credhub.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class StudentProfileRecord:
    """Student profile record from database."""

    id: str
    roll_no: str | None
    course: str | None
    credits: int
    attendance_percentage: float
    created_at: str


def insert_profile(
    user_id: str,
    roll_no: str | None = None,
    course: str | None = None,
    credits: int = 0,
    attendance_percentage: float = 0,
) -> None:
    """Insert a student profile keyed by the owning user's id.

    Raises:
        sqlite3.IntegrityError: If the profile exists or the user does not
    """
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO student_profiles (id, roll_no, course, credits, attendance_percentage)
            VALUES (?, ?, ?, ?, ?)
            """,
            (user_id, roll_no, course, credits, attendance_percentage),
        )

    logger.debug("profiles.inserted", user_id=user_id)


def get_profile(user_id: str) -> StudentProfileRecord | None:
    """Get profile by user ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM student_profiles WHERE id = ?", (user_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def update_profile(
    user_id: str,
    roll_no: str | None = None,
    course: str | None = None,
) -> bool:
    """Update roll number and course; None leaves a field unchanged.

    Returns:
        True if the profile exists, False otherwise
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE student_profiles SET
                roll_no = COALESCE(?, roll_no),
                course = COALESCE(?, course)
            WHERE id = ?
            """,
            (roll_no, course, user_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("profiles.updated", user_id=user_id)

    return updated


def _row_to_record(row) -> StudentProfileRecord:
    """Convert database row to StudentProfileRecord."""
    return StudentProfileRecord(
        id=row["id"],
        roll_no=row["roll_no"],
        course=row["course"],
        credits=row["credits"],
        attendance_percentage=row["attendance_percentage"],
        created_at=row["created_at"],
    )
