"""Student profile bootstrap and updates."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from credhub.db.profiles_repository import (
    StudentProfileRecord,
    get_profile,
    insert_profile,
    update_profile,
)

logger = structlog.get_logger(__name__)


@dataclass
class ProfileResult:
    """Outcome of a profile operation."""

    success: bool
    error: str | None = None


def ensure_student_profile(user_id: str) -> ProfileResult:
    """Create an empty student profile for user_id if none exists."""
    try:
        if get_profile(user_id) is not None:
            return ProfileResult(success=True)

        insert_profile(
            user_id=user_id,
            roll_no=None,
            course=None,
            credits=0,
            attendance_percentage=0,
        )
    except sqlite3.Error as e:
        logger.error("profiles.ensure_failed", user_id=user_id, error=str(e))
        return ProfileResult(success=False, error=str(e))

    logger.info("profiles.created", user_id=user_id)
    return ProfileResult(success=True)


def get_student_profile(user_id: str) -> StudentProfileRecord | None:
    """Get a student's profile."""
    return get_profile(user_id)


def update_student_profile(
    user_id: str,
    roll_no: str | None = None,
    course: str | None = None,
) -> StudentProfileRecord | None:
    """Update roll number and/or course.

    Returns:
        The updated profile, or None if the student has no profile
    """
    if not update_profile(user_id, roll_no=roll_no, course=course):
        return None
    return get_profile(user_id)
