"""Repository functions for users table."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from credhub.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class UserRecord:
    """User record from database."""

    id: str
    email: str
    password_hash: str
    role: str
    full_name: str | None
    created_at: str


def insert_user(
    user_id: str,
    email: str,
    password_hash: str,
    role: str,
    full_name: str | None = None,
) -> None:
    """Insert a new user record.

    Raises:
        sqlite3.IntegrityError: If id or email already exists
    """
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO users (id, email, password_hash, role, full_name)
            VALUES (?, ?, ?, ?, ?)
            """,
            (user_id, email, password_hash, role, full_name),
        )

    logger.debug("users.inserted", user_id=user_id, role=role)


def get_user_by_id(user_id: str) -> UserRecord | None:
    """Get user by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_user_by_email(email: str) -> UserRecord | None:
    """Get user by email (case-insensitive)."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE lower(email) = lower(?)", (email,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def _row_to_record(row) -> UserRecord:
    """Convert database row to UserRecord."""
    return UserRecord(
        id=row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=row["role"],
        full_name=row["full_name"],
        created_at=row["created_at"],
    )
