"""SQLite database connection and schema management.

Provides connection management and schema initialization for credhub.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/credhub.db")

# Current database path (module-level, set by init_db)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/credhub.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    # Ensure directory exists
    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Return the path of the active database."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            cursor = conn.execute("SELECT * FROM certificates")
            rows = cursor.fetchall()
    """
    db_path = get_db_path()

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- users: accounts with a single role
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL CHECK(role IN ('student', 'faculty')),
            full_name TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- student_profiles: id is the owning user's id
        CREATE TABLE IF NOT EXISTS student_profiles (
            id TEXT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            roll_no TEXT,
            course TEXT,
            credits INTEGER NOT NULL DEFAULT 0,
            attendance_percentage REAL NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS certificates (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES student_profiles(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            category TEXT,
            issuer TEXT,
            issue_date TEXT,
            description TEXT,
            file_path TEXT,
            status TEXT NOT NULL DEFAULT 'pending' CHECK(status IN ('pending', 'approved', 'rejected')),
            blockchain_verified INTEGER NOT NULL DEFAULT 0,
            submitted_at TEXT NOT NULL,
            approved_at TEXT,
            approver_id TEXT REFERENCES users(id),
            rejection_reason TEXT
        );

        -- audit_logs: details is a JSON object
        CREATE TABLE IF NOT EXISTS audit_logs (
            id TEXT PRIMARY KEY,
            actor_id TEXT,
            action_type TEXT CHECK(action_type IN ('approve', 'reject', 'bulk_approve', 'bulk_reject')),
            resource_type TEXT,
            resource_id TEXT,
            details TEXT DEFAULT '{}',
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_certificates_student ON certificates(student_id);
        CREATE INDEX IF NOT EXISTS idx_certificates_status ON certificates(status);
        CREATE INDEX IF NOT EXISTS idx_audit_logs_resource ON audit_logs(resource_id);
        """
    )
