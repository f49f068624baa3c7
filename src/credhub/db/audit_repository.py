"""Repository functions for audit_logs table."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from credhub.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class AuditLogRecord:
    """Audit log row from database."""

    id: str
    actor_id: str | None
    action_type: str | None
    resource_type: str | None
    resource_id: str | None
    created_at: str
    details: dict[str, Any] = field(default_factory=dict)


def insert_audit_logs(rows: list[dict[str, Any]]) -> None:
    """Insert one or more audit rows in a single transaction.

    Each row needs id, actor_id, action_type, resource_type,
    resource_id, details and created_at.

    Raises:
        sqlite3.Error: On constraint violation; no row is kept in that case
    """
    with get_db() as conn:
        conn.executemany(
            """
            INSERT INTO audit_logs (
                id, actor_id, action_type, resource_type,
                resource_id, details, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    r["id"],
                    r["actor_id"],
                    r["action_type"],
                    r["resource_type"],
                    r["resource_id"],
                    json.dumps(r.get("details") or {}),
                    r["created_at"],
                )
                for r in rows
            ],
        )

    logger.debug("audit_logs.inserted", count=len(rows))


def get_audit_logs(
    resource_id: str | None = None,
    actor_id: str | None = None,
    limit: int = 100,
) -> list[AuditLogRecord]:
    """Get audit logs, newest first."""
    clauses = []
    params: list[Any] = []
    if resource_id:
        clauses.append("resource_id = ?")
        params.append(resource_id)
    if actor_id:
        clauses.append("actor_id = ?")
        params.append(actor_id)

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    params.append(limit)

    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM audit_logs {where} ORDER BY created_at DESC, rowid DESC LIMIT ?",
            tuple(params),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def _row_to_record(row) -> AuditLogRecord:
    """Convert database row to AuditLogRecord."""
    return AuditLogRecord(
        id=row["id"],
        actor_id=row["actor_id"],
        action_type=row["action_type"],
        resource_type=row["resource_type"],
        resource_id=row["resource_id"],
        created_at=row["created_at"],
        details=json.loads(row["details"]) if row["details"] else {},
    )
