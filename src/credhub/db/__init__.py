"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository modules for users, student profiles, certificates and audit logs
"""

from credhub.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
