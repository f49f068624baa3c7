"""Core business logic module.

Modules:
- auth: Roles, registration, sign-in and access tokens
- profiles: Student profile bootstrap
- certificate_schema: Upload form validation
- storage: Certificate file bucket and signed URLs
- certificates: Upload, approve and reject operations
- audit: Audit log writes for review actions
- review: Review queue filters, pagination and dashboard counters
- events: Realtime change feed
"""

__all__ = [
    "auth",
    "profiles",
    "certificate_schema",
    "storage",
    "certificates",
    "audit",
    "review",
    "events",
]
