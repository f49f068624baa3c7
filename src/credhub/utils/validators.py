"""Data validation helpers.

Functions:
- validate_email(email) -> bool: Email format check
- resolve_certificate_id(prefix, candidates) -> str: Resolve prefix to unique id
- parse_iso_date(value) -> date | None: Strict ISO date parsing
"""

from __future__ import annotations

import re
from datetime import date, datetime

# Email validation pattern
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class AmbiguousCertificateIdError(Exception):
    """Raised when a certificate id prefix matches multiple certificates."""

    def __init__(self, prefix: str, candidates: list[str]):
        self.prefix = prefix
        self.candidates = candidates
        super().__init__(
            f"Prefix '{prefix}' is ambiguous. Candidates:\n"
            + "\n".join(f"  - {c}" for c in candidates)
        )


class CertificateNotFoundError(Exception):
    """Raised when no certificate matches the given id or prefix."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f"No certificate found matching '{prefix}'")


def validate_email(email: str) -> bool:
    """Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if the address looks like local@domain.tld
    """
    return bool(EMAIL_PATTERN.match(email or ""))


def resolve_certificate_id(prefix: str, candidates: list[str]) -> str:
    """Resolve a certificate id prefix to a unique full id.

    Args:
        prefix: Partial or full certificate id (e.g., "3f2a")
        candidates: List of all certificate ids

    Returns:
        The unique matching id

    Raises:
        CertificateNotFoundError: If no candidates match the prefix
        AmbiguousCertificateIdError: If multiple candidates match the prefix
    """
    # Exact match first
    if prefix in candidates:
        return prefix

    matches = [c for c in candidates if c.startswith(prefix)]

    if len(matches) == 0:
        raise CertificateNotFoundError(prefix)
    elif len(matches) == 1:
        return matches[0]
    else:
        raise AmbiguousCertificateIdError(prefix, matches)


def parse_iso_date(value: str) -> date | None:
    """Parse "YYYY-MM-DD" or a full ISO timestamp into a date.

    The whole value must parse; returns None for empty or malformed input.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None
