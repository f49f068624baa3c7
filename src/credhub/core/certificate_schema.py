"""Certificate upload form validation.

Field rules:
- title: required, at most 200 characters
- category: required
- issuer: required, at most 100 characters
- issue_date: required ISO date, not in the future
- description: optional, at most 1000 characters
- file: PDF/JPEG/PNG, at most 5MB
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from credhub.utils.validators import parse_iso_date

# Supported file types for certificate uploads
ACCEPTED_FILE_TYPES = ("application/pdf", "image/jpeg", "image/jpg", "image/png")
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB

TITLE_MAX_LENGTH = 200
ISSUER_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000

# Certificate categories (value, label)
CERTIFICATE_CATEGORIES = (
    ("academic", "Academic Course"),
    ("certification", "Professional Certification"),
    ("project", "Project Certificate"),
    ("internship", "Internship Certificate"),
    ("workshop", "Workshop/Seminar"),
    ("competition", "Competition/Contest"),
    ("volunteer", "Volunteer Work"),
    ("other", "Other"),
)


@dataclass
class UploadedFile:
    """A file received from the client."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Text after the last dot of the filename."""
        return self.filename.rsplit(".", 1)[-1]


@dataclass
class CertificateForm:
    """Validated certificate upload form."""

    title: str
    category: str
    issuer: str
    issue_date: str
    file: UploadedFile
    description: str | None = None


class CertificateValidationError(Exception):
    """Certificate form failed validation."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


def get_category_label(value: str) -> str:
    """Human label for a category value; unknown values are returned as-is."""
    for cat_value, label in CERTIFICATE_CATEGORIES:
        if cat_value == value:
            return label
    return value


def validate_certificate_form(
    title: str,
    category: str,
    issuer: str,
    issue_date: str,
    file: UploadedFile | None,
    description: str | None = None,
    today: date | None = None,
) -> CertificateForm:
    """Validate all fields of a certificate upload.

    Args:
        today: Reference date for the future-date check (defaults to today)

    Raises:
        CertificateValidationError: With one message per failing field
    """
    today = today or date.today()
    errors: dict[str, str] = {}

    if not title:
        errors["title"] = "Certificate title is required"
    elif len(title) > TITLE_MAX_LENGTH:
        errors["title"] = "Title must be less than 200 characters"

    if not category:
        errors["category"] = "Category is required"

    if not issuer:
        errors["issuer"] = "Issuer is required"
    elif len(issuer) > ISSUER_MAX_LENGTH:
        errors["issuer"] = "Issuer must be less than 100 characters"

    if not issue_date:
        errors["issue_date"] = "Issue date is required"
    else:
        parsed = parse_iso_date(issue_date)
        if parsed is None:
            errors["issue_date"] = "Issue date must be a valid date"
        elif parsed > today:
            errors["issue_date"] = "Issue date cannot be in the future"

    if description and len(description) > DESCRIPTION_MAX_LENGTH:
        errors["description"] = "Description must be less than 1000 characters"

    if file is None:
        errors["file"] = "A certificate file is required"
    elif file.size > MAX_FILE_SIZE:
        errors["file"] = "File size must be less than 5MB"
    elif file.content_type not in ACCEPTED_FILE_TYPES:
        errors["file"] = "Only PDF and image files (JPEG, PNG) are allowed"

    if errors:
        raise CertificateValidationError(errors)

    return CertificateForm(
        title=title,
        category=category,
        issuer=issuer,
        issue_date=parsed.isoformat(),
        file=file,
        description=description or None,
    )
