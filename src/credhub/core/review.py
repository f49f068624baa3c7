"""Review queue and dashboard computations.

Pure functions over lists of CertificateRecord:
- filter_certificates: faculty search/category/date/status filters
- paginate: fixed-size pages
- SelectionState: bulk-selection bookkeeping for one page
- compute_faculty_stats / compute_student_summary: dashboard counters
- filter_student_certificates: student-side status + search
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Generic, TypeVar

from credhub.db.certificates_repository import CertificateRecord

ALL = "all"
STATUSES = ("pending", "approved", "rejected")
DATE_RANGES = (ALL, "today", "week", "month")
DEFAULT_PER_PAGE = 10

T = TypeVar("T")


@dataclass
class ReviewFilters:
    """Faculty review screen filters. "all" disables a filter."""

    search: str = ""
    category: str = ALL
    date_range: str = ALL
    status: str = "pending"


@dataclass
class Page(Generic[T]):
    """One page of results."""

    items: list[T]
    page: int
    per_page: int
    total: int
    total_pages: int


@dataclass
class FacultyStats:
    pending_count: int = 0
    approved_today: int = 0
    total_processed: int = 0


@dataclass
class StudentSummary:
    """Counters for the student dashboard."""

    approved: list[CertificateRecord] = field(default_factory=list)
    project_count: int = 0
    course_count: int = 0
    status_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.status_counts.values())


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def local_now() -> datetime:
    """Current time in the server's local timezone."""
    return datetime.now().astimezone()


def _subtract_month(moment: datetime) -> datetime:
    """Same wall-clock time one calendar month earlier, day clamped."""
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def date_range_start(date_range: str, now: datetime) -> datetime | None:
    """Earliest submitted_at accepted by a date filter, None for "all"."""
    if date_range == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_range == "week":
        return now - timedelta(days=7)
    if date_range == "month":
        return _subtract_month(now)
    return None


def _matches_search(cert: CertificateRecord, query: str) -> bool:
    haystack = (cert.title, cert.student_name, cert.category, cert.issuer)
    return any(query in (value or "").lower() for value in haystack)


def filter_certificates(
    certificates: list[CertificateRecord],
    filters: ReviewFilters,
    now: datetime | None = None,
) -> list[CertificateRecord]:
    """Apply the review filters, preserving input order."""
    now = now or local_now()
    filtered = certificates

    query = filters.search.strip().lower()
    if query:
        filtered = [c for c in filtered if _matches_search(c, query)]

    if filters.category != ALL:
        filtered = [c for c in filtered if c.category == filters.category]

    start = date_range_start(filters.date_range, now)
    if start is not None:
        filtered = [
            c
            for c in filtered
            if (submitted := parse_timestamp(c.submitted_at)) is not None
            and submitted >= start
        ]

    if filters.status != ALL:
        filtered = [c for c in filtered if c.status == filters.status]

    return filtered


def paginate(items: list[T], page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> Page[T]:
    """Slice items into the requested page.

    Page numbers are 1-based and clamped into [1, total_pages].
    """
    total = len(items)
    total_pages = math.ceil(total / per_page) if per_page > 0 else 0
    page = max(1, min(page, max(total_pages, 1)))
    start = (page - 1) * per_page
    return Page(
        items=items[start : start + per_page],
        page=page,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
    )


@dataclass
class SelectionState:
    """Selected certificate ids on the current page."""

    selected: set[str] = field(default_factory=set)
    all_selected: bool = False

    def select_all(self, page_ids: list[str], checked: bool) -> None:
        self.all_selected = checked
        self.selected = set(page_ids) if checked else set()

    def toggle(self, certificate_id: str, checked: bool, page_ids: list[str]) -> None:
        if checked:
            self.selected.add(certificate_id)
        else:
            self.selected.discard(certificate_id)
        self.all_selected = len(self.selected) == len(page_ids)

    def clear(self) -> None:
        self.selected = set()
        self.all_selected = False


def compute_faculty_stats(
    certificates: list[CertificateRecord],
    now: datetime | None = None,
) -> FacultyStats:
    """Pending count, approvals made today, and total processed."""
    now = now or local_now()
    today = now.date()

    approved_today = 0
    for cert in certificates:
        if cert.status != "approved":
            continue
        approved_at = parse_timestamp(cert.approved_at)
        if approved_at is not None and approved_at.astimezone(now.tzinfo).date() == today:
            approved_today += 1

    return FacultyStats(
        pending_count=sum(1 for c in certificates if c.status == "pending"),
        approved_today=approved_today,
        total_processed=sum(1 for c in certificates if c.status != "pending"),
    )


def compute_student_summary(certificates: list[CertificateRecord]) -> StudentSummary:
    """Approved list plus project/course counts over approved certificates."""
    approved = [c for c in certificates if c.status == "approved"]

    project_count = sum(
        1
        for c in approved
        if "project" in (c.category or "").lower() or "project" in (c.title or "").lower()
    )
    course_count = sum(
        1
        for c in approved
        if "course" in (c.category or "").lower() or "academic" in (c.category or "").lower()
    )

    status_counts = {status: 0 for status in STATUSES}
    for cert in certificates:
        status_counts[cert.status] = status_counts.get(cert.status, 0) + 1

    return StudentSummary(
        approved=approved,
        project_count=project_count,
        course_count=course_count,
        status_counts=status_counts,
    )


def filter_student_certificates(
    certificates: list[CertificateRecord],
    status: str | None = None,
    search: str = "",
) -> list[CertificateRecord]:
    """Student dashboard filter: status plus search over title, issuer, category."""
    query = search.strip().lower()
    result = []
    for cert in certificates:
        if status and status != ALL and cert.status != status:
            continue
        if query and not any(
            query in (value or "").lower() for value in (cert.title, cert.issuer, cert.category)
        ):
            continue
        result.append(cert)
    return result
