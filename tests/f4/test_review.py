"""Tests for review queue filters, paging and dashboard counters (F4)."""

from datetime import datetime, timedelta, timezone

import pytest

from credhub.core.review import (
    ReviewFilters,
    SelectionState,
    compute_faculty_stats,
    compute_student_summary,
    date_range_start,
    filter_certificates,
    filter_student_certificates,
    local_now,
    paginate,
    parse_timestamp,
)
from credhub.db.certificates_repository import CertificateRecord

NOW = datetime(2025, 3, 31, 15, 0, tzinfo=timezone.utc)
EASTERN = timezone(timedelta(hours=-5))


def _cert(
    cert_id,
    status="pending",
    category="academic",
    title="Python Basics",
    issuer="Coursera",
    student_name="Ana Lopez",
    submitted_at="2025-03-31T09:00:00+00:00",
    approved_at=None,
):
    return CertificateRecord(
        id=cert_id,
        student_id="u1",
        title=title,
        category=category,
        issuer=issuer,
        issue_date="2025-01-01",
        description=None,
        file_path=f"certificates/u1/{cert_id}.pdf",
        status=status,
        blockchain_verified=status == "approved",
        submitted_at=submitted_at,
        approved_at=approved_at,
        student_name=student_name,
    )


def _ids(certs):
    return [c.id for c in certs]


class TestParseTimestamp:
    def test_naive_is_utc(self):
        assert parse_timestamp("2025-01-01T10:00:00") == datetime(
            2025, 1, 1, 10, tzinfo=timezone.utc
        )

    def test_invalid(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("soon") is None


class TestDateRangeStart:
    def test_all(self):
        assert date_range_start("all", NOW) is None

    def test_today(self):
        assert date_range_start("today", NOW) == datetime(2025, 3, 31, tzinfo=timezone.utc)

    def test_today_uses_local_midnight(self):
        now = datetime(2025, 3, 31, 1, 0, tzinfo=EASTERN)
        assert date_range_start("today", now) == datetime(2025, 3, 31, tzinfo=EASTERN)

    def test_local_now_is_aware(self):
        now = local_now()
        assert now.tzinfo is not None
        assert now.utcoffset() == datetime.now().astimezone().utcoffset()

    def test_week(self):
        assert date_range_start("week", NOW) == datetime(2025, 3, 24, 15, tzinfo=timezone.utc)

    def test_month_clamps_day(self):
        assert date_range_start("month", NOW) == datetime(2025, 2, 28, 15, tzinfo=timezone.utc)

    def test_month_across_year(self):
        jan = datetime(2025, 1, 15, tzinfo=timezone.utc)
        assert date_range_start("month", jan) == datetime(2024, 12, 15, tzinfo=timezone.utc)


class TestFilterCertificates:
    """Faculty queue filters."""

    CERTS = [
        _cert("c1", title="Python Basics", submitted_at="2025-03-31T08:00:00+00:00"),
        _cert("c2", category="project", title="Capstone", student_name="Luis Perez",
              submitted_at="2025-03-27T08:00:00+00:00"),
        _cert("c3", category="workshop", issuer="IEEE",
              submitted_at="2025-03-10T08:00:00+00:00"),
        _cert("c4", status="approved", submitted_at="2025-01-05T08:00:00+00:00"),
    ]

    def test_default_is_pending_only(self):
        assert _ids(filter_certificates(self.CERTS, ReviewFilters(), NOW)) == ["c1", "c2", "c3"]

    def test_status_all(self):
        result = filter_certificates(self.CERTS, ReviewFilters(status="all"), NOW)
        assert _ids(result) == ["c1", "c2", "c3", "c4"]

    @pytest.mark.parametrize(
        "search,expected",
        [
            ("python", ["c1", "c3"]),
            ("LUIS", ["c2"]),
            ("ieee", ["c3"]),
            ("project", ["c2"]),
            ("   ", ["c1", "c2", "c3"]),
        ],
    )
    def test_search(self, search, expected):
        assert _ids(filter_certificates(self.CERTS, ReviewFilters(search=search), NOW)) == expected

    def test_category(self):
        result = filter_certificates(self.CERTS, ReviewFilters(category="workshop"), NOW)
        assert _ids(result) == ["c3"]

    @pytest.mark.parametrize(
        "date_range,expected",
        [("today", ["c1"]), ("week", ["c1", "c2"]), ("month", ["c1", "c2", "c3"])],
    )
    def test_date_ranges(self, date_range, expected):
        result = filter_certificates(self.CERTS, ReviewFilters(date_range=date_range), NOW)
        assert _ids(result) == expected

    def test_combined(self):
        filters = ReviewFilters(search="python", category="academic", date_range="today")
        assert _ids(filter_certificates(self.CERTS, filters, NOW)) == ["c1"]


class TestPaginate:
    def test_pages(self):
        items = list(range(25))
        page = paginate(items, page=3, per_page=10)
        assert page.items == [20, 21, 22, 23, 24]
        assert page.total == 25
        assert page.total_pages == 3

    def test_clamps_page(self):
        items = list(range(25))
        assert paginate(items, page=9, per_page=10).page == 3
        assert paginate(items, page=0, per_page=10).items == list(range(10))

    def test_empty(self):
        page = paginate([], page=2)
        assert page.items == []
        assert page.page == 1
        assert page.total_pages == 0


class TestSelectionState:
    PAGE = ["c1", "c2", "c3"]

    def test_select_all_and_clear(self):
        state = SelectionState()
        state.select_all(self.PAGE, True)
        assert state.selected == set(self.PAGE)
        assert state.all_selected

        state.select_all(self.PAGE, False)
        assert state.selected == set()
        assert not state.all_selected

    def test_toggle_tracks_all_selected(self):
        state = SelectionState()
        for cid in self.PAGE:
            state.toggle(cid, True, self.PAGE)
        assert state.all_selected

        state.toggle("c2", False, self.PAGE)
        assert state.selected == {"c1", "c3"}
        assert not state.all_selected

    def test_clear(self):
        state = SelectionState()
        state.select_all(self.PAGE, True)
        state.clear()
        assert state.selected == set()
        assert not state.all_selected


class TestFacultyStats:
    def test_counts(self):
        certs = [
            _cert("c1"),
            _cert("c2"),
            _cert("c3", status="approved", approved_at="2025-03-31T10:00:00+00:00",
                  submitted_at="2025-03-01T10:00:00+00:00"),
            _cert("c4", status="approved", approved_at="2025-03-30T10:00:00+00:00"),
            _cert("c5", status="rejected"),
        ]
        stats = compute_faculty_stats(certs, NOW)
        assert stats.pending_count == 2
        assert stats.approved_today == 1
        assert stats.total_processed == 3

    def test_empty(self):
        stats = compute_faculty_stats([], NOW)
        assert (stats.pending_count, stats.approved_today, stats.total_processed) == (0, 0, 0)

    def test_approved_today_by_local_date(self):
        certs = [
            _cert("c1", status="approved", approved_at="2025-03-31T03:00:00+00:00"),
            _cert("c2", status="approved", approved_at="2025-03-31T05:30:00+00:00"),
        ]
        stats = compute_faculty_stats(certs, datetime(2025, 3, 31, 1, 0, tzinfo=EASTERN))
        assert stats.approved_today == 1


class TestStudentSummary:
    def test_counts(self):
        certs = [
            _cert("c1", status="approved", category="academic"),
            _cert("c2", status="approved", category="project"),
            _cert("c3", status="approved", category="other", title="Side Project Demo"),
            _cert("c4", status="pending", category="project"),
            _cert("c5", status="rejected"),
        ]
        summary = compute_student_summary(certs)
        assert _ids(summary.approved) == ["c1", "c2", "c3"]
        assert summary.project_count == 2
        assert summary.course_count == 1
        assert summary.status_counts == {"pending": 1, "approved": 3, "rejected": 1}
        assert summary.total == 5

    def test_empty(self):
        summary = compute_student_summary([])
        assert summary.approved == []
        assert summary.total == 0


class TestFilterStudentCertificates:
    CERTS = [
        _cert("c1", status="approved", title="Python Basics"),
        _cert("c2", status="pending", issuer="IEEE", title="Robotics"),
        _cert("c3", status="rejected", category="workshop", title="Design"),
    ]

    def test_status(self):
        assert _ids(filter_student_certificates(self.CERTS, status="pending")) == ["c2"]
        assert _ids(filter_student_certificates(self.CERTS, status="all")) == ["c1", "c2", "c3"]

    def test_search_fields(self):
        assert _ids(filter_student_certificates(self.CERTS, search="ieee")) == ["c2"]
        assert _ids(filter_student_certificates(self.CERTS, search="WORKSHOP")) == ["c3"]
        assert _ids(filter_student_certificates(self.CERTS, search="python")) == ["c1"]
