"""Tests for database schema and repositories (F1)."""

import sqlite3

import pytest

from credhub.db.audit_repository import get_audit_logs, insert_audit_logs
from credhub.db.certificates_repository import (
    UNKNOWN_STUDENT,
    get_all_certificates,
    get_certificate_by_id,
    get_certificates_by_ids,
    get_certificates_by_student,
    insert_certificate,
    update_certificates_status,
)
from credhub.db.database import get_db, init_db
from credhub.db.profiles_repository import get_profile, insert_profile, update_profile
from credhub.db.users_repository import get_user_by_email, get_user_by_id, insert_user


@pytest.fixture
def db(tmp_path):
    init_db(tmp_path / "test.db")
    return tmp_path / "test.db"


def _add_student(user_id="u1", email="a@x.io", full_name=None):
    insert_user(user_id, email, "hash", "student", full_name)
    insert_profile(user_id)


def _add_certificate(cert_id, student_id="u1", submitted_at="2025-01-01T10:00:00+00:00"):
    insert_certificate(
        certificate_id=cert_id,
        student_id=student_id,
        title=f"Cert {cert_id}",
        category="academic",
        issuer="MIT",
        issue_date="2024-12-01",
        description=None,
        file_path=f"certificates/{student_id}/{cert_id}.pdf",
        submitted_at=submitted_at,
    )


class TestSchema:
    """Tests for init_db."""

    def test_init_creates_tables(self, db):
        with get_db() as conn:
            names = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        assert {"users", "student_profiles", "certificates", "audit_logs"} <= names

    def test_init_is_idempotent(self, db):
        init_db(db)
        init_db(db)

    def test_role_constraint(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            insert_user("u9", "x@y.io", "hash", "admin")

    def test_status_constraint(self, db):
        _add_student()
        _add_certificate("c1")
        with pytest.raises(sqlite3.IntegrityError):
            update_certificates_status(["c1"], status="archived", approver_id=None)

    def test_rollback_on_error(self, db):
        with pytest.raises(RuntimeError):
            with get_db() as conn:
                conn.execute(
                    "INSERT INTO users (id, email, password_hash, role) VALUES ('u1', 'a@x.io', 'h', 'student')"
                )
                raise RuntimeError("boom")
        assert get_user_by_id("u1") is None


class TestUsersAndProfiles:
    def test_email_lookup_case_insensitive(self, db):
        insert_user("u1", "Ana@Example.edu", "hash", "student")
        assert get_user_by_email("ana@example.edu").id == "u1"

    def test_duplicate_email_rejected(self, db):
        insert_user("u1", "a@x.io", "hash", "student")
        with pytest.raises(sqlite3.IntegrityError):
            insert_user("u2", "a@x.io", "hash", "faculty")

    def test_profile_defaults(self, db):
        _add_student()
        profile = get_profile("u1")
        assert profile.roll_no is None
        assert profile.credits == 0
        assert profile.attendance_percentage == 0

    def test_profile_requires_user(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            insert_profile("ghost")

    def test_update_profile_keeps_unset_fields(self, db):
        _add_student()
        update_profile("u1", roll_no="R-17", course="CS")
        update_profile("u1", course="Math")
        profile = get_profile("u1")
        assert profile.roll_no == "R-17"
        assert profile.course == "Math"

    def test_update_missing_profile(self, db):
        assert update_profile("ghost", roll_no="x") is False


class TestCertificatesRepository:
    def test_insert_and_get(self, db):
        _add_student(full_name="Ana Lopez")
        _add_certificate("c1")
        cert = get_certificate_by_id("c1")
        assert cert.status == "pending"
        assert cert.blockchain_verified is False
        assert cert.student_name == "Ana Lopez"

    def test_student_name_falls_back_to_roll_no(self, db):
        _add_student()
        update_profile("u1", roll_no="R-42")
        _add_certificate("c1")
        assert get_certificate_by_id("c1").student_name == "R-42"

    def test_student_name_unknown(self, db):
        _add_student()
        _add_certificate("c1")
        assert get_certificate_by_id("c1").student_name == UNKNOWN_STUDENT

    def test_requires_student_profile(self, db):
        insert_user("u1", "a@x.io", "hash", "student")
        with pytest.raises(sqlite3.IntegrityError):
            _add_certificate("c1")

    def test_ordering_newest_first(self, db):
        _add_student()
        _add_certificate("old", submitted_at="2025-01-01T00:00:00+00:00")
        _add_certificate("new", submitted_at="2025-02-01T00:00:00+00:00")
        assert [c.id for c in get_all_certificates()] == ["new", "old"]
        assert [c.id for c in get_certificates_by_student("u1")] == ["new", "old"]

    def test_bulk_status_update(self, db):
        _add_student()
        insert_user("f1", "f@x.io", "hash", "faculty")
        for cid in ("c1", "c2", "c3"):
            _add_certificate(cid)

        count = update_certificates_status(
            ["c1", "c2"],
            status="approved",
            approver_id="f1",
            approved_at="2025-03-01T00:00:00+00:00",
            blockchain_verified=True,
        )

        assert count == 2
        approved = get_certificates_by_ids(["c1", "c2"])
        assert all(c.status == "approved" and c.blockchain_verified for c in approved)
        assert get_certificate_by_id("c3").status == "pending"

    def test_get_by_ids_empty(self, db):
        assert get_certificates_by_ids([]) == []


class TestAuditRepository:
    def test_insert_and_filter(self, db):
        insert_audit_logs(
            [
                {
                    "id": "a1",
                    "actor_id": "f1",
                    "action_type": "approve",
                    "resource_type": "certificate",
                    "resource_id": "c1",
                    "details": {"certificate_title": "T"},
                    "created_at": "2025-01-01T00:00:00+00:00",
                },
                {
                    "id": "a2",
                    "actor_id": "f1",
                    "action_type": "reject",
                    "resource_type": "certificate",
                    "resource_id": "c2",
                    "details": {},
                    "created_at": "2025-01-02T00:00:00+00:00",
                },
            ]
        )

        logs = get_audit_logs()
        assert [log.id for log in logs] == ["a2", "a1"]
        assert get_audit_logs(resource_id="c1")[0].details == {"certificate_title": "T"}

    def test_invalid_action_inserts_nothing(self, db):
        rows = [
            {
                "id": "a1",
                "actor_id": "f1",
                "action_type": "approve",
                "resource_type": "certificate",
                "resource_id": "c1",
                "details": {},
                "created_at": "2025-01-01T00:00:00+00:00",
            },
            {
                "id": "a2",
                "actor_id": "f1",
                "action_type": "delete",
                "resource_type": "certificate",
                "resource_id": "c2",
                "details": {},
                "created_at": "2025-01-01T00:00:00+00:00",
            },
        ]
        with pytest.raises(sqlite3.IntegrityError):
            insert_audit_logs(rows)
        assert get_audit_logs() == []
