"""Tests for approving and rejecting certificates (F4)."""

import sqlite3

import pytest

from credhub.core.audit import list_audit_logs
from credhub.core.certificates import (
    ReviewError,
    approve_certificates,
    get_certificate,
    reject_certificates,
)
from credhub.core.events import get_change_feed
from credhub.utils.validators import CertificateNotFoundError


class TestApprove:
    def test_single(self, student, faculty, upload):
        cid = upload(student, "Python Basics")

        result = approve_certificates([cid], faculty.id)

        assert result.action == "approve"
        assert result.count == 1
        assert result.audit_logged is True
        cert = get_certificate(cid)
        assert cert.status == "approved"
        assert cert.blockchain_verified is True
        assert cert.approver_id == faculty.id
        assert cert.approved_at is not None

        [log] = list_audit_logs(resource_id=cid)
        assert log.action_type == "approve"
        assert log.details["certificate_title"] == "Python Basics"
        assert log.details["student_name"] == "Ana Lopez"

    def test_bulk(self, student, faculty, upload):
        ids = [upload(student, f"Cert {i}") for i in range(3)]

        result = approve_certificates(ids, faculty.id)

        assert result.count == 3
        assert all(get_certificate(cid).status == "approved" for cid in ids)
        logs = list_audit_logs(actor_id=faculty.id)
        assert len(logs) == 3
        assert {log.action_type for log in logs} == {"bulk_approve"}
        assert all(log.details["bulk_count"] == 3 for log in logs)

    def test_duplicate_ids_collapse(self, student, faculty, upload):
        cid = upload(student)
        result = approve_certificates([cid, cid], faculty.id)
        assert result.certificate_ids == [cid]
        assert list_audit_logs()[0].action_type == "approve"

    def test_leaves_others_pending(self, student, faculty, upload):
        keep = upload(student, "Keep")
        approve_certificates([upload(student, "Go")], faculty.id)
        assert get_certificate(keep).status == "pending"

    def test_empty_selection(self, faculty):
        with pytest.raises(ReviewError):
            approve_certificates([], faculty.id)

    def test_unknown_id(self, student, faculty, upload):
        cid = upload(student)
        with pytest.raises(CertificateNotFoundError):
            approve_certificates([cid, "missing"], faculty.id)
        assert get_certificate(cid).status == "pending"

    def test_publishes_update_with_old_row(self, student, faculty, upload):
        cid = upload(student)
        sub = get_change_feed().subscribe(
            "student-notifications", "certificates", "UPDATE", f"student_id=eq.{student.id}"
        )

        approve_certificates([cid], faculty.id)

        event = sub.queue.get_nowait()
        assert event.record["status"] == "approved"
        assert event.old_record["status"] == "pending"

    def test_audit_failure_keeps_approval(self, student, faculty, upload, monkeypatch):
        def broken(rows):
            raise sqlite3.OperationalError("disk full")

        cid = upload(student)
        monkeypatch.setattr("credhub.core.audit.insert_audit_logs", broken)

        result = approve_certificates([cid], faculty.id)

        assert result.audit_logged is False
        assert result.audit_error == "disk full"
        assert get_certificate(cid).status == "approved"


class TestReject:
    def test_single(self, student, faculty, upload):
        cid = upload(student)

        result = reject_certificates([cid], "  Blurry scan  ", faculty.id)

        assert result.action == "reject"
        cert = get_certificate(cid)
        assert cert.status == "rejected"
        assert cert.rejection_reason == "Blurry scan"
        assert cert.blockchain_verified is False
        [log] = list_audit_logs(resource_id=cid)
        assert log.action_type == "reject"
        assert log.details["rejection_reason"] == "Blurry scan"

    def test_bulk(self, student, other_student, faculty, upload):
        ids = [upload(student), upload(other_student)]

        reject_certificates(ids, "Duplicate submission", faculty.id)

        logs = list_audit_logs()
        assert {log.action_type for log in logs} == {"bulk_reject"}
        assert {log.details["student_name"] for log in logs} == {"Ana Lopez", "Luis Perez"}

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reason_required(self, student, faculty, upload, reason):
        cid = upload(student)
        with pytest.raises(ReviewError, match="rejection reason is required"):
            reject_certificates([cid], reason, faculty.id)
        assert get_certificate(cid).status == "pending"

    def test_empty_selection(self, faculty):
        with pytest.raises(ReviewError):
            reject_certificates([], "Reason", faculty.id)
