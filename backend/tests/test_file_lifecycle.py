"""
Tests for evidence upload lifecycle.

Tests the full upload path against a real document store and blob store:
1. Successful upload marks the method Submitted and recomputes the aggregate
2. Re-upload after reopening keeps every previous file in history, in order
3. Gate denials (deadline, state, missing method) write nothing
4. Storage failure leaves the assignment unchanged
5. Concurrent modification raises ConflictError
6. Persist failure reports the orphaned blob
7. Jury notification is sent once and never fails the upload
"""
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import evidence_doc, method_doc, seed_assignment, seed_user
from scorecard.models.scorecard import Assignment, VerificationStatus
from scorecard.services.errors import (
    ConflictError, NotFoundError, PersistFailure, PolicyDenied, StorageFailure, ValidationError,
)
from scorecard.services.workflow import FileLifecycleManager, IncomingFile, apply_upload
from scorecard.models.scorecard import EvidenceFile


def pdf(name="informe.pdf", content=b"%PDF-1.4 evidence"):
    return IncomingFile(content=content, filename=name, content_type="application/pdf")


def load(store, assignment_id):
    return Assignment.from_document(store.get_by_id("assigned_indicator", assignment_id))


@pytest.fixture
def owner_id(store):
    return seed_user(store, "Ana Torres")


@pytest.fixture
def juror_id(store):
    from scorecard.models.db_models import UserRole
    return seed_user(store, "Luis Rojas", role=UserRole.CALIFICADOR)


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def manager(store, blob_store, notifier):
    return FileLifecycleManager(store, blob_store, notifier)


# =============================================================================
# TEST: SUCCESSFUL UPLOAD
# =============================================================================

class TestSubmitEvidence:

    def test_upload_marks_method_submitted(self, manager, store, blob_store, owner_id, now):
        assignment_id = seed_assignment(store, owner_id)

        evidence = manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        assert evidence.original_name == "informe.pdf"
        assert evidence.file_name.startswith("informe_")
        assert evidence.file_name.endswith(".pdf")
        assert evidence.url == f"/api/files/Ana_Torres/{evidence.file_name}"
        assert evidence.size == len(b"%PDF-1.4 evidence")
        assert evidence.type == "application/pdf"
        assert blob_store.read(f"Ana_Torres/{evidence.file_name}") == b"%PDF-1.4 evidence"

        stored = load(store, assignment_id)
        method = stored.assigned_verification_methods[0]
        assert method.status == VerificationStatus.SUBMITTED
        assert method.submitted_file == evidence
        assert method.file_history == []
        assert stored.overall_status == VerificationStatus.SUBMITTED
        assert stored.revision == 1

    def test_method_name_whitespace_is_normalized(self, manager, store, owner_id, now):
        assignment_id = seed_assignment(store, owner_id)

        manager.submit_evidence(assignment_id, "  Informe\n anual ", owner_id, pdf(), now=now)

        method = load(store, assignment_id).assigned_verification_methods[0]
        assert method.name == "Informe anual"
        assert method.status == VerificationStatus.SUBMITTED

    def test_other_methods_untouched(self, manager, store, owner_id, now):
        due = now + timedelta(days=3)
        assignment_id = seed_assignment(store, owner_id, methods=[
            method_doc("Informe anual", due_date=due),
            method_doc("Acta de consejo", status="Approved", due_date=due),
        ])

        manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        stored = load(store, assignment_id)
        assert stored.assigned_verification_methods[1].status == VerificationStatus.APPROVED
        assert stored.overall_status == VerificationStatus.SUBMITTED

    def test_reupload_after_reopen_keeps_history_in_order(self, manager, store, owner_id, now):
        first = evidence_doc("primero.pdf", "2025-04-01")
        second = evidence_doc("segundo.pdf", "2025-05-01")
        assignment_id = seed_assignment(store, owner_id, methods=[
            method_doc(
                "Informe anual",
                status="Pending",
                due_date=now + timedelta(days=1),
                submitted_file=second,
                file_history=[first],
            ),
        ])

        evidence = manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf("tercero.pdf"), now=now)

        method = load(store, assignment_id).assigned_verification_methods[0]
        assert [f.name for f in method.file_history] == ["primero.pdf", "segundo.pdf"]
        assert method.submitted_file == evidence
        assert method.submitted_file.name == "tercero.pdf"


# =============================================================================
# TEST: DENIALS WRITE NOTHING
# =============================================================================

class TestSubmitEvidenceDenied:

    def test_deadline_passed(self, manager, store, blob_store, owner_id, now):
        assignment_id = seed_assignment(store, owner_id, methods=[
            method_doc("Informe anual", due_date=now - timedelta(minutes=1)),
        ])
        before = store.get_by_id("assigned_indicator", assignment_id)

        with pytest.raises(PolicyDenied) as exc:
            manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        assert exc.value.reason == "DeadlinePassed"
        assert exc.value.status_code == 403
        assert store.get_by_id("assigned_indicator", assignment_id) == before
        assert not blob_store.root.exists() or not any(blob_store.root.rglob("*.pdf"))

    def test_submitted_method_cannot_be_overwritten(self, manager, store, owner_id, now):
        assignment_id = seed_assignment(store, owner_id, methods=[
            method_doc("Informe anual", status="Submitted", due_date=now + timedelta(days=1),
                       submitted_file=evidence_doc()),
        ], overall_status="Submitted")

        with pytest.raises(PolicyDenied) as exc:
            manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        assert exc.value.reason == "InvalidState"
        assert load(store, assignment_id).revision == 0

    def test_approved_method_past_due_writes_nothing(self, manager, store, blob_store, owner_id, notifier, now):
        assignment_id = seed_assignment(store, owner_id, jury=["j-1"], methods=[
            method_doc("Informe anual", status="Approved", due_date=now - timedelta(days=2),
                       submitted_file=evidence_doc()),
        ], overall_status="Approved")
        before = store.get_by_id("assigned_indicator", assignment_id)

        with pytest.raises(PolicyDenied) as exc:
            manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf("nuevo.pdf"), now=now)

        assert exc.value.reason == "InvalidState"
        assert store.get_by_id("assigned_indicator", assignment_id) == before
        assert not blob_store.root.exists() or not any(blob_store.root.rglob("*"))
        notifier.notify.assert_not_called()

    def test_unknown_method(self, manager, store, owner_id, now):
        assignment_id = seed_assignment(store, owner_id)

        with pytest.raises(NotFoundError) as exc:
            manager.submit_evidence(assignment_id, "Encuesta", owner_id, pdf(), now=now)

        assert exc.value.reason == "MethodNotFound"

    def test_unknown_assignment(self, manager, owner_id, now):
        with pytest.raises(NotFoundError) as exc:
            manager.submit_evidence("missing", "Informe anual", owner_id, pdf(), now=now)
        assert exc.value.reason == "AssignmentNotFound"

    def test_unknown_user(self, manager, store, owner_id, now):
        assignment_id = seed_assignment(store, owner_id)
        with pytest.raises(NotFoundError) as exc:
            manager.submit_evidence(assignment_id, "Informe anual", "ghost", pdf(), now=now)
        assert exc.value.reason == "UserNotFound"

    @pytest.mark.parametrize("kwargs", [
        {"assignment_id": ""},
        {"method_name": ""},
        {"user_id": ""},
        {"upload": None},
    ])
    def test_missing_parameters(self, manager, store, owner_id, now, kwargs):
        assignment_id = seed_assignment(store, owner_id)
        args = {
            "assignment_id": assignment_id,
            "method_name": "Informe anual",
            "user_id": owner_id,
            "upload": pdf(),
        }
        args.update(kwargs)

        with pytest.raises(ValidationError) as exc:
            manager.submit_evidence(now=now, **args)
        assert exc.value.reason == "MissingParameters"

    def test_disallowed_file_type(self, manager, store, owner_id, now):
        assignment_id = seed_assignment(store, owner_id)

        with pytest.raises(ValidationError) as exc:
            manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf("foto.png"), now=now)

        assert exc.value.reason == "FileTypeNotAllowed"
        assert load(store, assignment_id).revision == 0


# =============================================================================
# TEST: FAILURE ORDERING
# =============================================================================

class TestSubmitEvidenceFailures:

    def test_storage_failure_leaves_assignment_unchanged(self, store, owner_id, notifier, now):
        blob_store = MagicMock()
        blob_store.save.side_effect = StorageFailure("disk full")
        manager = FileLifecycleManager(store, blob_store, notifier)
        assignment_id = seed_assignment(store, owner_id)
        before = store.get_by_id("assigned_indicator", assignment_id)

        with pytest.raises(StorageFailure):
            manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        assert store.get_by_id("assigned_indicator", assignment_id) == before
        notifier.notify.assert_not_called()

    def test_concurrent_change_raises_conflict(self, manager, store, blob_store, owner_id, now):
        assignment_id = seed_assignment(store, owner_id)
        real_save = blob_store.save

        def save_then_concurrent_write(*args, **kwargs):
            stored = real_save(*args, **kwargs)
            # Another request updates the assignment while this one is in flight
            store.update("assigned_indicator", assignment_id, {"jury": ["someone"]}, expected_revision=0)
            return stored

        with patch.object(blob_store, "save", side_effect=save_then_concurrent_write):
            with pytest.raises(ConflictError) as exc:
                manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        assert exc.value.status_code == 409
        stored = load(store, assignment_id)
        assert stored.revision == 1
        assert stored.jury == ["someone"]
        assert stored.assigned_verification_methods[0].status == VerificationStatus.PENDING

    def test_persist_failure_reports_orphaned_blob(self, manager, store, blob_store, owner_id, now):
        assignment_id = seed_assignment(store, owner_id)

        with patch.object(store, "update", side_effect=OperationalError("UPDATE", {}, Exception("locked"))):
            with pytest.raises(PersistFailure) as exc:
                manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        assert exc.value.orphaned_path.startswith("Ana_Torres/")
        assert blob_store.exists(exc.value.orphaned_path)
        assert load(store, assignment_id).revision == 0


# =============================================================================
# TEST: JURY NOTIFICATION
# =============================================================================

class TestJuryNotification:

    def test_jury_notified_with_owner_name(self, manager, store, owner_id, juror_id, notifier, now):
        assignment_id = seed_assignment(store, owner_id, jury=[juror_id])

        manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        notifier.notify.assert_called_once_with([juror_id], assignment_id, "Ana Torres")

    def test_no_jury_no_notification(self, manager, store, owner_id, notifier, now):
        assignment_id = seed_assignment(store, owner_id, jury=[])

        manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        notifier.notify.assert_not_called()

    def test_only_first_transition_to_submitted_notifies(self, manager, store, owner_id, juror_id, notifier, now):
        due = now + timedelta(days=2)
        assignment_id = seed_assignment(store, owner_id, jury=[juror_id], methods=[
            method_doc("Informe anual", due_date=due),
            method_doc("Acta de consejo", due_date=due),
        ])

        manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)
        manager.submit_evidence(assignment_id, "Acta de consejo", owner_id, pdf("acta.docx"), now=now)

        assert notifier.notify.call_count == 1
        assert load(store, assignment_id).revision == 2

    def test_notification_failure_does_not_fail_upload(self, manager, store, owner_id, juror_id, notifier, now):
        notifier.notify.side_effect = RuntimeError("inbox unavailable")
        assignment_id = seed_assignment(store, owner_id, jury=[juror_id])

        evidence = manager.submit_evidence(assignment_id, "Informe anual", owner_id, pdf(), now=now)

        assert evidence.original_name == "informe.pdf"
        assert load(store, assignment_id).overall_status == VerificationStatus.SUBMITTED


# =============================================================================
# TEST: PURE TRANSITION
# =============================================================================

class TestApplyUpload:

    def test_apply_upload_rechecks_gate(self, now):
        assignment = Assignment.from_document({
            "id": "a-1",
            "assigned_verification_methods": [
                method_doc("Informe anual", status="Approved", due_date=now + timedelta(days=1)),
            ],
        })
        new_file = EvidenceFile.from_dict(evidence_doc("nuevo.pdf"))

        with pytest.raises(PolicyDenied) as exc:
            apply_upload(assignment, "Informe anual", new_file, now)
        assert exc.value.reason == "InvalidState"

    def test_apply_upload_does_not_mutate_input(self, now):
        assignment = Assignment.from_document({
            "id": "a-1",
            "assigned_verification_methods": [
                method_doc("Informe anual", due_date=now + timedelta(days=1), submitted_file=evidence_doc()),
            ],
        })
        new_file = EvidenceFile.from_dict(evidence_doc("nuevo.pdf"))

        updated = apply_upload(assignment, "Informe anual", new_file, now)

        assert assignment.assigned_verification_methods[0].status == VerificationStatus.PENDING
        assert assignment.assigned_verification_methods[0].file_history == []
        assert updated.assigned_verification_methods[0].file_history[0].name == "previo.pdf"
