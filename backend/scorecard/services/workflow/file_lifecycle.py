"""
File Lifecycle Manager

Applies an evidence upload to an assigned indicator.

Order of effects for submit_evidence():
1. Validate inputs, resolve user / assignment / method      (no writes)
2. Upload gate + file type/size checks                      (no writes)
3. Blob write                                               -> StorageFailure
4. apply_upload(): archive current file, attach new one,
   mark Submitted, recompute overall status                 (pure)
5. One document write of methods + overall status, guarded
   by the revision read in step 1                           -> ConflictError / PersistFailure
6. Jury notification when the assignment newly entered
   Submitted                                                (failures only logged)

The blob is always written before the document, so a failure can leave an
unreferenced blob behind but never a document pointing at a missing file.
Orphaned blobs are logged and left in place.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ...models.scorecard import Assignment, EvidenceFile, VerificationStatus
from ..dates import utcnow
from ..errors import (
    ConflictError, NotFoundError, PersistFailure, PolicyDenied, ValidationError,
)
from ..storage.blob_store import file_url, validate_evidence_file
from .status_aggregator import compute_overall_status
from .upload_gate import DENIAL_MESSAGES, UploadDenial, can_upload, find_method

logger = logging.getLogger(__name__)


FALLBACK_ACTOR_NAME = "A responsible user"


@dataclass(frozen=True)
class IncomingFile:
    """An upload as received from the client, before storage."""
    content: bytes
    filename: str
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


def denial_error(reason: UploadDenial) -> Exception:
    """Map a gate denial to the error surfaced to the caller."""
    message = DENIAL_MESSAGES[reason]
    if reason == UploadDenial.METHOD_NOT_FOUND:
        return NotFoundError(message, reason=reason.value)
    return PolicyDenied(message, reason=reason.value)


def apply_upload(
    assignment: Assignment,
    method_name: str,
    new_file: EvidenceFile,
    now: Optional[datetime] = None,
) -> Assignment:
    """
    Return a copy of `assignment` with `new_file` attached to the named method.

    The gate is re-checked here even though callers check it first. The
    method's previous file (if any) is appended to its history before the
    new one replaces it.
    """
    target = find_method(assignment.assigned_verification_methods, method_name)
    allowed, reason = can_upload(target, now)
    if not allowed:
        raise denial_error(reason)

    updated_methods = []
    for method in assignment.assigned_verification_methods:
        if method is target:
            history = list(method.file_history)
            if method.submitted_file is not None:
                history.append(method.submitted_file)
            method = method.with_changes(
                submitted_file=new_file,
                file_history=history,
                status=VerificationStatus.SUBMITTED,
            )
        updated_methods.append(method)

    return assignment.with_changes(
        assigned_verification_methods=updated_methods,
        overall_status=compute_overall_status(updated_methods),
    )


class FileLifecycleManager:
    """
    Orchestrates evidence uploads.

    Collaborators are injected:
    - store: document store (user / assigned_indicator collections)
    - blob_store: where file bytes go
    - notifier: NotificationDispatcher-compatible object with notify()
    """

    def __init__(self, store, blob_store, notifier=None):
        self.store = store
        self.blob_store = blob_store
        self.notifier = notifier

    def submit_evidence(
        self,
        assignment_id: str,
        method_name: str,
        user_id: str,
        upload: Optional[IncomingFile],
        now: Optional[datetime] = None,
    ) -> EvidenceFile:
        """Store an evidence file for one verification method. Returns its descriptor."""
        now = now or utcnow()

        if upload is None or not upload.filename or not assignment_id or not method_name or not user_id:
            raise ValidationError("Missing required parameters", reason="MissingParameters")

        user = self.store.get_by_id("user", user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", reason="UserNotFound")

        doc = self.store.get_by_id("assigned_indicator", assignment_id)
        if doc is None:
            raise NotFoundError(f"Assigned indicator {assignment_id} not found", reason="AssignmentNotFound")
        assignment = Assignment.from_document(doc)

        method = find_method(assignment.assigned_verification_methods, method_name)
        allowed, reason = can_upload(method, now)
        if not allowed:
            logger.warning(
                f"Upload denied ({reason.value}) for assignment {assignment_id}, "
                f"method {method_name!r}, user {user_id}"
            )
            raise denial_error(reason)

        validate_evidence_file(upload.filename, upload.size)

        # Blob first: a failure here raises StorageFailure before any document change
        stored = self.blob_store.save(
            upload.content,
            user.get("name") or user_id,
            assignment.indicator_id,
            method.name,
            upload.filename,
        )

        evidence = EvidenceFile(
            name=upload.filename,
            original_name=upload.filename,
            file_name=stored.file_name,
            url=file_url(stored.relative_path),
            uploaded_at=now.astimezone().date().isoformat(),
            size=stored.size,
            type=upload.content_type,
        )

        updated = apply_upload(assignment, method.name, evidence, now)

        try:
            self.store.update(
                "assigned_indicator",
                assignment_id,
                {
                    "assigned_verification_methods": updated.methods_document(),
                    "overall_status": updated.overall_status.value,
                },
                expected_revision=assignment.revision,
            )
        except ConflictError:
            logger.warning(
                f"Concurrent update of assignment {assignment_id}; "
                f"blob {stored.relative_path} left unreferenced"
            )
            raise
        except SQLAlchemyError as e:
            logger.exception(
                f"Persist failed for assignment {assignment_id}; "
                f"orphaned blob {stored.relative_path}"
            )
            raise PersistFailure(
                "The file was stored but the assignment could not be updated",
                orphaned_path=stored.relative_path,
            ) from e

        logger.info(
            f"Evidence {stored.file_name} submitted for assignment {assignment_id}, "
            f"method {method.name!r}: {assignment.overall_status.value} -> {updated.overall_status.value}"
        )

        if (
            updated.overall_status == VerificationStatus.SUBMITTED
            and assignment.overall_status != VerificationStatus.SUBMITTED
        ):
            self._notify_jury(updated)

        return evidence

    def _notify_jury(self, assignment: Assignment) -> None:
        if self.notifier is None or not assignment.jury:
            return
        try:
            owner = self.store.get_by_id("user", assignment.user_id)
            actor_name = (owner or {}).get("name") or FALLBACK_ACTOR_NAME
            self.notifier.notify(assignment.jury, assignment.id, actor_name)
        except Exception:
            logger.exception(f"Error notifying jury of assignment {assignment.id}")
