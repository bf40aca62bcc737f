"""
Review Service

Jury actions on a single verification method: approve, reject, reopen
(back to Pending so the owner can upload again) or keep in review.

Only jury members of the assignment, or admins, may review.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ...models.db_models import UserRole
from ...models.scorecard import Assignment, VerificationStatus
from ..errors import NotFoundError, PersistFailure, PolicyDenied, ValidationError
from ..notifications.notification_service import notify_responsable_evaluation_complete
from .status_aggregator import compute_overall_status
from .upload_gate import find_method

logger = logging.getLogger(__name__)


REVIEWABLE_STATUSES = {
    VerificationStatus.APPROVED,
    VerificationStatus.REJECTED,
    VerificationStatus.PENDING,
    VerificationStatus.SUBMITTED,
}


class ReviewService:
    """Applies reviewer decisions and keeps the overall status derived."""

    def __init__(self, store, transport=None):
        self.store = store
        self.transport = transport

    def review_method(
        self,
        assignment_id: str,
        method_name: str,
        reviewer_id: str,
        new_status: VerificationStatus,
        notes: Optional[str] = None,
    ) -> Assignment:
        new_status = VerificationStatus(new_status)
        if new_status not in REVIEWABLE_STATUSES:
            raise ValidationError(
                f"Reviewers cannot set status {new_status.value}",
                reason="InvalidReviewStatus",
            )

        reviewer = self.store.get_by_id("user", reviewer_id)
        if reviewer is None:
            raise NotFoundError(f"User {reviewer_id} not found", reason="UserNotFound")

        doc = self.store.get_by_id("assigned_indicator", assignment_id)
        if doc is None:
            raise NotFoundError(f"Assigned indicator {assignment_id} not found", reason="AssignmentNotFound")
        assignment = Assignment.from_document(doc)

        if reviewer_id not in assignment.jury and reviewer.get("role") != UserRole.ADMIN.value:
            raise PolicyDenied("Only jury members can review this assignment", reason="NotJuryMember")

        target = find_method(assignment.assigned_verification_methods, method_name)
        if target is None:
            raise NotFoundError("Verification method not found", reason="MethodNotFound")

        methods = []
        for method in assignment.assigned_verification_methods:
            if method is target:
                method = method.with_changes(
                    status=new_status,
                    notes=notes if notes is not None else method.notes,
                )
            methods.append(method)

        updated = assignment.with_changes(
            assigned_verification_methods=methods,
            overall_status=compute_overall_status(methods),
        )

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
        except SQLAlchemyError as e:
            logger.exception(f"Persist failed while reviewing assignment {assignment_id}")
            raise PersistFailure("The review could not be saved") from e

        logger.info(
            f"Method {target.name!r} of assignment {assignment_id} set to {new_status.value} "
            f"by {reviewer_id}; overall {assignment.overall_status.value} -> {updated.overall_status.value}"
        )

        finished = {VerificationStatus.APPROVED, VerificationStatus.REJECTED}
        if updated.overall_status in finished and updated.overall_status != assignment.overall_status:
            self._notify_owner(updated, reviewer.get("name") or reviewer_id)

        return updated.with_changes(revision=assignment.revision + 1)

    def _notify_owner(self, assignment: Assignment, reviewer_name: str) -> None:
        if self.transport is None:
            return
        try:
            notify_responsable_evaluation_complete(
                self.transport,
                assignment.user_id,
                assignment.id,
                approved=assignment.overall_status == VerificationStatus.APPROVED,
                reviewer_name=reviewer_name,
            )
        except Exception:
            logger.exception(f"Error notifying owner of assignment {assignment.id}")
