"""
Assignment Service

Creation and lookup of assigned indicators.

An asignador picks a responsible user, an indicator and a jury; every
verification method the indicator requires becomes a Pending method on the
new assignment, sharing one due date.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from ...models.scorecard import Assignment, VerificationMethod, VerificationStatus
from ..dates import to_utc, utcnow
from ..errors import NotFoundError, ValidationError
from ..notifications.notification_service import notify_responsable_new_assignment

logger = logging.getLogger(__name__)


class AssignmentService:

    def __init__(self, store, transport=None):
        self.store = store
        self.transport = transport

    def get(self, assignment_id: str) -> Assignment:
        doc = self.store.get_by_id("assigned_indicator", assignment_id)
        if doc is None:
            raise NotFoundError(f"Assigned indicator {assignment_id} not found", reason="AssignmentNotFound")
        return Assignment.from_document(doc)

    def exists(self, user_id: str, indicator_id: str) -> bool:
        return any(
            doc.get("indicator_id") == indicator_id
            for doc in self.store.list_where("assigned_indicator", "user_id", user_id)
        )

    def create_assignment(
        self,
        user_id: str,
        indicator_id: str,
        jury: Iterable[str] = (),
        due_date: Optional[datetime] = None,
        perspective_id: Optional[str] = None,
    ) -> Assignment:
        user = self.store.get_by_id("user", user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", reason="UserNotFound")

        indicator = self.store.get_by_id("indicator", indicator_id)
        if indicator is None:
            raise NotFoundError(f"Indicator {indicator_id} not found", reason="IndicatorNotFound")

        if self.exists(user_id, indicator_id):
            raise ValidationError(
                "This indicator is already assigned to the user",
                reason="DuplicateAssignment",
            )

        jury_ids = list(dict.fromkeys(jury))
        for reviewer_id in jury_ids:
            if self.store.get_by_id("user", reviewer_id) is None:
                raise NotFoundError(f"Jury member {reviewer_id} not found", reason="UserNotFound")

        due = to_utc(due_date) if due_date else None
        methods = [
            VerificationMethod(name=name, status=VerificationStatus.PENDING, due_date=due)
            for name in (indicator.get("verification_methods") or [])
        ]

        assignment_id = self.store.insert("assigned_indicator", {
            "user_id": user_id,
            "indicator_id": indicator_id,
            "perspective_id": perspective_id or indicator.get("perspective_id"),
            "responsable_name": user.get("name"),
            "jury": jury_ids,
            "assigned_verification_methods": [m.to_dict() for m in methods],
            "overall_status": VerificationStatus.PENDING.value,
            "assigned_date": utcnow().replace(tzinfo=None),
            "revision": 0,
        })

        logger.info(
            f"Indicator {indicator_id} assigned to {user_id} "
            f"({len(methods)} methods, {len(jury_ids)} jury members)"
        )

        if self.transport is not None:
            try:
                notify_responsable_new_assignment(
                    self.transport, user_id, assignment_id, indicator.get("name") or "", due_date=due
                )
            except Exception:
                logger.exception(f"Error notifying {user_id} of assignment {assignment_id}")

        return self.get(assignment_id)

    def list_for_user(self, user_id: str) -> List[Assignment]:
        docs = self.store.list_where("assigned_indicator", "user_id", user_id)
        return [Assignment.from_document(doc) for doc in docs]

    def list_for_jury(self, reviewer_id: str) -> List[Assignment]:
        # Jury is a JSON list; membership is checked here rather than in SQL
        docs = self.store.list_all("assigned_indicator")
        return [Assignment.from_document(doc) for doc in docs if reviewer_id in (doc.get("jury") or [])]
