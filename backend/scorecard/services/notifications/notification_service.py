"""
Notification Service

Notifications live in each user's document as a JSON list (the "inbox").
UserInboxTransport is the delivery mechanism; NotificationDispatcher and the
notify_* helpers decide what gets said to whom.

AUTHORITY: SYSTEM
Delivery is best-effort. Callers on a primary workflow path wrap dispatch
in try/except and only log failures.
"""
import logging
import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from ..dates import format_date, utcnow
from ..errors import NotFoundError, NotificationFailure, ValidationError
from ..storage.document_store import DocumentStore

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    """System events that produce notifications."""
    ASSIGNMENT_CREATED = "assignment_created"
    ASSIGNMENT_SUBMITTED = "assignment_submitted"
    ASSIGNMENT_EVALUATED = "assignment_evaluated"
    ASSIGNMENT_OVERDUE = "assignment_overdue"
    EVALUATION_REQUIRED = "evaluation_required"
    EVALUATION_REMINDER = "evaluation_reminder"
    SYSTEM_ALERT = "system_alert"
    ROLE_CHANGED = "role_changed"


KIND_TO_TYPE = {
    NotificationKind.ASSIGNMENT_CREATED: "info",
    NotificationKind.ASSIGNMENT_SUBMITTED: "info",
    NotificationKind.ASSIGNMENT_EVALUATED: "success",
    NotificationKind.ASSIGNMENT_OVERDUE: "warning",
    NotificationKind.EVALUATION_REQUIRED: "warning",
    NotificationKind.EVALUATION_REMINDER: "warning",
    NotificationKind.SYSTEM_ALERT: "error",
    NotificationKind.ROLE_CHANGED: "info",
}

PRIORITIES = ("low", "medium", "high")


def new_notification_id() -> str:
    return f"notif_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def shorten(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def create_notification(
    title: str,
    message: str,
    kind: NotificationKind,
    priority: str = "medium",
    action_url: Optional[str] = None,
    sender_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build an unread notification record."""
    if priority not in PRIORITIES:
        raise ValidationError(f"Invalid priority: {priority}", reason="InvalidPriority")

    notification = {
        "id": new_notification_id(),
        "title": title,
        "message": message,
        "type": KIND_TO_TYPE.get(kind, "info"),
        "priority": priority,
        "read": False,
        "created_at": (now or utcnow()).isoformat(),
    }
    # Only keep a non-blank action URL
    if action_url and action_url.strip():
        notification["action_url"] = action_url.strip()
    if sender_name:
        notification["sender_name"] = sender_name
    return notification


def unread(notifications: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [n for n in notifications if not n.get("read")]


def high_priority(notifications: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [n for n in notifications if n.get("priority") == "high"]


# =============================================================================
# TRANSPORT
# =============================================================================

class UserInboxTransport:
    """Delivers notifications by appending them to user documents."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def send_to_user(self, user_id: str, notification: Dict[str, Any]) -> None:
        user = self.store.get_by_id("user", user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", reason="UserNotFound")

        inbox = list(user.get("notifications") or [])
        inbox.append(notification)
        try:
            self.store.update("user", user_id, {"notifications": inbox})
        except SQLAlchemyError as e:
            raise NotificationFailure(f"Could not deliver notification to {user_id}") from e

    def send(self, recipient_ids: Iterable[str], payload: Dict[str, Any]) -> int:
        """
        Deliver a copy of `payload` to every recipient.

        Each copy gets its own id. Unknown recipients and failed inbox writes
        are logged and skipped, so one bad recipient never blocks the rest.
        Returns the number of inboxes written.
        """
        delivered = 0
        for recipient_id in recipient_ids:
            try:
                self.send_to_user(recipient_id, {**payload, "id": new_notification_id()})
                delivered += 1
            except NotFoundError:
                logger.warning(f"Skipping notification for unknown user {recipient_id}")
            except NotificationFailure:
                logger.exception(f"Inbox write failed for {recipient_id}, continuing with remaining recipients")
        return delivered


# =============================================================================
# DISPATCH
# =============================================================================

class NotificationDispatcher:
    """
    Tells the jury that an assignment has evidence waiting for review.

    Fire-and-forget from the workflow's point of view: the upload path never
    looks at the result.
    """

    def __init__(self, transport: UserInboxTransport):
        self.transport = transport

    def notify(self, recipient_ids: Iterable[str], subject_assignment_id: str, actor_name: str) -> None:
        recipients = list(dict.fromkeys(recipient_ids))
        if not recipients:
            return

        payload = create_notification(
            title="New evaluation pending",
            message=f"{actor_name} has submitted evidence that requires your evaluation.",
            kind=NotificationKind.EVALUATION_REQUIRED,
            priority="high",
            action_url="/admin/grading",
        )
        payload["assignment_id"] = subject_assignment_id

        delivered = self.transport.send(recipients, payload)
        logger.info(
            f"Evaluation request for assignment {subject_assignment_id} "
            f"delivered to {delivered}/{len(recipients)} jury members"
        )


def notify_responsable_new_assignment(
    transport: UserInboxTransport,
    user_id: str,
    assignment_id: str,
    indicator_name: str,
    due_date: Optional[datetime] = None,
) -> None:
    message = f'Indicator: "{shorten(indicator_name, 60)}".'
    if due_date is not None:
        message += f" Due {format_date(due_date)}."
    notification = create_notification(
        title="New assignment received",
        message=message + " Review the details in your assignments.",
        kind=NotificationKind.ASSIGNMENT_CREATED,
        priority="high",
        action_url="/my-assignments",
    )
    notification["assignment_id"] = assignment_id
    transport.send_to_user(user_id, notification)


def notify_responsable_evaluation_complete(
    transport: UserInboxTransport,
    user_id: str,
    assignment_id: str,
    approved: bool,
    reviewer_name: str,
) -> None:
    if approved:
        title = "Indicator approved"
        message = f"Your indicator has been approved by {reviewer_name}."
    else:
        title = "Indicator rejected"
        message = f"Your indicator has been rejected by {reviewer_name}. Review the notes and submit again."

    notification = create_notification(
        title=title,
        message=message,
        kind=NotificationKind.ASSIGNMENT_EVALUATED,
        priority="high",
        action_url="/my-assignments",
    )
    notification["assignment_id"] = assignment_id
    transport.send_to_user(user_id, notification)


# =============================================================================
# INBOX
# =============================================================================

class NotificationInbox:
    """Read and housekeeping operations on a user's notifications."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.transport = UserInboxTransport(store)

    def _load(self, user_id: str) -> List[Dict[str, Any]]:
        user = self.store.get_by_id("user", user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", reason="UserNotFound")
        return list(user.get("notifications") or [])

    def _save(self, user_id: str, notifications: List[Dict[str, Any]]) -> None:
        self.store.update("user", user_id, {"notifications": notifications})

    def list_for_user(self, user_id: str, only_unread: bool = False) -> List[Dict[str, Any]]:
        notifications = self._load(user_id)
        return unread(notifications) if only_unread else notifications

    def mark_read(self, user_id: str, notification_id: str) -> None:
        notifications = self._load(user_id)
        if not any(n.get("id") == notification_id for n in notifications):
            raise NotFoundError(f"Notification {notification_id} not found", reason="NotificationNotFound")
        self._save(user_id, [
            {**n, "read": True} if n.get("id") == notification_id else n
            for n in notifications
        ])

    def mark_all_read(self, user_id: str) -> int:
        notifications = self._load(user_id)
        self._save(user_id, [{**n, "read": True} for n in notifications])
        return len(unread(notifications))

    def delete(self, user_id: str, notification_id: str) -> None:
        notifications = self._load(user_id)
        remaining = [n for n in notifications if n.get("id") != notification_id]
        if len(remaining) == len(notifications):
            raise NotFoundError(f"Notification {notification_id} not found", reason="NotificationNotFound")
        self._save(user_id, remaining)

    def send_custom(
        self,
        user_ids: Iterable[str],
        title: str,
        message: str,
        priority: str = "medium",
        action_url: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> int:
        """Manual notification from an administrator."""
        payload = create_notification(
            title=title,
            message=message,
            kind=NotificationKind.SYSTEM_ALERT,
            priority=priority,
            action_url=action_url,
            sender_name=sender_name,
        )
        return self.transport.send(user_ids, payload)
