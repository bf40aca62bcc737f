"""
Notification Services

Inbox delivery, jury dispatch and inbox housekeeping.
"""

from .notification_service import (
    NotificationKind,
    NotificationDispatcher,
    NotificationInbox,
    UserInboxTransport,
    create_notification,
    notify_responsable_new_assignment,
    notify_responsable_evaluation_complete,
)

__all__ = [
    'NotificationKind',
    'NotificationDispatcher',
    'NotificationInbox',
    'UserInboxTransport',
    'create_notification',
    'notify_responsable_new_assignment',
    'notify_responsable_evaluation_complete',
]
