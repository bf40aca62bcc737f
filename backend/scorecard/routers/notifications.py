"""
Scorecard - Notifications Router
The current user's inbox, plus manual notifications sent by administrators.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..auth import get_current_user, require_admin
from ..dependencies import get_inbox
from ..models.db_models import UserDB
from ..services.errors import WorkflowError
from ..services.notifications import NotificationInbox
from .common import http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class NotificationListResponse(BaseModel):
    notifications: List[Dict[str, Any]]
    unread_count: int


class CountResponse(BaseModel):
    success: bool = True
    count: int


class CustomNotificationRequest(BaseModel):
    user_ids: List[str]
    title: str
    message: str
    priority: str = "medium"
    action_url: Optional[str] = None


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    only_unread: bool = False,
    current_user: UserDB = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_inbox),
):
    """List the current user's notifications, newest first."""
    try:
        notifications = inbox.list_for_user(current_user.id)
    except WorkflowError as e:
        raise http_error(e)

    notifications = sorted(notifications, key=lambda n: n.get("created_at") or "", reverse=True)
    unread_count = sum(1 for n in notifications if not n.get("read"))
    if only_unread:
        notifications = [n for n in notifications if not n.get("read")]
    return NotificationListResponse(notifications=notifications, unread_count=unread_count)


@router.post("/read-all", response_model=CountResponse)
async def mark_all_read(
    current_user: UserDB = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_inbox),
):
    """Mark every notification of the current user as read."""
    try:
        count = inbox.mark_all_read(current_user.id)
    except WorkflowError as e:
        raise http_error(e)
    return CountResponse(count=count)


@router.post("/custom", response_model=CountResponse)
async def send_custom_notification(
    request: CustomNotificationRequest,
    admin: UserDB = Depends(require_admin),
    inbox: NotificationInbox = Depends(get_inbox),
):
    """Send a manual notification to a list of users."""
    try:
        count = inbox.send_custom(
            request.user_ids,
            title=request.title,
            message=request.message,
            priority=request.priority,
            action_url=request.action_url,
            sender_name=admin.name,
        )
    except WorkflowError as e:
        raise http_error(e)

    logger.info(f"Custom notification sent to {count} users by {admin.email}")
    return CountResponse(count=count)


@router.post("/{notification_id}/read", response_model=CountResponse)
async def mark_read(
    notification_id: str,
    current_user: UserDB = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_inbox),
):
    try:
        inbox.mark_read(current_user.id, notification_id)
    except WorkflowError as e:
        raise http_error(e)
    return CountResponse(count=1)


@router.delete("/{notification_id}", response_model=CountResponse)
async def delete_notification(
    notification_id: str,
    current_user: UserDB = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_inbox),
):
    try:
        inbox.delete(current_user.id, notification_id)
    except WorkflowError as e:
        raise http_error(e)
    return CountResponse(count=1)
