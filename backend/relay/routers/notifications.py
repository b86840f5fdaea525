"""Notification intake and dashboard endpoints."""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import Caller, get_caller
from ..database import get_db
from ..errors import PermissionDenied
from ..events import EventBus, Topic
from ..schemas.notification import (
    NotificationCreate,
    NotificationList,
    NotificationResponse,
    NotificationStats,
)
from ..services import notifications as notification_service
from .deps import get_events

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.post("", response_model=NotificationResponse, status_code=201)
async def create_notification(
    request: NotificationCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    events: EventBus = Depends(get_events),
):
    """Store an event reported by a worker device and queue its fan-out.

    Workers report into their own account only.
    """
    target_user_id = request.target_user_id or caller.uid
    if target_user_id != caller.uid:
        raise PermissionDenied("Notifications can only target the caller's own account")

    notification = await notification_service.create_notification(
        db,
        target_user_id=target_user_id,
        source_device_name=request.source_device_name,
        text=request.text,
        origin_timestamp=request.timestamp,
    )
    events.publish_background(Topic.NOTIFICATION_CREATED, notification.id)
    return notification


@router.get("", response_model=NotificationList)
async def list_notifications(
    limit: int = Query(notification_service.DEFAULT_PAGE_SIZE, ge=1, le=100),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Newest notifications for the caller, with handled/unhandled counts."""
    notifications = await notification_service.list_notifications(db, caller.uid, limit)
    return NotificationList(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        stats=NotificationStats(**notification_service.summarize(notifications)),
    )


@router.post("/{notification_id}/handled", response_model=NotificationResponse)
async def mark_handled(
    notification_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Mark one of the caller's notifications handled (idempotent)."""
    return await notification_service.mark_handled(db, caller.uid, notification_id)
