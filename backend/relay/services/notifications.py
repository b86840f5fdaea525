"""Notification intake and the owner-side reads and mark-handled."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFound, PermissionDenied
from ..models import Notification
from ..utils.clock import to_naive_utc, utcnow
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


async def create_notification(
    session: AsyncSession,
    target_user_id: str,
    source_device_name: Optional[str],
    text: Optional[str],
    origin_timestamp: Optional[datetime] = None,
) -> Notification:
    """Store a notification reported by a worker device."""
    notification = Notification(
        target_user_id=target_user_id,
        source_device_name=source_device_name,
        text=text,
        origin_timestamp=to_naive_utc(origin_timestamp),
        created_at=utcnow(),
    )
    session.add(notification)
    await retry_on_lock(session.commit)

    logger.info(f"New notification {notification.id} created for user: {target_user_id}")
    return notification


async def list_notifications(
    session: AsyncSession,
    owner_id: str,
    limit: int = DEFAULT_PAGE_SIZE,
) -> List[Notification]:
    """Newest notifications addressed to one owner."""
    result = await session.execute(
        select(Notification)
        .where(Notification.target_user_id == owner_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def summarize(notifications: List[Notification]) -> dict:
    """Handled/unhandled counts over a page of notifications."""
    handled = sum(1 for n in notifications if n.is_handled)
    return {
        "total": len(notifications),
        "handled": handled,
        "unhandled": len(notifications) - handled,
    }


async def mark_handled(session: AsyncSession, owner_id: str, notification_id: str) -> Notification:
    """Mark a notification handled.

    Idempotent: an already-handled record is returned unchanged, keeping its
    original handled_at.
    """
    result = await session.execute(
        select(Notification).where(Notification.id == notification_id)
    )
    notification = result.scalar_one_or_none()

    if not notification:
        raise NotFound("Notification not found")
    if notification.target_user_id != owner_id:
        logger.warning(f"Cross-owner notification access refused: {owner_id} -> {notification_id}")
        raise PermissionDenied("Notification belongs to another account")

    if notification.is_handled:
        return notification

    # Conditional write: of two overlapping calls only the first sets handled_at
    update_result = await session.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.is_handled.is_(False))
        .values(is_handled=True, handled_at=utcnow())
    )
    await retry_on_lock(session.commit)

    if update_result.rowcount:
        logger.info(f"Notification {notification_id} marked handled")

    await session.refresh(notification)
    return notification
