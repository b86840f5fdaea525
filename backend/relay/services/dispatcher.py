"""Fan-out dispatcher - relays a new notification to the owner's master devices.

Per notification: Created -> Dispatched -> Handled (or expires unhandled).

One run reads the notification and the owner's active master devices, then
issues exactly one multicast push carrying every usable token. Runs never
write device or notification state, so concurrent runs need no locking. A
notification deleted by the retention sweep before its run starts is simply
skipped.

Per-token delivery failures are logged and otherwise ignored; dead tokens
stay on their devices. A call-level provider failure propagates so the event
runtime decides about redelivery; there is no retry loop here.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select

from ..context import RelayContext
from ..models import Notification
from ..utils.clock import isoformat_utc, utcnow
from .device_registry import active_master_devices
from .push_sender import MulticastMessage, MulticastResult

logger = logging.getLogger(__name__)

# Push bodies are cut to this many characters; the stored text is untouched
PUSH_BODY_LIMIT = 100

DEFAULT_BODY = "New notification"
DEFAULT_SOURCE_NAME = "Unknown Device"
TITLE_PREFIX = "\U0001F4F1 "  # mobile phone emoji


@dataclass
class DispatchResult:
    """What a dispatcher run did for one notification."""
    notification_id: str
    tokens: List[str] = field(default_factory=list)
    success_count: int = 0
    failure_count: int = 0
    skipped_reason: Optional[str] = None

    @property
    def dispatched(self) -> bool:
        return self.skipped_reason is None


def truncate_body(text: Optional[str], limit: int = PUSH_BODY_LIMIT) -> str:
    if not text:
        return DEFAULT_BODY
    return text[:limit]


def build_multicast_message(notification: Notification, tokens: List[str]) -> MulticastMessage:
    """Presentation of a notification as a push message."""
    source_name = notification.source_device_name or DEFAULT_SOURCE_NAME
    timestamp = notification.origin_timestamp or utcnow()

    return MulticastMessage(
        tokens=list(tokens),
        title=f"{TITLE_PREFIX}{source_name}",
        body=truncate_body(notification.text),
        data={
            "notificationId": notification.id,
            "sourceDeviceName": source_name,
            "timestamp": isoformat_utc(timestamp),
        },
    )


def _log_failures(notification_id: str, result: MulticastResult) -> None:
    for response in result.responses:
        if not response.success:
            logger.error(
                f"Push for notification {notification_id} failed: {response.error} "
                f"(token: {response.token[:16]}...)"
            )


async def handle_notification_created(ctx: RelayContext, notification_id: str) -> DispatchResult:
    """Fan a newly created notification out to its owner's active masters."""
    async with ctx.session_factory() as session:
        result = await session.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            logger.info(f"Notification {notification_id} no longer exists, nothing to dispatch")
            return DispatchResult(notification_id, skipped_reason="notification_missing")

        target_user_id = notification.target_user_id
        logger.info(f"Dispatching notification {notification_id} for user: {target_user_id}")

        devices = await active_master_devices(session, target_user_id)

    if not devices:
        logger.info(f"No active master devices found for user: {target_user_id}")
        return DispatchResult(notification_id, skipped_reason="no_active_masters")

    logger.info(f"Found {len(devices)} master device(s)")

    # Devices without a token are skipped, not waited for
    tokens = list(dict.fromkeys(d.push_token for d in devices if d.push_token))
    if not tokens:
        logger.info(f"No push tokens found for user: {target_user_id}")
        return DispatchResult(notification_id, skipped_reason="no_tokens")

    if not ctx.push_provider.enabled:
        logger.warning(f"Push provider disabled, notification {notification_id} not relayed")
        return DispatchResult(notification_id, tokens=tokens, skipped_reason="push_disabled")

    message = build_multicast_message(notification, tokens)
    result = await ctx.push_provider.send_multicast(message)

    logger.info(f"Successfully sent {result.success_count} message(s)")
    if result.failure_count:
        logger.warning(f"Failed to send {result.failure_count} message(s)")
        _log_failures(notification_id, result)

    return DispatchResult(
        notification_id,
        tokens=tokens,
        success_count=result.success_count,
        failure_count=result.failure_count,
    )
