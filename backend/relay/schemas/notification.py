"""Notification schemas for API."""
from datetime import datetime
from typing import List, Optional

from .base import CamelModel


class NotificationCreate(CamelModel):
    """Event reported by a worker device."""
    target_user_id: Optional[str] = None  # Defaults to the caller
    source_device_name: str
    text: str = ""
    timestamp: Optional[datetime] = None  # When the worker captured the event


class NotificationResponse(CamelModel):
    """Notification in API responses."""
    id: str
    target_user_id: str
    source_device_name: Optional[str] = None
    text: Optional[str] = None
    origin_timestamp: Optional[datetime] = None
    created_at: datetime
    is_handled: bool
    handled_at: Optional[datetime] = None


class NotificationStats(CamelModel):
    total: int
    handled: int
    unhandled: int


class NotificationList(CamelModel):
    """Dashboard page of notifications with counts."""
    notifications: List[NotificationResponse]
    stats: NotificationStats
