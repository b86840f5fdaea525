"""Notification model - events reported by worker devices."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text

from ..database import Base
from ..utils.clock import utcnow


def _new_id() -> str:
    return uuid.uuid4().hex


class Notification(Base):
    """An event captured on a worker device, relayed to the owner's masters.

    Only is_handled/handled_at change after creation.
    """

    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=_new_id)
    target_user_id = Column(String, nullable=False, index=True)
    source_device_name = Column(String, nullable=True)
    text = Column(Text, nullable=True)  # Full text; push bodies are truncated
    origin_timestamp = Column(DateTime, nullable=True)  # When the worker saw it
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    is_handled = Column(Boolean, default=False, nullable=False)
    handled_at = Column(DateTime, nullable=True)
