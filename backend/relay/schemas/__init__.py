"""Pydantic schemas for API request/response models."""
from .device import (
    DeviceResponse,
    DeviceUpsert,
    DeviceRename,
)
from .notification import (
    NotificationCreate,
    NotificationResponse,
    NotificationStats,
    NotificationList,
)
from .callable import (
    CallableRequest,
    CallableResponse,
    DomainValidation,
    AppVersionResponse,
    LastLoginUpdate,
    IdentityCreatedHook,
    IdentityCreatedResult,
)

__all__ = [
    "DeviceResponse",
    "DeviceUpsert",
    "DeviceRename",
    "NotificationCreate",
    "NotificationResponse",
    "NotificationStats",
    "NotificationList",
    "CallableRequest",
    "CallableResponse",
    "DomainValidation",
    "AppVersionResponse",
    "LastLoginUpdate",
    "IdentityCreatedHook",
    "IdentityCreatedResult",
]
