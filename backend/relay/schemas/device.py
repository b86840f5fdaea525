"""Device schemas for API."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import CamelModel


class DeviceResponse(CamelModel):
    """Device in API responses."""
    id: str
    owner_id: str
    device_name: str
    device_type: str
    is_active: bool
    last_active: Optional[datetime] = None
    push_token: Optional[str] = None
    app_version: Optional[str] = None


class DeviceUpsert(CamelModel):
    """Write from the device's own client app (registration and heartbeat)."""
    device_name: Optional[str] = None
    device_type: Optional[str] = Field(None, pattern="^(master|worker)$")
    is_active: Optional[bool] = None
    push_token: Optional[str] = None
    app_version: Optional[str] = None


class DeviceRename(CamelModel):
    """Rename from the dashboard."""
    device_name: str
