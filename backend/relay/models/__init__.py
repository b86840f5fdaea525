"""Database models."""
from .identity import Identity
from .user import User
from .device import Device
from .notification import Notification
from .app_version import AppVersion

__all__ = ["Identity", "User", "Device", "Notification", "AppVersion"]
