"""Schemas for the callable endpoints and trigger hooks."""
from typing import Any, Optional

from pydantic import BaseModel

from .base import CamelModel


class CallableRequest(BaseModel):
    """Callable envelope: {"data": {...}}."""
    data: Optional[dict] = None


class CallableResponse(BaseModel):
    """Callable envelope: {"result": ...}."""
    result: Any


class DomainValidation(CamelModel):
    valid: bool
    email: str


class AppVersionResponse(CamelModel):
    platform: str
    latest_version: str
    version_code: int
    download_url: str
    release_notes: Optional[str] = None
    mandatory: bool = False


class LastLoginUpdate(CamelModel):
    success: bool


class IdentityCreatedHook(CamelModel):
    """Payload of the identity-created trigger."""
    id: str
    email: Optional[str] = None
    email_verified: bool = False


class IdentityCreatedResult(CamelModel):
    uid: str
    created: bool
