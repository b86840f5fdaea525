"""Callable operations: domain re-validation, version lookup, last-login touch.

Every operation acts on the verified caller only.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import Caller
from ..errors import NotFound, PermissionDenied
from ..models import AppVersion, User
from ..utils.clock import utcnow
from ..utils.db_utils import retry_on_lock
from .identity_gate import is_allowed_email

logger = logging.getLogger(__name__)


async def validate_email_domain(session: AsyncSession, caller: Caller, allowed_suffix: str) -> dict:
    """Re-check the caller's token email against the domain policy.

    Also refreshes the profile's verification flag from the token.
    """
    if not is_allowed_email(caller.email, allowed_suffix):
        logger.warning(f"Domain re-validation failed for {caller.uid}: {caller.email}")
        raise PermissionDenied(f"Only {allowed_suffix} email addresses are allowed")

    await session.execute(
        update(User)
        .where(User.id == caller.uid, User.email_verified != caller.email_verified)
        .values(email_verified=caller.email_verified)
    )
    await retry_on_lock(session.commit)

    return {"valid": True, "email": caller.email}


async def get_latest_app_version(session: AsyncSession, platform: str) -> AppVersion:
    result = await session.execute(select(AppVersion).where(AppVersion.platform == platform))
    record = result.scalar_one_or_none()
    if not record:
        raise NotFound("Version info not found")
    return record


async def update_last_login(session: AsyncSession, caller: Caller, now: Optional[datetime] = None) -> dict:
    """Touch the caller's last_login. It never moves backwards."""
    now = now or utcnow()
    await session.execute(
        update(User)
        .where(User.id == caller.uid)
        .where(or_(User.last_login.is_(None), User.last_login < now))
        .values(last_login=now)
    )
    await retry_on_lock(session.commit)
    return {"success": True}
