"""Identity gate - provisions profiles for new accounts in the allowed domain."""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..context import RelayContext
from ..errors import PermissionDenied
from ..models import User
from ..models.user import USER_ROLE
from ..utils.clock import utcnow
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


@dataclass
class IdentityEvent:
    """Payload of the identity-created trigger."""
    id: str
    email: Optional[str]
    email_verified: bool = False


@dataclass
class ProvisionResult:
    user: User
    created: bool


def is_allowed_email(email: Optional[str], allowed_suffix: str) -> bool:
    """Exact, case-sensitive suffix match against the organization domain."""
    return bool(email) and bool(allowed_suffix) and email.endswith(allowed_suffix)


async def handle_identity_created(ctx: RelayContext, event: IdentityEvent) -> ProvisionResult:
    """Provision a User profile for a new account, or reject the account.

    Rejection deletes the account identity before raising PermissionDenied,
    so the account can never sign in. Redelivery of an accepted event leaves
    the existing profile untouched.
    """
    allowed_suffix = ctx.settings.allowed_email_domain
    logger.info(f"New user attempting to register: {event.email}")

    if not is_allowed_email(event.email, allowed_suffix):
        logger.warning(f"Invalid email domain: {event.email}. Deleting account {event.id}")
        await ctx.identity_directory.delete(event.id)
        raise PermissionDenied(f"Only {allowed_suffix} email addresses are allowed")

    async with ctx.session_factory() as session:
        result = await session.execute(select(User).where(User.id == event.id))
        existing = result.scalar_one_or_none()
        if existing:
            logger.info(f"User profile already exists for {event.id}, skipping")
            return ProvisionResult(existing, created=False)

        now = utcnow()
        user = User(
            id=event.id,
            email=event.email,
            email_verified=event.email_verified,
            created_at=now,
            last_login=now,
            role=USER_ROLE,
        )
        session.add(user)
        try:
            await retry_on_lock(session.commit)
        except IntegrityError:
            # A concurrent delivery of the same event won the insert
            await session.rollback()
            result = await session.execute(select(User).where(User.id == event.id))
            logger.info(f"User profile for {event.id} created concurrently, skipping")
            return ProvisionResult(result.scalar_one(), created=False)

    logger.info(f"User created successfully: {event.email}")
    return ProvisionResult(user, created=True)
