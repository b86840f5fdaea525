"""Trigger hooks fired by the authentication subsystem."""
import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header

from ..context import RelayContext
from ..errors import Unauthenticated
from ..events import EventBus, Topic
from ..schemas.callable import IdentityCreatedHook, IdentityCreatedResult
from ..services.identity_gate import IdentityEvent
from .deps import get_context, get_events

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/hooks", tags=["hooks"])


def verify_hook_secret(ctx: RelayContext, provided: Optional[str]):
    expected = ctx.settings.hook_secret
    if not expected:
        logger.warning("Identity hook rejected - no hook secret configured")
        raise Unauthenticated("Hook secret not configured on server")
    if not provided or not hmac.compare_digest(provided, expected):
        logger.warning("Identity hook rejected - invalid hook secret")
        raise Unauthenticated("Invalid hook secret")


@router.post("/identity-created", response_model=IdentityCreatedResult, status_code=201)
async def identity_created(
    data: IdentityCreatedHook,
    x_hook_secret: Optional[str] = Header(None),
    ctx: RelayContext = Depends(get_context),
    events: EventBus = Depends(get_events),
):
    """Provision or reject a newly created account.

    Rejection has already deleted the account when the 403 is returned.
    """
    verify_hook_secret(ctx, x_hook_secret)
    result = await events.publish(
        Topic.IDENTITY_CREATED,
        IdentityEvent(id=data.id, email=data.email, email_verified=data.email_verified),
    )
    return IdentityCreatedResult(uid=result.user.id, created=result.created)
