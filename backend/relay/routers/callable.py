"""Callable endpoints (bearer-authenticated request/response).

Any identity-like field in the request data is ignored; the caller is always
the verified token subject.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import Caller, get_caller
from ..context import RelayContext
from ..database import get_db
from ..schemas.callable import (
    AppVersionResponse,
    CallableRequest,
    CallableResponse,
    DomainValidation,
    LastLoginUpdate,
)
from ..services import gateway
from .deps import get_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/callable", tags=["callable"])


@router.post("/validateEmailDomain", response_model=CallableResponse)
async def validate_email_domain(
    request: Optional[CallableRequest] = None,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    ctx: RelayContext = Depends(get_context),
):
    result = await gateway.validate_email_domain(db, caller, ctx.settings.allowed_email_domain)
    return CallableResponse(result=DomainValidation(**result).model_dump(by_alias=True))


@router.post("/getLatestAppVersion", response_model=CallableResponse)
async def get_latest_app_version(
    request: Optional[CallableRequest] = None,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    ctx: RelayContext = Depends(get_context),
):
    """Latest release record for a platform (default android)."""
    data = (request.data if request else None) or {}
    platform = data.get("platform") or ctx.settings.default_app_platform
    record = await gateway.get_latest_app_version(db, str(platform))
    return CallableResponse(result=AppVersionResponse.model_validate(record).model_dump(by_alias=True))


@router.post("/updateLastLogin", response_model=CallableResponse)
async def update_last_login(
    request: Optional[CallableRequest] = None,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    result = await gateway.update_last_login(db, caller)
    return CallableResponse(result=LastLoginUpdate(**result).model_dump(by_alias=True))
