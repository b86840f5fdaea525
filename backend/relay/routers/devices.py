"""Device registry API endpoints, scoped to the authenticated owner."""
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import Caller, get_caller
from ..database import get_db
from ..schemas.device import DeviceRename, DeviceResponse, DeviceUpsert
from ..services import device_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/devices", tags=["devices"])


@router.get("", response_model=List[DeviceResponse])
async def list_devices(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's devices."""
    return await device_registry.list_devices(db, caller.uid)


@router.put("/{device_id}", response_model=DeviceResponse)
async def upsert_device(
    device_id: str,
    request: DeviceUpsert,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Register or refresh a device from its own client app.

    The app calls this on launch and as a heartbeat; it is the only path that
    sets is_active.
    """
    return await device_registry.upsert_device(
        db,
        owner_id=caller.uid,
        device_id=device_id,
        device_name=request.device_name,
        device_type=request.device_type,
        is_active=request.is_active,
        push_token=request.push_token,
        app_version=request.app_version,
    )


@router.patch("/{device_id}", response_model=DeviceResponse)
async def rename_device(
    device_id: str,
    request: DeviceRename,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Rename one of the caller's devices."""
    return await device_registry.rename_device(db, caller.uid, device_id, request.device_name)


@router.delete("/{device_id}", status_code=204)
async def delete_device(
    device_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    """Delete one of the caller's devices."""
    await device_registry.delete_device(db, caller.uid, device_id)
