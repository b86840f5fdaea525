"""Device registry - owner-scoped reads and writes on devices."""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import InvalidArgument, NotFound, PermissionDenied
from ..models import Device
from ..models.device import DEVICE_TYPE_MASTER, DEVICE_TYPES
from ..utils.clock import utcnow
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


async def list_devices(session: AsyncSession, owner_id: str) -> List[Device]:
    """All devices of one owner, most recently active first."""
    result = await session.execute(
        select(Device)
        .where(Device.owner_id == owner_id)
        .order_by(Device.last_active.desc())
    )
    return list(result.scalars().all())


async def _get_owned_device(session: AsyncSession, owner_id: str, device_id: str) -> Device:
    result = await session.execute(select(Device).where(Device.id == device_id))
    device = result.scalar_one_or_none()
    if not device:
        raise NotFound("Device not found")
    if device.owner_id != owner_id:
        logger.warning(f"Cross-owner device access refused: {owner_id} -> {device_id}")
        raise PermissionDenied("Device belongs to another account")
    return device


async def rename_device(session: AsyncSession, owner_id: str, device_id: str, name: str) -> Device:
    """Rename a device. The trimmed name must not be empty."""
    device = await _get_owned_device(session, owner_id, device_id)

    new_name = (name or "").strip()
    if not new_name:
        raise InvalidArgument("Device name must not be empty")

    device.device_name = new_name
    await retry_on_lock(session.commit)

    logger.info(f"Device {device_id} renamed")
    return device


async def delete_device(session: AsyncSession, owner_id: str, device_id: str) -> None:
    """Hard-delete a device."""
    device = await _get_owned_device(session, owner_id, device_id)
    await session.delete(device)
    await retry_on_lock(session.commit)
    logger.info(f"Device {device_id} deleted")


async def upsert_device(
    session: AsyncSession,
    owner_id: str,
    device_id: str,
    device_name: Optional[str] = None,
    device_type: Optional[str] = None,
    is_active: Optional[bool] = None,
    push_token: Optional[str] = None,
    app_version: Optional[str] = None,
) -> Device:
    """Create or update a device from its owner's client app.

    Only fields the client sent are changed; last_active is always stamped.
    """
    if device_type is not None and device_type not in DEVICE_TYPES:
        raise InvalidArgument(f"device_type must be one of {', '.join(DEVICE_TYPES)}")
    if device_name is not None and not device_name.strip():
        raise InvalidArgument("Device name must not be empty")

    result = await session.execute(select(Device).where(Device.id == device_id))
    device = result.scalar_one_or_none()

    if device is None:
        if device_type is None or device_name is None:
            raise InvalidArgument("New devices need device_name and device_type")
        device = Device(
            id=device_id,
            owner_id=owner_id,
            device_name=device_name.strip(),
            device_type=device_type,
            is_active=bool(is_active),
            push_token=push_token,
            app_version=app_version,
            last_active=utcnow(),
        )
        session.add(device)
        await retry_on_lock(session.commit)
        logger.info(f"New {device_type} device registered: {device.id}")
        return device

    if device.owner_id != owner_id:
        logger.warning(f"Cross-owner device write refused: {owner_id} -> {device_id}")
        raise PermissionDenied("Device belongs to another account")

    if device_name is not None:
        device.device_name = device_name.strip()
    if device_type is not None:
        device.device_type = device_type
    if is_active is not None:
        device.is_active = is_active
    if push_token is not None:
        device.push_token = push_token
    if app_version is not None:
        device.app_version = app_version
    device.last_active = utcnow()

    await retry_on_lock(session.commit)
    return device


async def active_master_devices(session: AsyncSession, owner_id: str) -> List[Device]:
    """Master devices of one owner whose client reports them active."""
    result = await session.execute(
        select(Device).where(
            Device.owner_id == owner_id,
            Device.device_type == DEVICE_TYPE_MASTER,
            Device.is_active.is_(True),
        )
    )
    return list(result.scalars().all())
