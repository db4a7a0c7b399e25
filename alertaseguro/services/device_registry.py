"""Device registry: maps a sensor's hardware address to its owners.

Devices are stored under their lowercased MAC (unique index on
``devices.mac``) and linked to owners through ``device_owners``. One device
may belong to many owners and one owner may hold many devices.
"""
import logging
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.models.device import Device
from alertaseguro.models.device_owner import DeviceOwner
from alertaseguro.models.schedule import Schedule
from alertaseguro.models.sensor_event import SensorEvent

logger = logging.getLogger(__name__)


class DeviceNotFoundError(LookupError):
    """The device id is unknown, or no owner is linked to it anymore."""

    def __init__(self, device_id: str):
        super().__init__(f"Device {device_id} is not registered")
        self.device_id = device_id


def normalize_device_id(device_id: str) -> str:
    return device_id.strip().lower()


async def get_device(db: AsyncSession, device_id: str) -> Device | None:
    result = await db.execute(
        select(Device).where(Device.mac == normalize_device_id(device_id))
    )
    return result.scalar_one_or_none()


async def get_link(
    db: AsyncSession, device_id: str, user_id: uuid.UUID
) -> DeviceOwner | None:
    """Return the (device, owner) pairing, or None if the owner is not linked."""
    result = await db.execute(
        select(DeviceOwner)
        .join(Device, DeviceOwner.device_id == Device.id)
        .where(
            Device.mac == normalize_device_id(device_id),
            DeviceOwner.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def resolve_owners(db: AsyncSession, device_id: str) -> list[uuid.UUID]:
    """Return the ids of every owner currently linked to the device.

    Raises DeviceNotFoundError when the device is unknown or has no owners.
    """
    mac = normalize_device_id(device_id)
    result = await db.execute(
        select(DeviceOwner.user_id)
        .join(Device, DeviceOwner.device_id == Device.id)
        .where(Device.mac == mac)
        .order_by(DeviceOwner.created_at, DeviceOwner.id)
    )
    owners = list(result.scalars().all())
    if not owners:
        raise DeviceNotFoundError(mac)
    return owners


async def list_user_devices(db: AsyncSession, user_id: uuid.UUID) -> list[Device]:
    result = await db.execute(
        select(Device)
        .join(DeviceOwner, DeviceOwner.device_id == Device.id)
        .where(DeviceOwner.user_id == user_id)
        .order_by(Device.created_at.desc())
    )
    return list(result.scalars().all())


async def register_device(
    db: AsyncSession,
    user_id: uuid.UUID,
    device_id: str,
    name: str,
    location: str = "",
    device_type: str = "",
) -> Device:
    """Create or update a device and link it to the owner. Idempotent per pair."""
    mac = normalize_device_id(device_id)
    if not mac:
        raise ValueError("Device MAC cannot be empty")

    device = await get_device(db, mac)
    if device is None:
        device = Device(mac=mac, name=name, location=location, device_type=device_type)
        db.add(device)
        await db.flush()
        logger.info("Registered new device %s", mac)
    else:
        device.name = name
        device.location = location
        device.device_type = device_type

    if await get_link(db, mac, user_id) is None:
        db.add(DeviceOwner(device_id=device.id, user_id=user_id))
        logger.info("Linked device %s to owner %s", mac, user_id)

    await db.flush()
    await db.refresh(device)
    return device


async def unregister_device(
    db: AsyncSession, user_id: uuid.UUID, device_id: str
) -> bool:
    """Unlink the owner from the device, deleting that pairing's schedules and events.

    The device itself is deleted once its last owner is gone. Returns False if
    the owner was not linked to the device.
    """
    link = await get_link(db, device_id, user_id)
    if link is None:
        return False

    device_pk = link.device_id
    await db.execute(delete(Schedule).where(Schedule.link_id == link.id))
    await db.execute(delete(SensorEvent).where(SensorEvent.link_id == link.id))
    await db.execute(delete(DeviceOwner).where(DeviceOwner.id == link.id))

    remaining = await db.scalar(
        select(func.count()).select_from(DeviceOwner).where(DeviceOwner.device_id == device_pk)
    )
    if not remaining:
        await db.execute(delete(Device).where(Device.id == device_pk))
        logger.info("Deleted device %s (no owners left)", normalize_device_id(device_id))

    await db.flush()
    return True
