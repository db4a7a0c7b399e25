import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.models.sensor_event import SensorEvent
from alertaseguro.services.device_registry import (
    DeviceNotFoundError,
    get_link,
    normalize_device_id,
)


async def record_event(
    db: AsyncSession,
    device_id: str,
    user_id: uuid.UUID,
    message: str,
    instant: datetime | None = None,
) -> uuid.UUID:
    """Append one event for the (device, owner) pairing and return its id.

    Recorded whether or not a notification goes out. Repeated messages are
    stored again; there is no dedup.
    """
    link = await get_link(db, device_id, user_id)
    if link is None:
        raise DeviceNotFoundError(normalize_device_id(device_id))

    created_at = instant or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)

    event = SensorEvent(
        link_id=link.id,
        device_mac=normalize_device_id(device_id),
        message=message,
        delivered=False,
        created_at=created_at,
    )
    db.add(event)
    await db.flush()
    return event.id


async def mark_delivered(db: AsyncSession, event_id: uuid.UUID) -> None:
    """Flip the delivery flag; the only mutation an event ever sees."""
    await db.execute(
        update(SensorEvent)
        .where(SensorEvent.id == event_id, SensorEvent.delivered.is_(False))
        .values(delivered=True)
    )


async def list_events(
    db: AsyncSession,
    user_id: uuid.UUID,
    device_id: str,
    limit: int = 50,
    offset: int = 0,
) -> list[SensorEvent] | None:
    link = await get_link(db, device_id, user_id)
    if link is None:
        return None

    result = await db.execute(
        select(SensorEvent)
        .where(SensorEvent.link_id == link.id)
        .order_by(SensorEvent.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def clear_events(
    db: AsyncSession, user_id: uuid.UUID, device_id: str
) -> int | None:
    link = await get_link(db, device_id, user_id)
    if link is None:
        return None

    result = await db.execute(delete(SensorEvent).where(SensorEvent.link_id == link.id))
    return result.rowcount
