"""Active-window schedules and the permit decision built on them.

Clock arithmetic uses a fixed UTC offset (``LOCAL_UTC_OFFSET_MINUTES``), not
a timezone name, so there is no daylight-saving ambiguity. Weekdays are
numbered 0 = Sunday through 6 = Saturday.
"""
import uuid
from datetime import datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.config import settings
from alertaseguro.models.device import Device
from alertaseguro.models.device_owner import DeviceOwner
from alertaseguro.models.schedule import Schedule
from alertaseguro.services.device_registry import get_link, normalize_device_id


def minute_of_day(t: time) -> int:
    return t.hour * 60 + t.minute


def local_clock(instant: datetime, utc_offset_minutes: int) -> tuple[int, int]:
    """Return (weekday, minute of day) of the instant at the fixed offset.

    Naive datetimes are taken as UTC.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(timezone(timedelta(minutes=utc_offset_minutes)))
    # datetime.weekday() is Monday-based
    return (local.weekday() + 1) % 7, local.hour * 60 + local.minute


def is_active(
    schedule: Schedule,
    instant: datetime,
    utc_offset_minutes: int | None = None,
) -> bool:
    """Whether the schedule's window covers the instant.

    Bounds are inclusive. A window with start > end crosses midnight and
    belongs to the day it starts on: the minutes after midnight are checked
    against the previous weekday.
    """
    if not schedule.enabled:
        return False
    if utc_offset_minutes is None:
        utc_offset_minutes = settings.LOCAL_UTC_OFFSET_MINUTES

    weekday, minute = local_clock(instant, utc_offset_minutes)
    days = set(schedule.weekdays or [])
    start = minute_of_day(schedule.start_time)
    end = minute_of_day(schedule.end_time)

    if start <= end:
        return weekday in days and start <= minute <= end

    if minute >= start:
        return weekday in days
    if minute <= end:
        return (weekday - 1) % 7 in days
    return False


async def list_schedules(
    db: AsyncSession, device_id: str, user_id: uuid.UUID
) -> list[Schedule]:
    result = await db.execute(
        select(Schedule)
        .join(DeviceOwner, Schedule.link_id == DeviceOwner.id)
        .join(Device, DeviceOwner.device_id == Device.id)
        .where(
            Device.mac == normalize_device_id(device_id),
            DeviceOwner.user_id == user_id,
        )
        .order_by(Schedule.created_at, Schedule.id)
    )
    return list(result.scalars().all())


async def permits(
    db: AsyncSession,
    device_id: str,
    user_id: uuid.UUID,
    instant: datetime,
    utc_offset_minutes: int | None = None,
) -> bool:
    """True if any of the owner's schedules for the device is active.

    An owner with no schedules is never notified.
    """
    schedules = await list_schedules(db, device_id, user_id)
    return any(is_active(s, instant, utc_offset_minutes) for s in schedules)


async def create_schedule(
    db: AsyncSession, user_id: uuid.UUID, device_id: str, data: dict
) -> Schedule | None:
    link = await get_link(db, device_id, user_id)
    if link is None:
        return None

    schedule = Schedule(link_id=link.id, **data)
    db.add(schedule)
    await db.flush()
    await db.refresh(schedule)
    return schedule


async def _get_owned_schedule(
    db: AsyncSession, user_id: uuid.UUID, device_id: str, schedule_id: uuid.UUID
) -> Schedule | None:
    result = await db.execute(
        select(Schedule)
        .join(DeviceOwner, Schedule.link_id == DeviceOwner.id)
        .join(Device, DeviceOwner.device_id == Device.id)
        .where(
            Schedule.id == schedule_id,
            Device.mac == normalize_device_id(device_id),
            DeviceOwner.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def update_schedule(
    db: AsyncSession,
    user_id: uuid.UUID,
    device_id: str,
    schedule_id: uuid.UUID,
    data: dict,
) -> Schedule | None:
    schedule = await _get_owned_schedule(db, user_id, device_id, schedule_id)
    if schedule is None:
        return None

    for key, value in data.items():
        if value is not None:
            setattr(schedule, key, value)

    await db.flush()
    await db.refresh(schedule)
    return schedule


async def delete_schedule(
    db: AsyncSession, user_id: uuid.UUID, device_id: str, schedule_id: uuid.UUID
) -> bool:
    schedule = await _get_owned_schedule(db, user_id, device_id, schedule_id)
    if schedule is None:
        return False
    await db.delete(schedule)
    await db.flush()
    return True
