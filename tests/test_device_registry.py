import uuid
from datetime import time

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.models.device import Device
from alertaseguro.models.schedule import Schedule
from alertaseguro.models.sensor_event import SensorEvent
from alertaseguro.services import event_service
from alertaseguro.services.device_registry import (
    DeviceNotFoundError,
    get_link,
    list_user_devices,
    normalize_device_id,
    register_device,
    resolve_owners,
    unregister_device,
)
from tests.conftest import ALL_DAYS, WEDNESDAY_NOON


def test_normalize_device_id():
    assert normalize_device_id("  AA:BB:CC:DD:EE:FF ") == "aa:bb:cc:dd:ee:ff"


@pytest.mark.asyncio
async def test_register_device_normalizes_mac(db_session: AsyncSession, test_user):
    device = await register_device(db_session, test_user.id, "AA:BB:CC", name="Garagem")
    await db_session.commit()

    assert device.mac == "aa:bb:cc"
    assert await resolve_owners(db_session, "aa:bb:cc") == [test_user.id]


@pytest.mark.asyncio
async def test_lookup_is_case_insensitive(db_session: AsyncSession, test_user):
    await register_device(db_session, test_user.id, "AA:BB:CC", name="Garagem")
    await db_session.commit()

    assert await resolve_owners(db_session, "aa:bb:cc") == [test_user.id]
    assert await resolve_owners(db_session, "Aa:Bb:Cc") == [test_user.id]


@pytest.mark.asyncio
async def test_resolve_unknown_device(db_session: AsyncSession):
    with pytest.raises(DeviceNotFoundError) as exc_info:
        await resolve_owners(db_session, "00:11:22:33:44:55")
    assert exc_info.value.device_id == "00:11:22:33:44:55"


@pytest.mark.asyncio
async def test_second_owner_links_to_same_device(
    db_session: AsyncSession, test_user, make_user
):
    other = await make_user("other@example.com")
    await register_device(db_session, test_user.id, "aa:bb:cc", name="Sala")
    await register_device(db_session, other.id, "AA:BB:CC", name="Sala de estar", location="casa")
    await db_session.commit()

    owners = await resolve_owners(db_session, "aa:bb:cc")
    assert set(owners) == {test_user.id, other.id}

    count = await db_session.scalar(select(func.count()).select_from(Device))
    assert count == 1
    device = await db_session.scalar(select(Device).where(Device.mac == "aa:bb:cc"))
    assert device.name == "Sala de estar"
    assert device.location == "casa"


@pytest.mark.asyncio
async def test_register_is_idempotent_per_pair(db_session: AsyncSession, test_user):
    await register_device(db_session, test_user.id, "aa:bb:cc", name="Sala")
    await register_device(db_session, test_user.id, "aa:bb:cc", name="Sala")
    await db_session.commit()

    assert await resolve_owners(db_session, "aa:bb:cc") == [test_user.id]


@pytest.mark.asyncio
async def test_register_rejects_blank_mac(db_session: AsyncSession, test_user):
    with pytest.raises(ValueError):
        await register_device(db_session, test_user.id, "   ", name="Sala")


@pytest.mark.asyncio
async def test_list_user_devices(db_session: AsyncSession, test_user, make_user):
    other = await make_user("other@example.com")
    await register_device(db_session, test_user.id, "aa:aa:aa", name="Sala")
    await register_device(db_session, test_user.id, "bb:bb:bb", name="Quarto")
    await register_device(db_session, other.id, "cc:cc:cc", name="Garagem")
    await db_session.commit()

    devices = await list_user_devices(db_session, test_user.id)
    assert {d.mac for d in devices} == {"aa:aa:aa", "bb:bb:bb"}


@pytest.mark.asyncio
async def test_unregister_cascades_pairing_data(
    db_session: AsyncSession, test_user, make_user, link_device
):
    other = await make_user("other@example.com")
    mine = await link_device(test_user, "aa:bb:cc", windows=[(time(8), time(18), ALL_DAYS)])
    theirs = await link_device(other, "aa:bb:cc", windows=[(time(8), time(18), ALL_DAYS)])
    await event_service.record_event(db_session, "aa:bb:cc", test_user.id, "movimento", WEDNESDAY_NOON)
    await event_service.record_event(db_session, "aa:bb:cc", other.id, "movimento", WEDNESDAY_NOON)
    await db_session.commit()

    assert await unregister_device(db_session, test_user.id, "AA:BB:CC") is True
    await db_session.commit()

    assert await get_link(db_session, "aa:bb:cc", test_user.id) is None
    assert await resolve_owners(db_session, "aa:bb:cc") == [other.id]

    my_schedules = await db_session.scalar(
        select(func.count()).select_from(Schedule).where(Schedule.link_id == mine.id)
    )
    my_events = await db_session.scalar(
        select(func.count()).select_from(SensorEvent).where(SensorEvent.link_id == mine.id)
    )
    their_events = await db_session.scalar(
        select(func.count()).select_from(SensorEvent).where(SensorEvent.link_id == theirs.id)
    )
    assert my_schedules == 0
    assert my_events == 0
    assert their_events == 1


@pytest.mark.asyncio
async def test_unregister_last_owner_deletes_device(db_session: AsyncSession, test_user):
    await register_device(db_session, test_user.id, "aa:bb:cc", name="Sala")
    await db_session.commit()

    assert await unregister_device(db_session, test_user.id, "aa:bb:cc") is True
    await db_session.commit()

    with pytest.raises(DeviceNotFoundError):
        await resolve_owners(db_session, "aa:bb:cc")
    count = await db_session.scalar(select(func.count()).select_from(Device))
    assert count == 0


@pytest.mark.asyncio
async def test_unregister_unlinked_device(db_session: AsyncSession, test_user):
    assert await unregister_device(db_session, test_user.id, "ff:ff:ff") is False
    assert await unregister_device(db_session, uuid.uuid4(), "ff:ff:ff") is False
