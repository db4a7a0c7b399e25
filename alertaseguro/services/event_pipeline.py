"""Schedule-gated processing of one inbound sensor event.

resolve owners -> per owner (concurrently): evaluate schedules, record the
event, push if permitted -> aggregate.

Each owner works in sessions of its own so a failure for one owner (store error,
transport error) is reported for that owner only. The event is recorded and
committed, and the session closed, before the push goes out; the delivery
flag is set in a second short transaction. A crash in between leaves the
event with ``delivered=False`` even if the push arrived.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import sentry_sdk
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alertaseguro.config import settings
from alertaseguro.services import event_service, notification_service, schedule_service
from alertaseguro.services.device_registry import normalize_device_id, resolve_owners

logger = logging.getLogger(__name__)

OUTSIDE_SCHEDULE = "outside-schedule"
STORE_ERROR = "store-error"


@dataclass
class OwnerOutcome:
    owner_id: uuid.UUID
    recorded: bool = False
    notified: bool = False
    reason: str | None = None
    event_id: uuid.UUID | None = None


@dataclass
class PipelineResult:
    device_id: str
    considered: int = 0
    recorded: int = 0
    notified: int = 0
    owners: list[OwnerOutcome] = field(default_factory=list)


async def _process_owner(
    session_factory: async_sessionmaker[AsyncSession],
    device_id: str,
    owner_id: uuid.UUID,
    message: str,
    instant: datetime,
    transport,
    utc_offset_minutes: int | None,
) -> OwnerOutcome:
    outcome = OwnerOutcome(owner_id=owner_id)
    try:
        async with session_factory() as db:
            permitted = await schedule_service.permits(
                db, device_id, owner_id, instant, utc_offset_minutes
            )

            # History is unconditional, notification is not
            outcome.event_id = await event_service.record_event(
                db, device_id, owner_id, message, instant
            )
            token = (
                await notification_service.get_push_token(db, owner_id)
                if permitted
                else None
            )
            await db.commit()
        outcome.recorded = True

        if not permitted:
            outcome.reason = OUTSIDE_SCHEDULE
            return outcome

        # No connection is checked out while the push is in flight
        delivery = await notification_service.deliver(token, device_id, message, transport)
        outcome.notified = delivery.sent
        outcome.reason = delivery.reason

        if delivery.sent:
            async with session_factory() as db:
                await event_service.mark_delivered(db, outcome.event_id)
                await db.commit()
    except Exception as exc:
        logger.exception(
            "Processing event from %s for owner %s failed", device_id, owner_id
        )
        sentry_sdk.capture_exception(exc)
        outcome.reason = STORE_ERROR
    return outcome


async def process_event(
    session_factory: async_sessionmaker[AsyncSession],
    device_id: str,
    message: str,
    transport=None,
    now: datetime | None = None,
    max_concurrency: int | None = None,
    utc_offset_minutes: int | None = None,
) -> PipelineResult:
    """Run the pipeline for one sensor event.

    Raises DeviceNotFoundError, before any side effect, if the device is
    unknown. Per-owner failures never propagate.
    """
    mac = normalize_device_id(device_id)
    instant = now or datetime.now(timezone.utc)

    async with session_factory() as db:
        owner_ids = await resolve_owners(db, mac)

    semaphore = asyncio.Semaphore(max_concurrency or settings.PIPELINE_MAX_CONCURRENCY)

    async def run(owner_id: uuid.UUID) -> OwnerOutcome:
        async with semaphore:
            return await _process_owner(
                session_factory, mac, owner_id, message, instant, transport,
                utc_offset_minutes,
            )

    outcomes = await asyncio.gather(*(run(owner_id) for owner_id in owner_ids))

    result = PipelineResult(
        device_id=mac,
        considered=len(outcomes),
        recorded=sum(1 for o in outcomes if o.recorded),
        notified=sum(1 for o in outcomes if o.notified),
        owners=list(outcomes),
    )
    logger.info(
        "Event from %s: %d owners, %d recorded, %d notified",
        mac, result.considered, result.recorded, result.notified,
    )
    return result
