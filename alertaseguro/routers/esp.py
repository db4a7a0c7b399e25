from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alertaseguro.config import settings
from alertaseguro.database import get_db, get_session_factory
from alertaseguro.dependencies import get_current_user, get_push_transport
from alertaseguro.models.user import User
from alertaseguro.schemas.device import (
    DeviceRegister,
    DeviceResponse,
    SensorEventIn,
    SensorEventResult,
)
from alertaseguro.services import device_registry, event_pipeline

router = APIRouter(prefix="/esp", tags=["esp"])


@router.post("/register", response_model=DeviceResponse, status_code=201)
async def register_device(
    data: DeviceRegister,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Register a sensor and link it to the caller. Upserts by MAC."""
    return await device_registry.register_device(
        db,
        user.id,
        data.mac,
        name=data.name,
        location=data.location,
        device_type=data.device_type,
    )


@router.get("", response_model=list[DeviceResponse])
async def list_devices(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await device_registry.list_user_devices(db, user.id)


@router.delete("/{mac}", status_code=204)
async def unregister_device(
    mac: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Unlink the caller from a sensor, removing their schedules and history for it."""
    removed = await device_registry.unregister_device(db, user.id, mac)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Device not found"
        )


@router.post("/event", response_model=SensorEventResult)
async def receive_event(
    data: SensorEventIn,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    transport=Depends(get_push_transport),
):
    """Entry point for the sensor firmware.

    Responds 404 for an unknown device. Otherwise always 200 with per-owner
    outcomes: ``recorded`` does not imply ``notified``.
    """
    return await event_pipeline.process_event(
        session_factory,
        data.device_id,
        data.message,
        transport=transport,
        max_concurrency=settings.PIPELINE_MAX_CONCURRENCY,
    )
