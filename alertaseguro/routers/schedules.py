import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.database import get_db
from alertaseguro.dependencies import get_current_user
from alertaseguro.models.user import User
from alertaseguro.schemas.schedule import ScheduleCreate, ScheduleResponse, ScheduleUpdate
from alertaseguro.services import device_registry, schedule_service

router = APIRouter(prefix="/esp/{mac}/schedules", tags=["schedules"])


@router.get("", response_model=list[ScheduleResponse])
async def list_schedules(
    mac: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if await device_registry.get_link(db, mac, user.id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Device not found"
        )
    return await schedule_service.list_schedules(db, mac, user.id)


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    mac: str,
    data: ScheduleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    schedule = await schedule_service.create_schedule(db, user.id, mac, data.model_dump())
    if schedule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Device not found"
        )
    return schedule


@router.patch("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    mac: str,
    schedule_id: uuid.UUID,
    data: ScheduleUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    schedule = await schedule_service.update_schedule(
        db, user.id, mac, schedule_id, data.model_dump(exclude_unset=True)
    )
    if schedule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found"
        )
    return schedule


@router.delete("/{schedule_id}", status_code=204)
async def delete_schedule(
    mac: str,
    schedule_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await schedule_service.delete_schedule(db, user.id, mac, schedule_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found"
        )
