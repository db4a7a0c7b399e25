from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.database import get_db
from alertaseguro.dependencies import get_current_user
from alertaseguro.models.user import User
from alertaseguro.schemas.sensor_event import SensorEventResponse
from alertaseguro.services import event_service

router = APIRouter(prefix="/esp/{mac}/events", tags=["events"])


@router.get("", response_model=list[SensorEventResponse])
async def list_events(
    mac: str,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Caller's event history for one sensor, newest first."""
    events = await event_service.list_events(db, user.id, mac, limit=limit, offset=offset)
    if events is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Device not found"
        )
    return events


@router.delete("", status_code=204)
async def clear_events(
    mac: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    deleted = await event_service.clear_events(db, user.id, mac)
    if deleted is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Device not found"
        )
