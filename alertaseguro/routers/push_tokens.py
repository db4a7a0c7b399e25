from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.database import get_db
from alertaseguro.dependencies import get_current_user
from alertaseguro.models.user import User
from alertaseguro.schemas.auth import PushTokenResponse, PushTokenUpdate
from alertaseguro.services import user_service

router = APIRouter(prefix="/api/token", tags=["push"])


@router.post("", response_model=PushTokenResponse)
async def save_push_token(
    data: PushTokenUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Store the caller's push token, replacing any previous one.

    The mobile app should call this on every launch so the token stays current.
    """
    await user_service.update_push_token(db, user, data.token)
    return PushTokenResponse(success=True, message="Push token saved")


@router.delete("", response_model=PushTokenResponse)
async def clear_push_token(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await user_service.update_push_token(db, user, None)
    return PushTokenResponse(success=True, message="Push token removed")
