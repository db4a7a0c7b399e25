from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from alertaseguro.database import get_db
from alertaseguro.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from alertaseguro.services import user_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an owner account and return its uid."""
    try:
        user = await user_service.register_user(
            db=db,
            email=request.email,
            display_name=request.display_name,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    return RegisterResponse(uid=user.id)


@router.post("/login", response_model=UserResponse)
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Look up an owner by email. Password checks happen in the identity provider."""
    user = await user_service.get_user_by_email(db, request.email)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
        )
    return user


@router.get("/test")
async def reachability_test():
    return {"status": "ok", "message": "Backend reachable"}
