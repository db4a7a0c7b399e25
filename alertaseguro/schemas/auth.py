import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    email: EmailStr
    display_name: str | None = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("display_name", "nome"),
    )


class RegisterResponse(BaseModel):
    uid: uuid.UUID


class LoginRequest(BaseModel):
    email: EmailStr


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    display_name: str | None
    has_push_token: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class PushTokenUpdate(BaseModel):
    token: str = Field(min_length=1, max_length=512)


class PushTokenResponse(BaseModel):
    success: bool
    message: str
