import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class DeviceRegister(BaseModel):
    mac: str = Field(min_length=1, max_length=64)
    name: str = Field(
        min_length=1, max_length=255, validation_alias=AliasChoices("name", "nome")
    )
    location: str = Field(
        default="", max_length=255, validation_alias=AliasChoices("location", "localizacao")
    )
    device_type: str = Field(
        default="", max_length=50, validation_alias=AliasChoices("device_type", "tipo")
    )


class DeviceResponse(BaseModel):
    id: uuid.UUID
    mac: str
    name: str
    location: str
    device_type: str
    created_at: datetime

    model_config = {"from_attributes": True}


class SensorEventIn(BaseModel):
    """Payload posted by the ESP firmware."""

    device_id: str = Field(
        min_length=1, max_length=64, validation_alias=AliasChoices("mac", "device_id")
    )
    message: str = Field(
        min_length=1, max_length=1000, validation_alias=AliasChoices("mensagem", "message")
    )


class OwnerOutcomeResponse(BaseModel):
    owner_id: uuid.UUID
    recorded: bool
    notified: bool
    reason: str | None = None
    event_id: uuid.UUID | None = None

    model_config = {"from_attributes": True}


class SensorEventResult(BaseModel):
    device_id: str
    considered: int
    recorded: int
    notified: int
    owners: list[OwnerOutcomeResponse]

    model_config = {"from_attributes": True}
