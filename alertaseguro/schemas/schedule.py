import uuid
from datetime import datetime, time
from typing import Annotated

from pydantic import BaseModel, Field, field_validator

Weekday = Annotated[int, Field(ge=0, le=6)]  # 0 = Sunday


def _clock(v: time | None) -> time | None:
    if v is None:
        return None
    if v.tzinfo is not None:
        raise ValueError("Schedule times are local wall-clock times and cannot carry a UTC offset")
    # Only hour and minute take part in window evaluation
    return v.replace(second=0, microsecond=0)


def _weekday_set(v: list[int] | None) -> list[int] | None:
    return sorted(set(v)) if v is not None else None


class ScheduleCreate(BaseModel):
    start_time: time
    end_time: time  # earlier than start_time = window crosses midnight
    weekdays: list[Weekday] = Field(max_length=7)
    enabled: bool = True

    normalize_times = field_validator("start_time", "end_time")(_clock)
    normalize_weekdays = field_validator("weekdays")(_weekday_set)


class ScheduleUpdate(BaseModel):
    start_time: time | None = None
    end_time: time | None = None
    weekdays: list[Weekday] | None = Field(default=None, max_length=7)
    enabled: bool | None = None

    normalize_times = field_validator("start_time", "end_time")(_clock)
    normalize_weekdays = field_validator("weekdays")(_weekday_set)


class ScheduleResponse(BaseModel):
    id: uuid.UUID
    start_time: time
    end_time: time
    weekdays: list[int]
    enabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}
