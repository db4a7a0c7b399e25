import uuid
from datetime import datetime

from pydantic import BaseModel


class SensorEventResponse(BaseModel):
    id: uuid.UUID
    device_mac: str
    message: str
    delivered: bool
    created_at: datetime

    model_config = {"from_attributes": True}
