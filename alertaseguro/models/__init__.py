from alertaseguro.models.base import Base
from alertaseguro.models.device import Device
from alertaseguro.models.device_owner import DeviceOwner
from alertaseguro.models.schedule import Schedule
from alertaseguro.models.sensor_event import SensorEvent
from alertaseguro.models.user import User

__all__ = [
    "Base",
    "Device",
    "DeviceOwner",
    "Schedule",
    "SensorEvent",
    "User",
]
