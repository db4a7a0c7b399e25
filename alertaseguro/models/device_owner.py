import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from alertaseguro.models.base import Base


class DeviceOwner(Base):
    """Link between a device and one of its owners.

    Schedules and sensor events hang off the link, so removing an owner from a
    device removes that pairing's history and windows with it.
    """

    __tablename__ = "device_owners"

    device_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    device: Mapped["Device"] = relationship(back_populates="owner_links")  # noqa: F821
    user: Mapped["User"] = relationship(back_populates="device_links")  # noqa: F821
    schedules: Mapped[list["Schedule"]] = relationship(  # noqa: F821
        back_populates="link", cascade="all, delete-orphan"
    )
    events: Mapped[list["SensorEvent"]] = relationship(  # noqa: F821
        back_populates="link", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("device_id", "user_id", name="uq_device_owners_pair"),
    )
