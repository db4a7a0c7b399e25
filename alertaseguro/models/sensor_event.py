import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from alertaseguro.models.base import Base


class SensorEvent(Base):
    __tablename__ = "sensor_events"

    link_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("device_owners.id", ondelete="CASCADE"), nullable=False
    )
    device_mac: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    delivered: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    link: Mapped["DeviceOwner"] = relationship(back_populates="events")  # noqa: F821

    __table_args__ = (
        Index("ix_sensor_events_link_created", "link_id", "created_at"),
    )
