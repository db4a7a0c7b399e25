import uuid
from datetime import datetime, time

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Time, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from alertaseguro.models.base import Base


class Schedule(Base):
    __tablename__ = "schedules"

    link_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("device_owners.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)  # end < start wraps past midnight
    weekdays: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # 0 = Sunday .. 6 = Saturday
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    link: Mapped["DeviceOwner"] = relationship(back_populates="schedules")  # noqa: F821
