from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from alertaseguro.models.base import Base


class Device(Base):
    __tablename__ = "devices"

    mac: Mapped[str] = mapped_column(String(64), unique=True, index=True)  # lowercase
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="")
    device_type: Mapped[str] = mapped_column(String(50), default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    owner_links: Mapped[list["DeviceOwner"]] = relationship(  # noqa: F821
        back_populates="device", cascade="all, delete-orphan"
    )
