"""Initial schema - users, devices, owner links, schedules, sensor events

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("push_token", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # Devices
    op.create_table(
        "devices",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("mac", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("device_type", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_devices"),
    )
    op.create_index("ix_devices_mac", "devices", ["mac"], unique=True)

    # Device owners
    op.create_table(
        "device_owners",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("device_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_device_owners"),
        sa.ForeignKeyConstraint(["device_id"], ["devices.id"], name="fk_device_owners_device_id_devices", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_device_owners_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("device_id", "user_id", name="uq_device_owners_pair"),
    )
    op.create_index("ix_device_owners_device_id", "device_owners", ["device_id"])
    op.create_index("ix_device_owners_user_id", "device_owners", ["user_id"])

    # Schedules
    op.create_table(
        "schedules",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("link_id", sa.Uuid(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("weekdays", sa.JSON(), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_schedules"),
        sa.ForeignKeyConstraint(["link_id"], ["device_owners.id"], name="fk_schedules_link_id_device_owners", ondelete="CASCADE"),
    )
    op.create_index("ix_schedules_link_id", "schedules", ["link_id"])

    # Sensor events
    op.create_table(
        "sensor_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("link_id", sa.Uuid(), nullable=False),
        sa.Column("device_mac", sa.String(64), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("delivered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_sensor_events"),
        sa.ForeignKeyConstraint(["link_id"], ["device_owners.id"], name="fk_sensor_events_link_id_device_owners", ondelete="CASCADE"),
    )
    op.create_index("ix_sensor_events_link_created", "sensor_events", ["link_id", "created_at"])


def downgrade() -> None:
    op.drop_table("sensor_events")
    op.drop_table("schedules")
    op.drop_table("device_owners")
    op.drop_table("devices")
    op.drop_table("users")
