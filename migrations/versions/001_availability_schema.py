"""Availability schema: provider_weekly_schedules, provider_time_blocks, appointments.

Revision ID: 001_availability
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_availability"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "provider_weekly_schedules",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.String(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(), nullable=False),
        sa.Column("end_time", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_weekly_schedules_day_of_week"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_provider_weekly_schedules_provider_id"), "provider_weekly_schedules", ["provider_id"], unique=False)
    op.create_index(op.f("ix_provider_weekly_schedules_day_of_week"), "provider_weekly_schedules", ["day_of_week"], unique=False)
    op.create_index("ix_provider_weekly_schedules_provider_day", "provider_weekly_schedules", ["provider_id", "day_of_week"], unique=False)

    op.create_table(
        "provider_time_blocks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.String(), nullable=False),
        sa.Column("start_datetime", sa.DateTime(), nullable=False),
        sa.Column("end_datetime", sa.DateTime(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("is_unavailable", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_provider_time_blocks_provider_id"), "provider_time_blocks", ["provider_id"], unique=False)
    op.create_index(op.f("ix_provider_time_blocks_start_datetime"), "provider_time_blocks", ["start_datetime"], unique=False)
    op.create_index(op.f("ix_provider_time_blocks_end_datetime"), "provider_time_blocks", ["end_datetime"], unique=False)
    op.create_index("ix_provider_time_blocks_provider_start", "provider_time_blocks", ["provider_id", "start_datetime"], unique=False)

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("provider_id", sa.String(), nullable=False),
        sa.Column("patient_id", sa.String(), nullable=False),
        sa.Column("appointment_date", sa.DateTime(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="scheduled"),
        sa.Column("type", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_appointments_provider_id"), "appointments", ["provider_id"], unique=False)
    op.create_index(op.f("ix_appointments_patient_id"), "appointments", ["patient_id"], unique=False)
    op.create_index(op.f("ix_appointments_appointment_date"), "appointments", ["appointment_date"], unique=False)
    op.create_index(op.f("ix_appointments_status"), "appointments", ["status"], unique=False)
    op.create_index("ix_appointments_provider_date", "appointments", ["provider_id", "appointment_date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_appointments_provider_date", table_name="appointments")
    op.drop_index(op.f("ix_appointments_status"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_appointment_date"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_patient_id"), table_name="appointments")
    op.drop_index(op.f("ix_appointments_provider_id"), table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_provider_time_blocks_provider_start", table_name="provider_time_blocks")
    op.drop_index(op.f("ix_provider_time_blocks_end_datetime"), table_name="provider_time_blocks")
    op.drop_index(op.f("ix_provider_time_blocks_start_datetime"), table_name="provider_time_blocks")
    op.drop_index(op.f("ix_provider_time_blocks_provider_id"), table_name="provider_time_blocks")
    op.drop_table("provider_time_blocks")
    op.drop_index("ix_provider_weekly_schedules_provider_day", table_name="provider_weekly_schedules")
    op.drop_index(op.f("ix_provider_weekly_schedules_day_of_week"), table_name="provider_weekly_schedules")
    op.drop_index(op.f("ix_provider_weekly_schedules_provider_id"), table_name="provider_weekly_schedules")
    op.drop_table("provider_weekly_schedules")
