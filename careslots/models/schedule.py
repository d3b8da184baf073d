from datetime import datetime

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from careslots.models._time import utc_naive_now


class WeeklySchedule(SQLModel, table=True):
    """One recurring availability window: a local wall-clock range on one weekday."""

    __tablename__ = "provider_weekly_schedules"
    __table_args__ = (Index("ix_provider_weekly_schedules_provider_day", "provider_id", "day_of_week"),)

    id: int | None = Field(default=None, primary_key=True)
    provider_id: str = Field(index=True)
    day_of_week: int = Field(index=True)  # 0=Sunday .. 6=Saturday
    start_time: str  # local HH:MM, no offset
    end_time: str  # local HH:MM, exclusive; 24:00 allowed
    created_at: datetime = Field(default_factory=utc_naive_now)
    updated_at: datetime = Field(default_factory=utc_naive_now)
