from datetime import datetime
from enum import Enum

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from careslots.models._time import naive_utc, utc_naive_now


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


# The only statuses that occupy a slot. Cancelled never blocks.
BLOCKING_STATUSES: frozenset[str] = frozenset(
    {AppointmentStatus.scheduled.value, AppointmentStatus.pending.value}
)


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_provider_date", "provider_id", "appointment_date"),)

    id: int | None = Field(default=None, primary_key=True)
    provider_id: str = Field(index=True)
    patient_id: str = Field(index=True)
    appointment_date: datetime = Field(index=True)  # UTC start
    duration: int | None = None  # minutes
    status: str = Field(default=AppointmentStatus.scheduled.value, index=True)
    type: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=utc_naive_now)
    updated_at: datetime = Field(default_factory=utc_naive_now)

    def model_post_init(self, __context: object) -> None:
        """Ensure appointment_date is naive UTC for TIMESTAMP WITHOUT TIME ZONE."""
        if isinstance(self.appointment_date, datetime):
            self.appointment_date = naive_utc(self.appointment_date)

