from datetime import datetime

from pydantic import BaseModel

from careslots.core.errors import ErrorKind


class ResolvedSlot(BaseModel):
    start_utc: datetime
    end_utc: datetime
    local_label: str  # HH:MM in the provider's zone


class AvailableSlots(BaseModel):
    date: str  # YYYY-MM-DD, local
    slots: list[ResolvedSlot]


class AvailableDates(BaseModel):
    year: int
    month: int
    dates: set[str]


class ErrorResult(BaseModel):
    error: ErrorKind
    detail: str
