from datetime import datetime

from pydantic import BaseModel


class SlotInfo(BaseModel):
    start_utc: datetime
    end_utc: datetime
    local_label: str  # HH:MM in the provider's zone


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    timezone: str
    slots: list[SlotInfo]


class AvailableDatesResponse(BaseModel):
    year: int
    month: int
    timezone: str
    dates: list[str]  # sorted YYYY-MM-DD


class SlotCheckResponse(BaseModel):
    start_utc: datetime
    duration_minutes: int
    available: bool
