"""Pytest configuration and fixtures."""

import os

# Settings are read at import time; pin them before anything from careslots is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PROVIDER_TIMEZONE"] = "America/New_York"
os.environ["DEFAULT_APPOINTMENT_DURATION_MINUTES"] = "60"
os.environ["BLOCKING_STATUSES"] = "scheduled,pending"
os.environ["ENV"] = "test"

from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402

from careslots.core.timeutil import local_wall_clock_to_utc, to_utc  # noqa: E402
from careslots.models import Appointment, ProviderTimeBlock, WeeklySchedule  # noqa: E402

PROVIDER = "prov-1"
TZ = "America/New_York"


def local(date_str: str, hhmm: str) -> datetime:
    """UTC instant of a New York wall-clock time, for readable fixtures."""
    return local_wall_clock_to_utc(date_str, hhmm, TZ)


class FakeDataSource:
    """In-memory AvailabilityDataSource with the same filtering contract as the SQL repository."""

    def __init__(self) -> None:
        self.rules: list[WeeklySchedule] = []
        self.blocks: list[ProviderTimeBlock] = []
        self.appointments: list[Appointment] = []
        self.calls: list[str] = []
        self._next_id = 1

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id

    def add_rule(self, day_of_week: int, start: str, end: str, provider_id: str = PROVIDER) -> WeeklySchedule:
        rule = WeeklySchedule(
            id=self._id(), provider_id=provider_id, day_of_week=day_of_week, start_time=start, end_time=end
        )
        self.rules.append(rule)
        return rule

    def add_block(
        self, start: datetime, end: datetime, provider_id: str = PROVIDER, is_unavailable: bool = True
    ) -> ProviderTimeBlock:
        block = ProviderTimeBlock(
            id=self._id(),
            provider_id=provider_id,
            start_datetime=start,
            end_datetime=end,
            is_unavailable=is_unavailable,
        )
        self.blocks.append(block)
        return block

    def add_appointment(
        self,
        start: datetime,
        duration: int | None = 60,
        status: str = "scheduled",
        provider_id: str = PROVIDER,
    ) -> Appointment:
        appt = Appointment(
            id=self._id(),
            provider_id=provider_id,
            patient_id="patient-1",
            appointment_date=start,
            duration=duration,
            status=status,
        )
        self.appointments.append(appt)
        return appt

    async def get_weekly_rules(self, provider_id, day_of_week):
        self.calls.append("get_weekly_rules")
        return [r for r in self.rules if r.provider_id == provider_id and r.day_of_week == day_of_week]

    async def get_weekly_rules_for_all_days(self, provider_id):
        self.calls.append("get_weekly_rules_for_all_days")
        return [r for r in self.rules if r.provider_id == provider_id]

    async def get_unavailability_blocks(self, provider_id, range_start, range_end):
        self.calls.append("get_unavailability_blocks")
        return [
            b
            for b in self.blocks
            if b.provider_id == provider_id
            and b.is_unavailable
            and to_utc(b.start_datetime) < range_end
            and to_utc(b.end_datetime) > range_start
        ]

    async def get_blocking_appointments(self, provider_id, range_start, range_end, statuses):
        self.calls.append("get_blocking_appointments")
        return [
            a
            for a in self.appointments
            if a.provider_id == provider_id
            and a.status in statuses
            and range_start <= to_utc(a.appointment_date) < range_end
        ]


@pytest.fixture
def data_source() -> FakeDataSource:
    return FakeDataSource()


@pytest.fixture
def utc():
    def _utc(*args: int) -> datetime:
        return datetime(*args, tzinfo=UTC)

    return _utc
