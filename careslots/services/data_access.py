from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from careslots.models.appointment import Appointment
from careslots.models.schedule import WeeklySchedule
from careslots.models.time_block import ProviderTimeBlock


class AvailabilityDataSource(Protocol):
    """Read side of the schedule store. Implementations raise DataAccessError on failure."""

    async def get_weekly_rules(self, provider_id: str, day_of_week: int) -> Sequence[WeeklySchedule]:
        ...

    async def get_weekly_rules_for_all_days(self, provider_id: str) -> Sequence[WeeklySchedule]:
        ...

    async def get_unavailability_blocks(
        self, provider_id: str, range_start: datetime, range_end: datetime
    ) -> Sequence[ProviderTimeBlock]:
        """Unavailable blocks overlapping [range_start, range_end)."""
        ...

    async def get_blocking_appointments(
        self,
        provider_id: str,
        range_start: datetime,
        range_end: datetime,
        statuses: Iterable[str],
    ) -> Sequence[Appointment]:
        """Appointments starting within [range_start, range_end) whose status is in statuses."""
        ...
