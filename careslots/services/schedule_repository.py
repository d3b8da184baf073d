import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from careslots.core.errors import DataAccessError
from careslots.models.appointment import Appointment
from careslots.models.schedule import WeeklySchedule
from careslots.models.time_block import ProviderTimeBlock

logger = logging.getLogger(__name__)


def _to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


class SqlAvailabilityRepository:
    """AvailabilityDataSource over the SQL store.

    Every read opens its own session, so the resolver can issue the three reads concurrently.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @asynccontextmanager
    async def _reading(self, what: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_maker() as session:
                yield session
        except (SQLAlchemyError, OSError, TimeoutError) as e:
            logger.exception("Fetching %s failed: %s", what, e)
            raise DataAccessError(f"Fetching {what} failed: {type(e).__name__}") from e

    async def get_weekly_rules(self, provider_id: str, day_of_week: int) -> list[WeeklySchedule]:
        async with self._reading("weekly rules") as session:
            result = await session.execute(
                select(WeeklySchedule)
                .where(
                    WeeklySchedule.provider_id == provider_id,
                    WeeklySchedule.day_of_week == day_of_week,
                )
                .order_by(WeeklySchedule.start_time)
            )
            return list(result.scalars().all())

    async def get_weekly_rules_for_all_days(self, provider_id: str) -> list[WeeklySchedule]:
        async with self._reading("weekly rules") as session:
            result = await session.execute(
                select(WeeklySchedule)
                .where(WeeklySchedule.provider_id == provider_id)
                .order_by(WeeklySchedule.day_of_week, WeeklySchedule.start_time)
            )
            return list(result.scalars().all())

    async def get_unavailability_blocks(
        self, provider_id: str, range_start: datetime, range_end: datetime
    ) -> list[ProviderTimeBlock]:
        async with self._reading("unavailability blocks") as session:
            result = await session.execute(
                select(ProviderTimeBlock)
                .where(
                    ProviderTimeBlock.provider_id == provider_id,
                    ProviderTimeBlock.is_unavailable.is_(True),
                    ProviderTimeBlock.start_datetime < _to_naive_utc(range_end),
                    ProviderTimeBlock.end_datetime > _to_naive_utc(range_start),
                )
                .order_by(ProviderTimeBlock.start_datetime)
            )
            return list(result.scalars().all())

    async def get_blocking_appointments(
        self,
        provider_id: str,
        range_start: datetime,
        range_end: datetime,
        statuses: Iterable[str],
    ) -> list[Appointment]:
        async with self._reading("appointments") as session:
            result = await session.execute(
                select(Appointment)
                .where(
                    Appointment.provider_id == provider_id,
                    Appointment.appointment_date >= _to_naive_utc(range_start),
                    Appointment.appointment_date < _to_naive_utc(range_end),
                    Appointment.status.in_(sorted(statuses)),
                )
                .order_by(Appointment.appointment_date)
            )
            return list(result.scalars().all())
