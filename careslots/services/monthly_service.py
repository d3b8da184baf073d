"""
Monthly Availability Scanner

Answers "which dates of a month have at least one bookable slot" for calendar highlighting.
Rules, blocks and appointments for the whole month are fetched once, then split per local
day in memory with the same rules the single-day fetch uses:
- blocks by overlap with the day's UTC bounds
- appointments by the local date they start on
Each day then goes through the same computation as the daily resolver, stopping at the
first available slot.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable

from careslots.core.errors import CareslotsError
from careslots.core.timeutil import day_bounds, day_of_week, get_zone, month_dates, month_utc_bounds
from careslots.models.appointment import BLOCKING_STATUSES
from careslots.models.slot import AvailableDates, ErrorResult
from careslots.services.availability_service import (
    INTERNAL_DATA_ERRORS,
    appointment_intervals,
    available_starts,
    block_intervals,
    fetch_all,
    rule_windows,
    validate_duration,
    validate_provider_id,
    validate_statuses,
)
from careslots.services.data_access import AvailabilityDataSource

logger = logging.getLogger(__name__)


async def _scan(
    data_source: AvailabilityDataSource,
    provider_id: str,
    year: int,
    month: int,
    duration_minutes: int,
    tz_name: str,
    blocking_statuses: Iterable[str],
) -> set[str]:
    validate_provider_id(provider_id)
    validate_duration(duration_minutes)
    statuses = validate_statuses(blocking_statuses)
    zone = get_zone(tz_name)
    days = month_dates(year, month)
    range_start, range_end = month_utc_bounds(year, month, zone)

    rules, blocks, appointments = await fetch_all(
        data_source.get_weekly_rules_for_all_days(provider_id),
        data_source.get_unavailability_blocks(provider_id, range_start, range_end),
        data_source.get_blocking_appointments(provider_id, range_start, range_end, statuses),
    )

    try:
        rules_fetched, blocks_fetched, appointments_fetched = len(rules), len(blocks), len(appointments)
        rules_by_dow = defaultdict(list)
        for rule in rules:
            rules_by_dow[rule.day_of_week].append(rule)
        blocked = block_intervals(blocks)
        booked_by_date = defaultdict(list)
        for interval in appointment_intervals(appointments, statuses):
            booked_by_date[interval[0].astimezone(zone).date()].append(interval)
    except INTERNAL_DATA_ERRORS as e:
        logger.exception(
            "Availability data unusable for provider=%s month=%04d-%02d: %s", provider_id, year, month, e
        )
        return set()

    dates: set[str] = set()
    for day in days:
        day_rules = rules_by_dow.get(day_of_week(day))
        if not day_rules:
            continue
        day_start, day_end = day_bounds(day, zone)
        day_blocks = [b for b in blocked if b[0] < day_end and b[1] > day_start]
        try:
            starts, _ = available_starts(
                rule_windows(day_rules, day, zone),
                day_blocks,
                booked_by_date.get(day, []),
                duration_minutes,
                first_only=True,
            )
        except INTERNAL_DATA_ERRORS as e:
            logger.exception("Slot computation failed for provider=%s date=%s: %s", provider_id, day, e)
            continue
        if starts:
            dates.add(day.isoformat())

    logger.info(
        "Resolved available dates provider=%s month=%04d-%02d duration=%d rules=%d blocks=%d "
        "appointments=%d available_dates=%d",
        provider_id, year, month, duration_minutes, rules_fetched, blocks_fetched, appointments_fetched,
        len(dates),
        extra={
            "provider_id": provider_id,
            "year": year,
            "month": month,
            "duration_minutes": duration_minutes,
            "timezone": tz_name,
            "rules_fetched": rules_fetched,
            "blocks_fetched": blocks_fetched,
            "appointments_fetched": appointments_fetched,
            "available_dates": len(dates),
        },
    )
    return dates


async def resolve_available_dates_in_month(
    data_source: AvailabilityDataSource,
    provider_id: str,
    year: int,
    month: int,
    duration_minutes: int,
    tz_name: str,
    blocking_statuses: Iterable[str] = BLOCKING_STATUSES,
) -> AvailableDates | ErrorResult:
    """Local dates (YYYY-MM-DD) of the month with at least one bookable slot."""
    try:
        dates = await _scan(
            data_source, provider_id, year, month, duration_minutes, tz_name, blocking_statuses
        )
    except CareslotsError as e:
        logger.warning("Monthly availability failed provider=%s month=%s-%s: %s", provider_id, year, month, e)
        return ErrorResult(error=e.kind, detail=str(e))
    return AvailableDates(year=year, month=month, dates=dates)
