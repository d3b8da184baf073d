"""
Availability Resolver

Computes the bookable slots of one provider on one local calendar date from three sources:
- Weekly schedule rules (local wall-clock windows per weekday)
- Unavailability blocks (absolute UTC ranges)
- Blocking appointments (absolute UTC start + duration)

All overlap math is half-open and done on UTC instants:
    excluded  <=>  other.start < slot_end and other.end > slot_start
so a block or appointment ending exactly when a slot starts leaves that slot bookable.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from careslots.core.errors import (
    CareslotsError,
    DataAccessError,
    InvalidInputError,
    PartialRuleSkipped,
)
from careslots.core.timeutil import (
    day_bounds,
    day_of_week,
    get_zone,
    parse_date,
    parse_wall_clock,
    to_utc,
    utc_to_local_date,
    utc_to_local_wall_clock,
    wall_clock_on_day,
)
from careslots.models.appointment import BLOCKING_STATUSES, Appointment
from careslots.models.schedule import WeeklySchedule
from careslots.models.slot import AvailableSlots, ErrorResult, ResolvedSlot
from careslots.models.time_block import ProviderTimeBlock
from careslots.services.data_access import AvailabilityDataSource
from careslots.services.slot_generator import generate_slots

logger = logging.getLogger(__name__)

Interval = tuple[datetime, datetime]

# Errors from bad rows that escape per-row handling. They empty the day instead of failing it.
INTERNAL_DATA_ERRORS = (ValueError, TypeError, AttributeError, OverflowError)


def validate_provider_id(provider_id: str) -> None:
    if not isinstance(provider_id, str) or not provider_id.strip():
        raise InvalidInputError("provider_id is required")


def validate_duration(duration_minutes: int) -> None:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidInputError(f"duration_minutes must be an integer: {duration_minutes!r}")
    if duration_minutes <= 0:
        raise InvalidInputError(f"duration_minutes must be positive: {duration_minutes}")


def validate_statuses(statuses: Iterable[str]) -> frozenset[str]:
    if isinstance(statuses, str):
        raise InvalidInputError("blocking statuses must be a collection, not a string")
    return frozenset(statuses)


async def fetch_all(*reads) -> list:
    """
    Await independent reads concurrently.

    The first failing read cancels the others, so no read outlives the resolution. Its
    error is raised on its own, with connection and timeout errors as DataAccessError.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(read) for read in reads]
    except ExceptionGroup as eg:
        error = eg.exceptions[0]
        if isinstance(error, (OSError, TimeoutError)):
            raise DataAccessError(
                f"Fetching availability data failed: {type(error).__name__}"
            ) from error
        raise error
    return [task.result() for task in tasks]


def _rule_window(rule: WeeklySchedule, day: date, zone: ZoneInfo) -> Interval:
    try:
        start = parse_wall_clock(rule.start_time)
        end = parse_wall_clock(rule.end_time)
    except InvalidInputError as e:
        raise PartialRuleSkipped("weekly rule", rule.id, str(e)) from e
    if start >= end:
        raise PartialRuleSkipped("weekly rule", rule.id, "start_time must be before end_time")
    return wall_clock_on_day(day, start, zone), wall_clock_on_day(day, end, zone)


def rule_windows(rules: Sequence[WeeklySchedule], day: date, zone: ZoneInfo) -> list[Interval]:
    """UTC windows of the day's rules. Malformed rules are logged and left out."""
    windows = []
    for rule in rules:
        try:
            windows.append(_rule_window(rule, day, zone))
        except PartialRuleSkipped as e:
            logger.warning("Skipping schedule row: %s", e)
    return windows


def block_intervals(blocks: Sequence[ProviderTimeBlock]) -> list[Interval]:
    intervals = []
    for block in blocks:
        try:
            start, end = to_utc(block.start_datetime), to_utc(block.end_datetime)
        except InvalidInputError as e:
            logger.warning("Skipping block row: %s", PartialRuleSkipped("block", block.id, str(e)))
            continue
        if start >= end:
            logger.warning(
                "Skipping block row: %s",
                PartialRuleSkipped("block", block.id, "start must be before end"),
            )
            continue
        intervals.append((start, end))
    return intervals


def appointment_intervals(
    appointments: Sequence[Appointment], statuses: frozenset[str]
) -> list[Interval]:
    """
    Occupied ranges of blocking appointments.

    Zero or missing duration yields (start, start): such an appointment only excludes the
    slot whose range contains its start instant.
    """
    intervals = []
    for appt in appointments:
        if appt.status not in statuses:
            continue
        duration = appt.duration or 0
        try:
            start = to_utc(appt.appointment_date)
            if isinstance(duration, bool) or not isinstance(duration, int) or duration < 0:
                raise InvalidInputError(f"invalid duration {duration!r}")
        except InvalidInputError as e:
            logger.warning(
                "Skipping appointment row: %s", PartialRuleSkipped("appointment", appt.id, str(e))
            )
            continue
        intervals.append((start, start + timedelta(minutes=duration)))
    return intervals


def _overlaps(slot_start: datetime, slot_end: datetime, other: Interval) -> bool:
    other_start, other_end = other
    if other_start == other_end:
        return slot_start <= other_start < slot_end
    return other_start < slot_end and other_end > slot_start


def available_starts(
    windows: Sequence[Interval],
    blocks: Sequence[Interval],
    appointments: Sequence[Interval],
    duration_minutes: int,
    first_only: bool = False,
) -> tuple[list[datetime], int]:
    """
    Candidate slot starts of all windows, deduplicated and sorted, minus excluded ones.

    Returns (available starts, candidate count). With first_only, stops at the first
    available start.
    """
    candidates: set[datetime] = set()
    for window_start, window_end in windows:
        candidates.update(generate_slots(window_start, window_end, duration_minutes))

    step = timedelta(minutes=duration_minutes)
    available = []
    for start in sorted(candidates):
        end = start + step
        if any(_overlaps(start, end, b) for b in blocks):
            continue
        if any(_overlaps(start, end, a) for a in appointments):
            continue
        available.append(start)
        if first_only:
            break
    return available, len(candidates)


async def _resolve(
    data_source: AvailabilityDataSource,
    provider_id: str,
    date_str: str,
    duration_minutes: int,
    tz_name: str,
    blocking_statuses: Iterable[str],
) -> list[ResolvedSlot]:
    validate_provider_id(provider_id)
    validate_duration(duration_minutes)
    statuses = validate_statuses(blocking_statuses)
    zone = get_zone(tz_name)
    day = parse_date(date_str)
    range_start, range_end = day_bounds(day, zone)

    rules, blocks, appointments = await fetch_all(
        data_source.get_weekly_rules(provider_id, day_of_week(day)),
        data_source.get_unavailability_blocks(provider_id, range_start, range_end),
        data_source.get_blocking_appointments(provider_id, range_start, range_end, statuses),
    )

    try:
        rules_fetched, blocks_fetched, appointments_fetched = len(rules), len(blocks), len(appointments)
        starts, candidate_count = available_starts(
            rule_windows(rules, day, zone),
            block_intervals(blocks),
            appointment_intervals(appointments, statuses),
            duration_minutes,
        )
    except INTERNAL_DATA_ERRORS as e:
        logger.exception("Slot computation failed for provider=%s date=%s: %s", provider_id, date_str, e)
        return []

    logger.info(
        "Resolved slots provider=%s date=%s duration=%d rules=%d blocks=%d appointments=%d "
        "candidates=%d available=%d",
        provider_id, date_str, duration_minutes, rules_fetched, blocks_fetched, appointments_fetched,
        candidate_count, len(starts),
        extra={
            "provider_id": provider_id,
            "slot_date": date_str,
            "duration_minutes": duration_minutes,
            "timezone": tz_name,
            "rules_fetched": rules_fetched,
            "blocks_fetched": blocks_fetched,
            "appointments_fetched": appointments_fetched,
            "candidate_slots": candidate_count,
            "available_slots": len(starts),
        },
    )
    step = timedelta(minutes=duration_minutes)
    return [
        ResolvedSlot(start_utc=s, end_utc=s + step, local_label=utc_to_local_wall_clock(s, tz_name))
        for s in starts
    ]


async def resolve_available_slots(
    data_source: AvailabilityDataSource,
    provider_id: str,
    date_str: str,
    duration_minutes: int,
    tz_name: str,
    blocking_statuses: Iterable[str] = BLOCKING_STATUSES,
) -> AvailableSlots | ErrorResult:
    """
    Bookable slots of a provider on a local date, ascending.

    No availability is an empty success. Invalid input and data access failures come back
    as ErrorResult. Cancellation propagates.
    """
    try:
        slots = await _resolve(
            data_source, provider_id, date_str, duration_minutes, tz_name, blocking_statuses
        )
    except CareslotsError as e:
        logger.warning("Slot resolution failed provider=%s date=%s: %s", provider_id, date_str, e)
        return ErrorResult(error=e.kind, detail=str(e))
    return AvailableSlots(date=date_str, slots=slots)


async def is_slot_available(
    data_source: AvailabilityDataSource,
    provider_id: str,
    start_utc: datetime | str,
    duration_minutes: int,
    tz_name: str,
    blocking_statuses: Iterable[str] = BLOCKING_STATUSES,
) -> bool | ErrorResult:
    """Whether start_utc is one of the resolved slots on its local date. Advisory only."""
    try:
        instant = to_utc(start_utc)
        date_str = utc_to_local_date(instant, tz_name)
    except InvalidInputError as e:
        return ErrorResult(error=e.kind, detail=str(e))
    result = await resolve_available_slots(
        data_source, provider_id, date_str, duration_minutes, tz_name, blocking_statuses
    )
    if isinstance(result, ErrorResult):
        return result
    return any(slot.start_utc == instant for slot in result.slots)
