"""
Time zone normalization for provider schedules.

The single place where local wall-clock values (``HH:MM`` schedule times, ``YYYY-MM-DD``
calendar dates) are turned into absolute UTC instants and back. Every function takes the
IANA zone name explicitly; there is no fallback to the server's local zone.

Local days are not always 24 hours long: on DST transitions a day bound is computed from
the local midnights on either side, so the UTC span is 23 or 25 hours.
"""

import calendar
import re
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from careslots.core.errors import InvalidInputError

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_WALL_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

END_OF_DAY = timedelta(hours=24)
MIN_YEAR = 1
MAX_YEAR = 9998


def get_zone(tz_name: str) -> ZoneInfo:
    if not isinstance(tz_name, str) or not tz_name.strip():
        raise InvalidInputError("A time zone name is required")
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise InvalidInputError(f"Unknown time zone: {tz_name!r}") from e


def parse_date(date_str: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` calendar date."""
    if not isinstance(date_str, str) or not _DATE_RE.match(date_str):
        raise InvalidInputError(f"Invalid date (expected YYYY-MM-DD): {date_str!r}")
    try:
        return date.fromisoformat(date_str)
    except ValueError as e:
        raise InvalidInputError(f"Invalid date: {date_str!r}") from e


def parse_wall_clock(value: str | time) -> timedelta:
    """
    Parse a local time of day into an offset from local midnight.

    Accepts ``HH:MM`` or ``HH:MM:SS`` (what a Postgres TIME column renders) and
    ``datetime.time``. ``24:00`` is accepted and means the following midnight.
    """
    if isinstance(value, time):
        return timedelta(hours=value.hour, minutes=value.minute, seconds=value.second)
    if not isinstance(value, str):
        raise InvalidInputError(f"Invalid time of day: {value!r}")
    m = _WALL_CLOCK_RE.match(value.strip())
    if not m:
        raise InvalidInputError(f"Invalid time of day (expected HH:MM): {value!r}")
    hours, minutes, seconds = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    if hours == 24 and minutes == 0 and seconds == 0:
        return END_OF_DAY
    if hours > 23 or minutes > 59 or seconds > 59:
        raise InvalidInputError(f"Time of day out of range: {value!r}")
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def to_utc(value: datetime | str) -> datetime:
    """Aware UTC datetime from a datetime (naive means UTC, as stored) or an ISO-8601 string."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise InvalidInputError(f"Unparseable instant: {value!r}") from e
    if not isinstance(value, datetime):
        raise InvalidInputError(f"Unparseable instant: {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    try:
        return value.astimezone(UTC)
    except OverflowError as e:
        raise InvalidInputError(f"Instant out of supported range: {value.isoformat()}") from e


def day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC instants of local midnight on ``day`` and on the day after."""
    try:
        start = datetime.combine(day, time.min, tzinfo=zone).astimezone(UTC)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone).astimezone(UTC)
    except OverflowError as e:
        raise InvalidInputError(f"Date out of supported range: {day.isoformat()}") from e
    return start, end


def wall_clock_on_day(day: date, offset: timedelta, zone: ZoneInfo) -> datetime:
    """
    UTC instant of a local wall-clock offset on ``day``.

    Wall times skipped by a spring-forward transition resolve with fold=0, i.e. with the
    offset in force before the transition; repeated fall-back times resolve to their first
    occurrence.
    """
    whole_days, remainder = divmod(offset, timedelta(days=1))
    local_day = day + timedelta(days=whole_days)
    wall = datetime.combine(local_day, time.min) + remainder
    return wall.replace(tzinfo=zone, fold=0).astimezone(UTC)


def local_date_to_utc_day_bounds(date_str: str, tz_name: str) -> tuple[datetime, datetime]:
    return day_bounds(parse_date(date_str), get_zone(tz_name))


def local_wall_clock_to_utc(date_str: str, wall_clock: str, tz_name: str) -> datetime:
    zone = get_zone(tz_name)
    day = parse_date(date_str)
    offset = parse_wall_clock(wall_clock)
    try:
        return wall_clock_on_day(day, offset, zone)
    except OverflowError as e:
        raise InvalidInputError(f"Date out of supported range: {date_str}") from e


def to_local(instant: datetime | str, tz_name: str) -> datetime:
    value = to_utc(instant)
    try:
        return value.astimezone(get_zone(tz_name))
    except OverflowError as e:
        raise InvalidInputError(f"Instant out of supported range: {value.isoformat()}") from e


def utc_to_local_wall_clock(instant: datetime | str, tz_name: str) -> str:
    return to_local(instant, tz_name).strftime("%H:%M")


def utc_to_local_date(instant: datetime | str, tz_name: str) -> str:
    return to_local(instant, tz_name).date().isoformat()


def local_day_of_week(date_str: str, tz_name: str) -> int:
    """Day of week of a date as a calendar date in ``tz_name``: 0=Sunday .. 6=Saturday."""
    get_zone(tz_name)
    return day_of_week(parse_date(date_str))


def day_of_week(day: date) -> int:
    return day.isoweekday() % 7


def month_dates(year: int, month: int) -> list[date]:
    if isinstance(year, bool) or not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidInputError(f"Year out of range: {year!r}")
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidInputError(f"Month must be 1..12: {month!r}")
    _, days = calendar.monthrange(year, month)
    return [date(year, month, d) for d in range(1, days + 1)]


def month_utc_bounds(year: int, month: int, zone: ZoneInfo) -> tuple[datetime, datetime]:
    days = month_dates(year, month)
    return day_bounds(days[0], zone)[0], day_bounds(days[-1], zone)[1]
