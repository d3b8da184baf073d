from datetime import datetime, timedelta


def _is_aware(value: object) -> bool:
    return isinstance(value, datetime) and value.tzinfo is not None and value.utcoffset() is not None


def generate_slots(
    window_start: datetime, window_end: datetime, duration_minutes: int
) -> list[datetime]:
    """Fixed-duration slot starts in [window_start, window_end), aligned to window_start.

    A slot is kept only if it ends at or before window_end. Invalid bounds or a non-positive
    duration give an empty list so one bad schedule row cannot break the rest of the day.
    Arithmetic is on absolute instants: pass UTC bounds.
    """
    if not (_is_aware(window_start) and _is_aware(window_end)):
        return []
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        return []
    if duration_minutes <= 0 or window_start >= window_end:
        return []
    step = timedelta(minutes=duration_minutes)
    slots: list[datetime] = []
    current = window_start
    while current + step <= window_end:
        slots.append(current)
        current += step
    return slots
