"""
Time-of-day arithmetic on "HH:MM" strings and minute offsets.

All intervals are half-open: [start, end). Pure functions, no I/O.
"""
import re

from booking_engine.core.errors import InvalidInterval, InvalidTimeFormat

TIME_PATTERN = r"^([0-1]\d|2[0-3]):([0-5]\d)$"
_TIME_RE = re.compile(TIME_PATTERN)

MINUTES_PER_DAY = 24 * 60


def to_minutes(value: str) -> int:
    """ "09:30" -> 570. Raises InvalidTimeFormat for anything that is not a valid HH:MM."""
    if not isinstance(value, str):
        raise InvalidTimeFormat(f"Expected an HH:MM string, got {type(value).__name__}")
    match = _TIME_RE.match(value)
    if not match:
        raise InvalidTimeFormat(f"Invalid time {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def to_time_string(minutes: int) -> str:
    """570 -> "09:30". Exact inverse of to_minutes on 0 <= minutes < 1440."""
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidTimeFormat(f"Expected integer minutes, got {minutes!r}")
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeFormat(f"{minutes} minutes is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(value: str, minutes: int) -> str:
    return to_time_string(to_minutes(value) + minutes)


def _check_interval(start, end):
    if not start < end:
        raise InvalidInterval(f"Interval start {start!r} must be before end {end!r}")


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """
    True when [a_start, a_end) and [b_start, b_end) share at least one instant.
    Touching endpoints (a_end == b_start) do not overlap.
    """
    _check_interval(a_start, a_end)
    _check_interval(b_start, b_end)
    return a_start < b_end and b_start < a_end


def contains(outer_start, outer_end, inner_start, inner_end) -> bool:
    """True when [inner_start, inner_end) lies entirely inside [outer_start, outer_end)."""
    _check_interval(outer_start, outer_end)
    _check_interval(inner_start, inner_end)
    return outer_start <= inner_start and inner_end <= outer_end
