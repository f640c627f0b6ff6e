"""
Business Calendar

Resolves a calendar date into either the business's operating window for
that day or a Closed marker, from Holiday and BusinessHours rows.
Read-only against the repository.
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from booking_engine.scheduling.time_utils import contains, to_minutes, to_time_string
from booking_engine.core.errors import InvalidInterval

CLOSED_HOLIDAY = "holiday"
CLOSED_NO_HOURS = "no_business_hours"


@dataclass(frozen=True)
class OperatingWindow:
    """Opening hours of one day, in minutes since midnight: [open, close)."""

    open: int
    close: int

    def __post_init__(self):
        if not self.open < self.close:
            raise InvalidInterval(f"Operating window open {self.open} must be before close {self.close}")

    @classmethod
    def from_strings(cls, open_time: str, close_time: str) -> "OperatingWindow":
        return cls(to_minutes(open_time), to_minutes(close_time))

    @property
    def length(self) -> int:
        return self.close - self.open

    def fits(self, start: int, duration: int) -> bool:
        """True when [start, start+duration) lies inside the window."""
        return contains(self.open, self.close, start, start + duration)

    def __str__(self):
        return f"{to_time_string(self.open)}-{to_time_string(self.close)}"


@dataclass(frozen=True)
class Closed:
    reason: str
    holiday_name: Optional[str] = None


DayResolution = Union[OperatingWindow, Closed]


def weekday_index(on_date: date) -> int:
    """0 = Sunday, 1 = Monday .. 6 = Saturday."""
    return (on_date.weekday() + 1) % 7


def holiday_matches(holiday, on_date: date) -> bool:
    if holiday.date == on_date:
        return True
    return bool(holiday.is_recurring) and (holiday.date.month, holiday.date.day) == (on_date.month, on_date.day)


class BusinessCalendar:
    def __init__(self, repository):
        self.repository = repository

    def find_holiday(self, on_date: date):
        exact = self.repository.get_holiday(on_date)
        if exact is not None:
            return exact
        for holiday in self.repository.list_recurring_holidays():
            if holiday_matches(holiday, on_date):
                return holiday
        return None

    def resolve_day(self, on_date: date) -> DayResolution:
        """
        1. a matching Holiday closes the day outright
        2. no active BusinessHours row for the weekday closes it too
        3. otherwise the BusinessHours row is the day's window
        """
        holiday = self.find_holiday(on_date)
        if holiday is not None:
            return Closed(CLOSED_HOLIDAY, holiday_name=holiday.name)

        hours = self.repository.get_business_hours(weekday_index(on_date))
        if hours is None or not hours.is_active:
            return Closed(CLOSED_NO_HOURS)

        return OperatingWindow.from_strings(hours.open_time, hours.close_time)
