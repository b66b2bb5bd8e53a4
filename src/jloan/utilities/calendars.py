"""Business day calendars.

A calendar decides which dates are business days and moves dates by a number
of business days; loans use it to derive the settlement date from the
evaluation date.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date, timedelta

from jloan.core.types import Calendar
from jloan.exceptions import ConventionError

_ONE_DAY = timedelta(days=1)


class HolidayCalendar(ABC):
    """Abstract base class for holiday calendars."""

    name: str = "calendar"

    @abstractmethod
    def is_business_day(self, d: date) -> bool:
        """Check if a date is a business day.

        Example:
            >>> MondayToFridayCalendar().is_business_day(date(2024, 1, 15))  # Monday
            True
        """

    def is_holiday(self, d: date) -> bool:
        """Check if a date is a holiday (not a business day)."""
        return not self.is_business_day(d)

    def next_business_day(self, d: date) -> date:
        """Get the first business day on or after the given date.

        Example:
            >>> MondayToFridayCalendar().next_business_day(date(2024, 1, 6))  # Saturday
            datetime.date(2024, 1, 8)
        """
        while not self.is_business_day(d):
            d += _ONE_DAY
        return d

    def previous_business_day(self, d: date) -> date:
        """Get the last business day on or before the given date."""
        while not self.is_business_day(d):
            d -= _ONE_DAY
        return d

    def advance(self, d: date, business_days: int) -> date:
        """Move a date by a number of business days.

        With zero days the date is rolled forward to the next business day
        (or kept, if it already is one). Negative values move backwards.

        Args:
            d: Starting date
            business_days: Number of business days to move

        Returns:
            The advanced date

        Example:
            >>> cal = MondayToFridayCalendar()
            >>> cal.advance(date(2024, 1, 5), 1)  # Friday -> Monday
            datetime.date(2024, 1, 8)
        """
        if business_days == 0:
            return self.next_business_day(d)

        step = _ONE_DAY if business_days > 0 else -_ONE_DAY
        remaining = abs(business_days)
        while remaining > 0:
            d += step
            if self.is_business_day(d):
                remaining -= 1
        return d

    def business_days_between(self, start: date, end: date, include_end: bool = False) -> int:
        """Count business days in ``[start, end)`` (or ``[start, end]``).

        Example:
            >>> MondayToFridayCalendar().business_days_between(date(2024, 1, 1), date(2024, 1, 5))
            4
        """
        if start > end:
            return -self.business_days_between(end, start, include_end)

        count = 0
        current = start
        while current < end:
            if self.is_business_day(current):
                count += 1
            current += _ONE_DAY

        if include_end and self.is_business_day(end):
            count += 1
        return count

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NoHolidayCalendar(HolidayCalendar):
    """Calendar with no holidays - every day is a business day."""

    name = Calendar.NO_CALENDAR.value

    def is_business_day(self, d: date) -> bool:  # noqa: ARG002
        return True


class MondayToFridayCalendar(HolidayCalendar):
    """Calendar with Monday-Friday as business days and no public holidays."""

    name = Calendar.MONDAY_TO_FRIDAY.value

    def is_business_day(self, d: date) -> bool:
        return not is_weekend(d)


class CustomCalendar(HolidayCalendar):
    """Calendar with custom holiday dates in addition to (optional) weekends."""

    name = "CUSTOM"

    def __init__(self, holidays: Iterable[date] | None = None, include_weekends: bool = True):
        """Initialize custom calendar.

        Args:
            holidays: Holiday dates (defaults to none)
            include_weekends: Whether weekends are also holidays (default True)
        """
        self.holidays: set[date] = set(holidays or ())
        self.include_weekends = include_weekends

    def add_holiday(self, d: date) -> None:
        self.holidays.add(d)

    def remove_holiday(self, d: date) -> None:
        self.holidays.discard(d)

    def is_business_day(self, d: date) -> bool:
        if d in self.holidays:
            return False
        return not (self.include_weekends and is_weekend(d))

    def __repr__(self) -> str:
        return f"CustomCalendar(holidays={len(self.holidays)}, include_weekends={self.include_weekends})"


def get_calendar(calendar: Calendar | str) -> HolidayCalendar:
    """Factory function to get a calendar by name.

    Args:
        calendar: A :class:`Calendar` member or its name ("NO_CALENDAR",
                  "MONDAY_TO_FRIDAY", or the aliases "NONE" and "MTF")

    Raises:
        ConventionError: If the calendar name is unknown

    Example:
        >>> get_calendar("MONDAY_TO_FRIDAY").is_business_day(date(2024, 1, 6))
        False
    """
    name = calendar.value if isinstance(calendar, Calendar) else str(calendar).upper()

    if name in (Calendar.NO_CALENDAR.value, "NONE"):
        return NoHolidayCalendar()
    if name in (Calendar.MONDAY_TO_FRIDAY.value, "MTF"):
        return MondayToFridayCalendar()
    raise ConventionError(
        "Unknown calendar",
        context={"calendar": name, "supported": [c.value for c in Calendar]},
    )


def is_weekend(d: date) -> bool:
    """Check if a date falls on a Saturday or Sunday."""
    return d.weekday() >= 5
