"""Day count conventions.

Year fractions between two dates under the conventions used for coupon
accrual and discounting.

References:
    ISDA 2006 Definitions, Section 4.16
"""

from __future__ import annotations

import calendar as _calendar
from datetime import date

from jloan.core.types import DayCountConvention
from jloan.exceptions import ConventionError
from jloan.utilities.calendars import HolidayCalendar, MondayToFridayCalendar


def year_fraction(
    start: date,
    end: date,
    convention: DayCountConvention,
    calendar: HolidayCalendar | None = None,
) -> float:
    """Calculate the year fraction between two dates.

    The result is antisymmetric: swapping the dates flips the sign.

    Args:
        start: Start date
        end: End date
        convention: Day count convention to use
        calendar: Holiday calendar for BUS/252. Defaults to Monday-Friday.

    Returns:
        Year fraction as a float

    Raises:
        ConventionError: If the convention is not supported

    Example:
        >>> year_fraction(date(2024, 1, 1), date(2024, 7, 1), DayCountConvention.A360)
        0.5055555555555555
    """
    if start > end:
        return -year_fraction(end, start, convention, calendar)

    if convention == DayCountConvention.AA:
        return _year_fraction_aa(start, end)
    if convention == DayCountConvention.A360:
        return (end - start).days / 360.0
    if convention == DayCountConvention.A365:
        return (end - start).days / 365.0
    if convention == DayCountConvention.E30360:
        return _days_30e360(start, end) / 360.0
    if convention == DayCountConvention.B30360:
        return _days_30360(start, end) / 360.0
    if convention == DayCountConvention.BUS252:
        cal = calendar if calendar is not None else MondayToFridayCalendar()
        return cal.business_days_between(start, end) / 252.0
    raise ConventionError("Unsupported day count convention", context={"convention": convention})


def day_count(start: date, end: date, convention: DayCountConvention) -> int:
    """Number of days between two dates as counted by the convention."""
    if convention == DayCountConvention.E30360:
        return _days_30e360(start, end)
    if convention == DayCountConvention.B30360:
        return _days_30360(start, end)
    return (end - start).days


def _year_fraction_aa(start: date, end: date) -> float:
    """Actual/Actual ISDA: days in each calendar year over that year's length."""
    total = 0.0
    current = start
    while current.year < end.year:
        next_year = date(current.year + 1, 1, 1)
        total += (next_year - current).days / (366.0 if _calendar.isleap(current.year) else 365.0)
        current = next_year
    total += (end - current).days / (366.0 if _calendar.isleap(end.year) else 365.0)
    return total


def _days_30e360(start: date, end: date) -> int:
    """30E/360 (Eurobond basis): both day-31s become 30."""
    d1 = min(start.day, 30)
    d2 = min(end.day, 30)
    return (end.year - start.year) * 360 + (end.month - start.month) * 30 + (d2 - d1)


def _days_30360(start: date, end: date) -> int:
    """30/360 (Bond basis, US): end day 31 only rolls when start day is 30 or 31."""
    d1 = min(start.day, 30)
    d2 = end.day
    if d1 >= 30 and d2 == 31:
        d2 = 30
    return (end.year - start.year) * 360 + (end.month - start.month) * 30 + (d2 - d1)
