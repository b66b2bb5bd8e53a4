"""Date handling for loan cash flows.

Dates are plain :class:`datetime.date` objects. This module adds ISO parsing,
coercion of user input and period arithmetic in cycle notation
(e.g. adding ``'3M'`` to a date).
"""

from __future__ import annotations

import re
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from jloan.core.types import Cycle
from jloan.exceptions import ConventionError, DateTimeError

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T\s](\d{2}):(\d{2}):(\d{2}))?$")
_CYCLE = re.compile(r"^(\d+)([DWMQHY])$")


def parse_iso_date(iso_string: str) -> date:
    """Parse an ISO 8601 date string.

    Supports formats:
    - YYYY-MM-DD
    - YYYY-MM-DDTHH:MM:SS (time part is dropped)
    - YYYY-MM-DD HH:MM:SS

    Args:
        iso_string: ISO 8601 formatted string

    Returns:
        The calendar date

    Raises:
        DateTimeError: If the format is invalid or the date does not exist

    Example:
        >>> parse_iso_date("2024-01-15")
        datetime.date(2024, 1, 15)
    """
    match = _ISO_DATE.match(iso_string.strip())
    if not match:
        raise DateTimeError(
            "Invalid ISO 8601 date format, expected YYYY-MM-DD",
            context={"date_string": iso_string},
        )
    year, month, day = (int(part) for part in match.groups()[:3])
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise DateTimeError(str(exc), context={"date_string": iso_string}) from exc


def to_date(value: date | datetime | str) -> date:
    """Coerce a date, datetime or ISO string to a :class:`datetime.date`."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_iso_date(value)
    raise DateTimeError("Cannot interpret value as a date", context={"value": repr(value)})


def parse_cycle(cycle: Cycle) -> tuple[int, str]:
    """Parse period notation.

    Args:
        cycle: Period string NP, where N is a count and P one of D/W/M/Q/H/Y

    Returns:
        Tuple of (number, period_type)

    Raises:
        ConventionError: If the cycle format is invalid

    Example:
        >>> parse_cycle("3M")
        (3, 'M')
    """
    match = _CYCLE.match(cycle.strip().upper())
    if not match:
        raise ConventionError(
            "Invalid cycle format, expected e.g. '3M' or '1Y'",
            context={"cycle": cycle},
        )
    return int(match.group(1)), match.group(2)


def period_delta(cycle: Cycle, times: int = 1) -> relativedelta:
    """Return the calendar offset of ``times`` repetitions of ``cycle``."""
    number, unit = parse_cycle(cycle)
    number *= times
    if unit == "D":
        return relativedelta(days=number)
    if unit == "W":
        return relativedelta(weeks=number)
    if unit == "M":
        return relativedelta(months=number)
    if unit == "Q":
        return relativedelta(months=3 * number)
    if unit == "H":
        return relativedelta(months=6 * number)
    return relativedelta(years=number)


def add_period(start: date, cycle: Cycle, times: int = 1) -> date:
    """Add ``times`` periods to a date.

    Month arithmetic clips to the end of the month, so 31 January plus one
    month is the last day of February.

    Example:
        >>> add_period(date(2024, 1, 31), "1M")
        datetime.date(2024, 2, 29)
    """
    return start + period_delta(cycle, times)


def days_between(start: date, end: date) -> int:
    """Actual number of days from ``start`` to ``end`` (negative if end is earlier)."""
    return (end - start).days
