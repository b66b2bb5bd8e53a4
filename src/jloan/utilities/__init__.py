"""Calendars, day counts, interest rates and root finding."""

from jloan.utilities.calendars import (
    CustomCalendar,
    HolidayCalendar,
    MondayToFridayCalendar,
    NoHolidayCalendar,
    get_calendar,
    is_weekend,
)
from jloan.utilities.conventions import day_count, year_fraction
from jloan.utilities.interest_rate import InterestRate
from jloan.utilities.solvers import Bisection, Brent, Solver1D

__all__ = [
    # Calendars
    "HolidayCalendar",
    "NoHolidayCalendar",
    "MondayToFridayCalendar",
    "CustomCalendar",
    "get_calendar",
    "is_weekend",
    # Day count conventions
    "year_fraction",
    "day_count",
    # Rates
    "InterestRate",
    # Solvers
    "Solver1D",
    "Brent",
    "Bisection",
]
