"""Discount curves.

Curves are supplied by the caller; this module only provides the interface
the analytics discount against and a few concrete curves (flat, discount
factors on dates, and a curve shifted by a constant zero spread).
"""

from __future__ import annotations

import bisect
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date

from jloan.core.types import Compounding, DayCountConvention, Frequency, Spread
from jloan.utilities.conventions import year_fraction
from jloan.utilities.interest_rate import InterestRate

# Time used to read a zero rate at the reference date itself.
_SHORT_TIME = 1.0e-4


class YieldCurve(ABC):
    """Interface of a discount curve.

    Attributes:
        reference_date: Date at which discount factors equal one
        day_count: Convention measuring time from the reference date
    """

    def __init__(self, reference_date: date, day_count: DayCountConvention) -> None:
        self.reference_date = reference_date
        self.day_count = day_count

    def time_from_reference(self, d: date) -> float:
        return year_fraction(self.reference_date, d, self.day_count)

    def discount(self, d: date) -> float:
        """Discount factor from ``d`` back to the reference date."""
        return self.discount_at(self.time_from_reference(d))

    @abstractmethod
    def discount_at(self, t: float) -> float:
        """Discount factor for time ``t`` (in years from the reference date)."""

    def zero_rate(
        self,
        d: date,
        compounding: Compounding = Compounding.CONTINUOUS,
        frequency: Frequency = Frequency.ANNUAL,
    ) -> InterestRate:
        """Zero rate to ``d`` expressed with the given compounding."""
        t = max(self.time_from_reference(d), _SHORT_TIME)
        return InterestRate.implied_rate(
            1.0 / self.discount_at(t), self.day_count, compounding, frequency, t
        )


class FlatForward(YieldCurve):
    """Curve discounting every date at a single rate.

    Example:
        >>> curve = FlatForward(date(2023, 1, 1), 0.05)
        >>> round(curve.discount(date(2024, 1, 1)), 6)
        0.951229
    """

    def __init__(
        self,
        reference_date: date,
        rate: InterestRate | float,
        day_count: DayCountConvention = DayCountConvention.A365,
        compounding: Compounding = Compounding.CONTINUOUS,
        frequency: Frequency = Frequency.ANNUAL,
    ) -> None:
        if not isinstance(rate, InterestRate):
            rate = InterestRate(
                rate=rate, day_count=day_count, compounding=compounding, frequency=frequency
            )
        super().__init__(reference_date, rate.day_count)
        self.rate = rate

    def discount_at(self, t: float) -> float:
        return self.rate.discount_factor(t)

    def __repr__(self) -> str:
        return f"FlatForward({self.reference_date.isoformat()}, {self.rate})"


class DiscountCurve(YieldCurve):
    """Curve through given discount factors, log-linear between the nodes.

    The first node is the reference date and must carry a discount factor of
    one. Beyond the last node the last forward rate is extended.
    """

    def __init__(
        self,
        dates: Sequence[date],
        discount_factors: Sequence[float],
        day_count: DayCountConvention = DayCountConvention.A365,
    ) -> None:
        if len(dates) != len(discount_factors):
            raise ValueError(f"{len(dates)} dates for {len(discount_factors)} discount factors")
        if len(dates) < 2:
            raise ValueError("at least two nodes are required")
        if any(later <= earlier for earlier, later in zip(dates, dates[1:])):
            raise ValueError("node dates must be strictly increasing")
        if not math.isclose(discount_factors[0], 1.0):
            raise ValueError(f"discount factor at the reference date must be 1, got {discount_factors[0]}")
        if any(df <= 0.0 for df in discount_factors):
            raise ValueError("discount factors must be positive")

        super().__init__(dates[0], day_count)
        self.dates = tuple(dates)
        self.times = [self.time_from_reference(d) for d in dates]
        self.log_discounts = [math.log(df) for df in discount_factors]

    def discount_at(self, t: float) -> float:
        times, logs = self.times, self.log_discounts
        if t <= times[0]:
            return 1.0
        i = min(bisect.bisect_left(times, t), len(times) - 1)
        slope = (logs[i] - logs[i - 1]) / (times[i] - times[i - 1])
        return math.exp(logs[i - 1] + slope * (t - times[i - 1]))


class ZeroSpreadedCurve(YieldCurve):
    """Base curve with a constant spread added to its zero rates.

    Zero rates are read from the base curve with the given compounding,
    shifted by ``spread`` and turned back into discount factors.
    """

    def __init__(
        self,
        base: YieldCurve,
        spread: Spread,
        compounding: Compounding = Compounding.CONTINUOUS,
        frequency: Frequency = Frequency.ANNUAL,
        day_count: DayCountConvention | None = None,
    ) -> None:
        super().__init__(base.reference_date, day_count or base.day_count)
        self.base = base
        self.spread = spread
        self.compounding = compounding
        self.frequency = frequency

    def discount(self, d: date) -> float:
        t = self.time_from_reference(d)
        if t <= 0.0:
            return self.base.discount(d)
        zero = InterestRate.implied_rate(
            1.0 / self.base.discount(d), self.day_count, self.compounding, self.frequency, t
        )
        return zero.with_rate(zero.rate + self.spread).discount_factor(t)

    def discount_at(self, t: float) -> float:
        if t <= 0.0:
            return 1.0
        zero = InterestRate.implied_rate(
            1.0 / self.base.discount_at(t), self.day_count, self.compounding, self.frequency, t
        )
        return zero.with_rate(zero.rate + self.spread).discount_factor(t)
