"""Interest rates with their day count and compounding rules.

:class:`InterestRate` is the yield object used by the analytics: it turns a
rate into compound and discount factors over a time or a pair of dates, and
converts rates between compounding rules.
"""

from __future__ import annotations

import math
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator

from jloan.core.types import Compounding, DayCountConvention, Frequency, Rate
from jloan.utilities.conventions import year_fraction

_COMPOUNDED_RULES = (Compounding.COMPOUNDED, Compounding.SIMPLE_THEN_COMPOUNDED)


class InterestRate(BaseModel):
    """A rate with day count, compounding and frequency.

    Example:
        >>> r = InterestRate(rate=0.05, day_count=DayCountConvention.A365,
        ...                  compounding=Compounding.COMPOUNDED, frequency=Frequency.ANNUAL)
        >>> round(r.compound_factor(1.0), 6)
        1.05
    """

    model_config = ConfigDict(frozen=True)

    rate: Rate = Field(..., description="Annual rate as a decimal")
    day_count: DayCountConvention = Field(
        DayCountConvention.A365, description="Day count used to measure time"
    )
    compounding: Compounding = Field(Compounding.COMPOUNDED, description="Compounding rule")
    frequency: Frequency = Field(Frequency.ANNUAL, description="Compounding periods per year")

    @model_validator(mode="after")
    def _check_frequency(self) -> InterestRate:
        if self.compounding in _COMPOUNDED_RULES and self.frequency <= 0:
            raise ValueError(
                f"{self.compounding.value} compounding requires a positive frequency, "
                f"got {self.frequency.name}"
            )
        return self

    @property
    def periods_per_year(self) -> float:
        return float(self.frequency)

    def compound_factor(self, t: float) -> float:
        """Growth of one unit of currency over ``t`` years."""
        r = self.rate
        if self.compounding == Compounding.SIMPLE:
            return 1.0 + r * t
        if self.compounding == Compounding.CONTINUOUS:
            return math.exp(r * t)
        f = self.periods_per_year
        if self.compounding == Compounding.SIMPLE_THEN_COMPOUNDED and t <= 1.0 / f:
            return 1.0 + r * t
        return (1.0 + r / f) ** (f * t)

    def discount_factor(self, t: float) -> float:
        """Present value of one unit paid in ``t`` years."""
        return 1.0 / self.compound_factor(t)

    def compound_factor_between(self, start: date, end: date) -> float:
        """Compound factor over the period between two dates."""
        return self.compound_factor(year_fraction(start, end, self.day_count))

    @classmethod
    def implied_rate(
        cls,
        compound: float,
        day_count: DayCountConvention,
        compounding: Compounding,
        frequency: Frequency,
        t: float,
    ) -> InterestRate:
        """Rate that produces the given compound factor over ``t`` years.

        Raises:
            ValueError: If the compound factor is not positive or ``t`` is not
                        positive while the factor differs from one
        """
        if compound <= 0.0:
            raise ValueError(f"positive compound factor required, got {compound}")

        if compound == 1.0:
            rate = 0.0
        else:
            if t <= 0.0:
                raise ValueError(f"positive time required, got {t}")
            if compounding == Compounding.SIMPLE:
                rate = (compound - 1.0) / t
            elif compounding == Compounding.CONTINUOUS:
                rate = math.log(compound) / t
            else:
                f = float(frequency)
                if compounding == Compounding.SIMPLE_THEN_COMPOUNDED and t <= 1.0 / f:
                    rate = (compound - 1.0) / t
                else:
                    rate = (compound ** (1.0 / (f * t)) - 1.0) * f
        return cls(rate=rate, day_count=day_count, compounding=compounding, frequency=frequency)

    def equivalent_rate(
        self, compounding: Compounding, frequency: Frequency, t: float
    ) -> InterestRate:
        """Same growth over ``t`` years, expressed with another compounding rule."""
        return InterestRate.implied_rate(
            self.compound_factor(t), self.day_count, compounding, frequency, t
        )

    def with_rate(self, rate: Rate) -> InterestRate:
        """Copy of this rate with the same conventions and a new value."""
        return self.model_copy(update={"rate": rate})

    def __str__(self) -> str:
        return (
            f"{self.rate:.6%} {self.day_count.value} {self.compounding.value.lower()}"
            f" {self.frequency.name.lower()}"
        )
