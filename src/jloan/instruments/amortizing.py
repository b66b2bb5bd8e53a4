"""Fixed-rate amortizing loans.

Helpers building the coupon list of a fixed-rate loan from its terms and
handing it to :class:`~jloan.instruments.loan.Loan`, which derives the
notional schedule and the principal payments.

Example:
    >>> dates = regular_payment_dates(date(2024, 1, 15), "3M", 8)
    >>> terms = AmortizingLoanTerms(
    ...     settlement_days=2,
    ...     accrual_start=date(2024, 1, 15),
    ...     payment_dates=dates,
    ...     notionals=sinking_notionals(1_000_000.0, 8),
    ...     rates=[0.05],
    ... )
    >>> loan = amortizing_fixed_rate_loan(terms)
    >>> len(loan.redemptions)
    8
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from jloan.core.cashflows import CashflowRecord, fixed_rate_coupon
from jloan.core.time import add_period
from jloan.core.types import Amount, Calendar, Cycle, DayCountConvention, Frequency, Rate
from jloan.engine.discounting import PricingEngine
from jloan.instruments.loan import Loan
from jloan.settings import EvaluationSettings


class AmortizingLoanTerms(BaseModel):
    """Terms of a fixed-rate amortizing loan.

    Period ``i`` accrues from the previous payment date (``accrual_start``
    for the first period) to ``payment_dates[i]`` on ``notionals[i]``.
    ``rates[i]`` applies to period ``i``; periods past the end of ``rates``
    reuse its last entry.
    """

    settlement_days: int = Field(0, ge=0, description="Business days to settlement")
    calendar: Calendar = Field(Calendar.NO_CALENDAR, description="Settlement calendar")
    accrual_start: date = Field(..., description="Start of the first accrual period")
    payment_dates: list[date] = Field(..., min_length=1, description="Coupon payment dates")
    notionals: list[Amount] = Field(..., min_length=1, description="Notional of each period")
    rates: list[Rate] = Field(..., min_length=1, description="Simple coupon rates")
    day_count: DayCountConvention = Field(
        DayCountConvention.A360, description="Coupon accrual day count"
    )
    redemption_factors: list[float] = Field(
        default_factory=list, description="Redemption factors in base 100, by breakpoint"
    )
    issue_date: date | None = Field(None, description="Date before which the loan cannot settle")

    @field_validator("notionals")
    @classmethod
    def validate_notionals(cls, v: list[Amount]) -> list[Amount]:
        """Validate that every period notional is positive."""
        if any(n <= 0.0 for n in v):
            raise ValueError(f"Period notionals must be positive, got {v}")
        return v

    @field_validator("rates")
    @classmethod
    def validate_rates(cls, v: list[Rate]) -> list[Rate]:
        """Validate that coupon rates are greater than -1."""
        if any(r <= -1.0 for r in v):
            raise ValueError(f"Coupon rates must be > -1, got {v}")
        return v

    @model_validator(mode="after")
    def validate_schedule(self) -> AmortizingLoanTerms:
        """Validate that payment dates increase and match the notionals."""
        if len(self.notionals) != len(self.payment_dates):
            raise ValueError(
                f"{len(self.notionals)} notionals given for {len(self.payment_dates)} payment dates"
            )
        previous = self.accrual_start
        for d in self.payment_dates:
            if d <= previous:
                raise ValueError(f"Payment dates must increase from {self.accrual_start}, got {d}")
            previous = d
        return self

    def rate_for(self, period: int) -> Rate:
        return self.rates[period] if period < len(self.rates) else self.rates[-1]

    def coupons(self) -> list[CashflowRecord]:
        """Fixed-rate coupon records, one per period."""
        records = []
        start = self.accrual_start
        for i, (payment_date, nominal) in enumerate(zip(self.payment_dates, self.notionals)):
            records.append(
                fixed_rate_coupon(
                    payment_date,
                    nominal,
                    self.rate_for(i),
                    start,
                    payment_date,
                    self.day_count,
                )
            )
            start = payment_date
        return records


def amortizing_fixed_rate_loan(
    terms: AmortizingLoanTerms,
    pricing_engine: PricingEngine | None = None,
    settings: EvaluationSettings | None = None,
) -> Loan:
    """Build the loan described by ``terms``."""
    return Loan(
        settlement_days=terms.settlement_days,
        calendar=terms.calendar,
        coupons=terms.coupons(),
        redemption_factors=terms.redemption_factors,
        issue_date=terms.issue_date,
        pricing_engine=pricing_engine,
        settings=settings,
    )


def sinking_fixed_rate_loan(
    settlement_days: int,
    face_amount: Amount,
    start_date: date,
    periods: int,
    frequency: Frequency,
    coupon: Rate,
    day_count: DayCountConvention = DayCountConvention.A360,
    calendar: Calendar = Calendar.NO_CALENDAR,
    issue_date: date | None = None,
    pricing_engine: PricingEngine | None = None,
    settings: EvaluationSettings | None = None,
) -> Loan:
    """Loan repaid by level payments of interest plus principal.

    The notional follows :func:`annuity_notionals` at the periodic rate
    ``coupon / frequency``; the day count only drives the coupon accruals.

    Raises:
        ValueError: If the frequency does not divide the year in whole months
    """
    if frequency <= 0 or 12 % int(frequency) != 0:
        raise ValueError(f"Frequency must divide the year in whole months, got {frequency.name}")
    cycle = f"{12 // int(frequency)}M"
    terms = AmortizingLoanTerms(
        settlement_days=settlement_days,
        calendar=calendar,
        accrual_start=start_date,
        payment_dates=regular_payment_dates(start_date, cycle, periods),
        notionals=annuity_notionals(face_amount, periods, coupon / int(frequency)),
        rates=[coupon],
        day_count=day_count,
        issue_date=issue_date,
    )
    return amortizing_fixed_rate_loan(terms, pricing_engine, settings)


def sinking_notionals(face_amount: Amount, periods: int) -> list[Amount]:
    """Notionals paying ``face_amount`` down in equal steps over ``periods`` periods.

    Example:
        >>> sinking_notionals(1000.0, 4)
        [1000.0, 750.0, 500.0, 250.0]
    """
    if periods <= 0:
        raise ValueError(f"Number of periods must be positive, got {periods}")
    step = face_amount / periods
    return [face_amount - i * step for i in range(periods)]


def annuity_notionals(face_amount: Amount, periods: int, period_rate: Rate) -> list[Amount]:
    """Notionals of a loan repaid by ``periods`` equal payments.

    Each payment covers the period's interest at ``period_rate`` and repays
    the rest of the principal.
    """
    if periods <= 0:
        raise ValueError(f"Number of periods must be positive, got {periods}")
    if abs(period_rate) < 1e-10:
        return sinking_notionals(face_amount, periods)

    payment = face_amount * period_rate / (1.0 - (1.0 + period_rate) ** -periods)
    notionals = [face_amount]
    for _ in range(periods - 1):
        outstanding = notionals[-1]
        notionals.append(outstanding - (payment - outstanding * period_rate))
    return notionals


def regular_payment_dates(start: date, cycle: Cycle, count: int) -> list[date]:
    """``count`` unadjusted dates, one cycle apart, after ``start``.

    Example:
        >>> regular_payment_dates(date(2024, 1, 31), "1M", 3)
        [datetime.date(2024, 2, 29), datetime.date(2024, 3, 31), datetime.date(2024, 4, 30)]
    """
    return [add_period(start, cycle, i) for i in range(1, count + 1)]
