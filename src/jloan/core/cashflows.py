"""Cash flow records held by a loan's ledger.

A :class:`CashflowRecord` is an immutable dated amount tagged with its
:class:`~jloan.core.types.CashflowKind`. Coupon records also carry their
:class:`CouponTerms` (nominal, rate and accrual period); principal records
carry no terms.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from jloan.core.types import Amount, CashflowKind, Compounding, DayCountConvention, Frequency
from jloan.utilities.conventions import day_count, year_fraction
from jloan.utilities.interest_rate import InterestRate


@dataclass(frozen=True)
class CouponTerms:
    """Accrual terms of a fixed-rate coupon.

    Attributes:
        nominal: Notional on which the coupon accrues
        rate: Coupon rate with its day count and compounding
        accrual_start: First day of the accrual period
        accrual_end: Last day of the accrual period
        reference_start: Start of the reference period (defaults to accrual start)
        reference_end: End of the reference period (defaults to accrual end)
    """

    nominal: Amount
    rate: InterestRate
    accrual_start: date
    accrual_end: date
    reference_start: date | None = None
    reference_end: date | None = None

    def __post_init__(self) -> None:
        if self.accrual_end < self.accrual_start:
            raise ValueError(
                f"accrual end ({self.accrual_end}) before accrual start ({self.accrual_start})"
            )

    @property
    def day_count(self) -> DayCountConvention:
        return self.rate.day_count

    @property
    def period_start(self) -> date:
        return self.reference_start or self.accrual_start

    @property
    def period_end(self) -> date:
        return self.reference_end or self.accrual_end

    def accrual_period(self) -> float:
        """Length of the accrual period in years."""
        return year_fraction(self.accrual_start, self.accrual_end, self.day_count)

    def accrual_days(self) -> int:
        return day_count(self.accrual_start, self.accrual_end, self.day_count)

    def interest(self, end: date) -> Amount:
        """Interest accrued from the accrual start up to ``end``."""
        factor = self.rate.compound_factor_between(self.accrual_start, end)
        return self.nominal * (factor - 1.0)


@dataclass(frozen=True)
class CashflowRecord:
    """A single dated payment.

    Attributes:
        date: Payment date
        amount: Payment amount in currency units
        kind: Coupon, amortizing principal or final redemption
        coupon: Accrual terms; present exactly when ``kind`` is COUPON

    Example:
        >>> flow = redemption(1_000_000.0, date(2029, 12, 15))
        >>> flow.kind
        <CashflowKind.REDEMPTION: 'REDEMPTION'>
    """

    date: date
    amount: Amount
    kind: CashflowKind
    coupon: CouponTerms | None = None

    def __post_init__(self) -> None:
        if (self.kind == CashflowKind.COUPON) != (self.coupon is not None):
            raise ValueError(f"{self.kind.value} record with inconsistent coupon terms")

    @property
    def is_coupon(self) -> bool:
        return self.kind == CashflowKind.COUPON

    @property
    def is_principal(self) -> bool:
        return self.kind.is_principal

    @property
    def nominal(self) -> Amount | None:
        """Declared nominal of a coupon, ``None`` for principal records."""
        return self.coupon.nominal if self.coupon is not None else None

    def has_occurred(self, reference_date: date, include_reference_date: bool = False) -> bool:
        """Whether the payment is already made as of ``reference_date``.

        A flow paying on the reference date counts as occurred unless
        ``include_reference_date`` is set.
        """
        if include_reference_date:
            return self.date < reference_date
        return self.date <= reference_date

    def accrued_amount(self, d: date) -> Amount:
        """Interest accrued by this coupon at ``d`` (0 for principal flows).

        Nothing is accrued on or before the accrual start, nor after the
        payment date.
        """
        if self.coupon is None:
            return 0.0
        if d <= self.coupon.accrual_start or d > self.date:
            return 0.0
        return self.coupon.interest(min(d, self.coupon.accrual_end))

    def accrued_period(self, d: date) -> float:
        """Fraction of a year accrued at ``d`` (0 for principal flows)."""
        if self.coupon is None or d <= self.coupon.accrual_start or d > self.date:
            return 0.0
        return year_fraction(
            self.coupon.accrual_start, min(d, self.coupon.accrual_end), self.coupon.day_count
        )

    def accrued_days(self, d: date) -> int:
        """Days accrued at ``d`` (0 for principal flows)."""
        if self.coupon is None or d <= self.coupon.accrual_start or d > self.date:
            return 0
        return day_count(
            self.coupon.accrual_start, min(d, self.coupon.accrual_end), self.coupon.day_count
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data: dict[str, Any] = {
            "date": self.date.isoformat(),
            "amount": self.amount,
            "kind": self.kind.value,
        }
        if self.coupon is not None:
            data["nominal"] = self.coupon.nominal
            data["rate"] = self.coupon.rate.rate
            data["accrual_start"] = self.coupon.accrual_start.isoformat()
            data["accrual_end"] = self.coupon.accrual_end.isoformat()
        return data


def fixed_rate_coupon(
    payment_date: date,
    nominal: Amount,
    rate: InterestRate | float,
    accrual_start: date,
    accrual_end: date,
    day_count_convention: DayCountConvention = DayCountConvention.A360,
    reference_start: date | None = None,
    reference_end: date | None = None,
) -> CashflowRecord:
    """Create a fixed-rate coupon record.

    The amount is ``nominal * (compound factor - 1)`` over the accrual
    period. A bare float rate is taken as simple interest under
    ``day_count_convention``.

    Example:
        >>> cpn = fixed_rate_coupon(date(2024, 4, 1), 1_000_000.0, 0.05,
        ...                         date(2024, 1, 1), date(2024, 4, 1))
        >>> round(cpn.amount, 2)
        12638.89
    """
    if not isinstance(rate, InterestRate):
        rate = InterestRate(
            rate=rate,
            day_count=day_count_convention,
            compounding=Compounding.SIMPLE,
            frequency=Frequency.ANNUAL,
        )
    terms = CouponTerms(
        nominal=nominal,
        rate=rate,
        accrual_start=accrual_start,
        accrual_end=accrual_end,
        reference_start=reference_start,
        reference_end=reference_end,
    )
    return CashflowRecord(
        date=payment_date,
        amount=terms.interest(accrual_end),
        kind=CashflowKind.COUPON,
        coupon=terms,
    )


def amortizing_payment(amount: Amount, payment_date: date) -> CashflowRecord:
    """Create a partial principal repayment record."""
    return CashflowRecord(date=payment_date, amount=amount, kind=CashflowKind.AMORTIZING_PAYMENT)


def redemption(amount: Amount, payment_date: date) -> CashflowRecord:
    """Create a final principal repayment record."""
    return CashflowRecord(date=payment_date, amount=amount, kind=CashflowKind.REDEMPTION)
