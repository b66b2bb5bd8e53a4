"""Price, yield and risk analytics of a loan.

Every function takes the loan first and an optional settlement date last; the
settlement date defaults to ``loan.settlement_date()``. Prices are quoted per
100 of the notional outstanding at settlement; yields and spreads are
decimals.

Two families of functions behave differently on a fully repaid loan:

- Price and yield functions (``clean_price``, ``dirty_price``, the ``*_at_yield``
  and ``*_with_zspread`` prices, ``yield_rate`` and ``z_spread``) return 0.
- Every other query raises :class:`~jloan.exceptions.NotTradableError`.

Example:
    >>> from jloan.analytics import loan_functions
    >>> loan_functions.clean_price_at_yield(
    ...     loan, 0.05, DayCountConvention.A365, Compounding.COMPOUNDED, Frequency.ANNUAL
    ... )
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from jloan.analytics import cashflows
from jloan.core.types import (
    Amount,
    Compounding,
    DayCountConvention,
    DurationType,
    Frequency,
    Rate,
    Spread,
)
from jloan.exceptions import NotTradableError
from jloan.termstructures.curves import YieldCurve
from jloan.utilities.interest_rate import InterestRate
from jloan.utilities.solvers import DEFAULT_ACCURACY, DEFAULT_MAX_EVALUATIONS

if TYPE_CHECKING:
    from jloan.instruments.loan import Loan

# Loan analytics never count a flow paying on the settlement date.
_INCLUDE_SETTLEMENT_DATE_FLOWS = False


def _settlement(loan: Loan, settlement_date: date | None) -> date:
    return settlement_date if settlement_date is not None else loan.settlement_date()


def _require_tradable(loan: Loan, settlement_date: date) -> None:
    if not loan.is_tradable(settlement_date):
        raise NotTradableError(
            f"non tradable at {settlement_date} (maturity being {loan.maturity_date})",
            context={
                "settlement_date": settlement_date.isoformat(),
                "maturity_date": loan.maturity_date.isoformat(),
            },
        )


def _yield(
    rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
) -> InterestRate:
    return InterestRate(rate=rate, day_count=day_count, compounding=compounding, frequency=frequency)


def _per_hundred(loan: Loan, amount: Amount, settlement_date: date) -> float:
    return amount * 100.0 / loan.notional(settlement_date)


def _from_per_hundred(loan: Loan, price: float, settlement_date: date) -> Amount:
    return price / 100.0 * loan.notional(settlement_date)


# ---------------------------------------------------------------------------
# Date inspectors
# ---------------------------------------------------------------------------


def start_date(loan: Loan) -> date | None:
    return cashflows.start_date(loan.ledger)


def maturity_date(loan: Loan) -> date | None:
    return cashflows.maturity_date(loan.ledger)


def is_tradable(loan: Loan, settlement_date: date | None = None) -> bool:
    return loan.is_tradable(_settlement(loan, settlement_date))


def previous_cashflow_date(loan: Loan, reference_date: date | None = None) -> date | None:
    return cashflows.previous_cashflow_date(
        loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, _settlement(loan, reference_date)
    )


def next_cashflow_date(loan: Loan, reference_date: date | None = None) -> date | None:
    return cashflows.next_cashflow_date(
        loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, _settlement(loan, reference_date)
    )


def previous_cashflow_amount(loan: Loan, reference_date: date | None = None) -> Amount:
    return cashflows.previous_cashflow_amount(
        loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, _settlement(loan, reference_date)
    )


def next_cashflow_amount(loan: Loan, reference_date: date | None = None) -> Amount:
    return cashflows.next_cashflow_amount(
        loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, _settlement(loan, reference_date)
    )


# ---------------------------------------------------------------------------
# Coupon inspectors
# ---------------------------------------------------------------------------


def previous_coupon_rate(loan: Loan, settlement_date: date | None = None) -> Rate:
    settlement_date = _settlement(loan, settlement_date)
    return cashflows.previous_coupon_rate(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def next_coupon_rate(loan: Loan, settlement_date: date | None = None) -> Rate:
    settlement_date = _settlement(loan, settlement_date)
    return cashflows.next_coupon_rate(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def accrual_start_date(loan: Loan, settlement_date: date | None = None) -> date | None:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    return cashflows.accrual_start_date(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def accrual_end_date(loan: Loan, settlement_date: date | None = None) -> date | None:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    return cashflows.accrual_end_date(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def reference_period_start(loan: Loan, settlement_date: date | None = None) -> date | None:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    return cashflows.reference_period_start(
        loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date
    )


def reference_period_end(loan: Loan, settlement_date: date | None = None) -> date | None:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    return cashflows.reference_period_end(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def accrual_period(loan: Loan, settlement_date: date | None = None) -> float:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    return cashflows.accrual_period(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def accrual_days(loan: Loan, settlement_date: date | None = None) -> int:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    return cashflows.accrual_days(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def accrued_period(loan: Loan, settlement_date: date | None = None) -> float:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    return cashflows.accrued_period(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def accrued_days(loan: Loan, settlement_date: date | None = None) -> int:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    return cashflows.accrued_days(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def accrued_amount(loan: Loan, settlement_date: date | None = None) -> float:
    """Interest accrued at settlement, per 100 of outstanding notional.

    Raises:
        NotTradableError: If the loan is fully repaid at settlement
    """
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    accrued = cashflows.accrued_amount(loan.ledger, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)
    return _per_hundred(loan, accrued, settlement_date)


# ---------------------------------------------------------------------------
# Curve-based analytics
# ---------------------------------------------------------------------------


def dirty_price(loan: Loan, curve: YieldCurve, settlement_date: date | None = None) -> float:
    """Value of the outstanding flows on ``curve``, per 100 of notional."""
    settlement_date = _settlement(loan, settlement_date)
    if not loan.is_tradable(settlement_date):
        return 0.0
    value = cashflows.npv(loan.ledger, curve, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)
    return _per_hundred(loan, value, settlement_date)


def clean_price(loan: Loan, curve: YieldCurve, settlement_date: date | None = None) -> float:
    """Dirty price on ``curve`` less accrued interest."""
    settlement_date = _settlement(loan, settlement_date)
    if not loan.is_tradable(settlement_date):
        return 0.0
    return dirty_price(loan, curve, settlement_date) - accrued_amount(loan, settlement_date)


def bps(loan: Loan, curve: YieldCurve, settlement_date: date | None = None) -> float:
    """Price change for a one basis point move of the coupon rates."""
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    sensitivity = cashflows.bps(loan.ledger, curve, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)
    return _per_hundred(loan, sensitivity, settlement_date)


def atm_rate(
    loan: Loan,
    curve: YieldCurve,
    settlement_date: date | None = None,
    clean_price: float | None = None,
) -> Rate:
    """Coupon rate at which the loan trades at ``clean_price`` on ``curve``.

    Without a clean price, the rate reprices the coupons to their own value
    on the curve (the par coupon rate).
    """
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    target = None
    if clean_price is not None:
        dirty = clean_price + accrued_amount(loan, settlement_date)
        target = _from_per_hundred(loan, dirty, settlement_date)
    return cashflows.atm_rate(
        loan.ledger,
        curve,
        _INCLUDE_SETTLEMENT_DATE_FLOWS,
        settlement_date,
        settlement_date,
        target,
    )


# ---------------------------------------------------------------------------
# Yield-based analytics
# ---------------------------------------------------------------------------


def dirty_price_at_yield(
    loan: Loan,
    yield_rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    """Value of the outstanding flows at a flat yield, per 100 of notional."""
    settlement_date = _settlement(loan, settlement_date)
    if not loan.is_tradable(settlement_date):
        return 0.0
    rate = _yield(yield_rate, day_count, compounding, frequency)
    value = cashflows.npv_at_yield(loan.ledger, rate, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)
    return _per_hundred(loan, value, settlement_date)


def clean_price_at_yield(
    loan: Loan,
    yield_rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    """Dirty price at a flat yield less accrued interest."""
    settlement_date = _settlement(loan, settlement_date)
    if not loan.is_tradable(settlement_date):
        return 0.0
    dirty = dirty_price_at_yield(loan, yield_rate, day_count, compounding, frequency, settlement_date)
    return dirty - accrued_amount(loan, settlement_date)


def bps_at_yield(
    loan: Loan,
    yield_rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    rate = _yield(yield_rate, day_count, compounding, frequency)
    sensitivity = cashflows.bps_at_yield(
        loan.ledger, rate, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date
    )
    return _per_hundred(loan, sensitivity, settlement_date)


def yield_rate(
    loan: Loan,
    clean_price: float,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
    accuracy: float = DEFAULT_ACCURACY,
    max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
    guess: Rate = cashflows.DEFAULT_YIELD_GUESS,
) -> Rate:
    """Flat yield at which the loan trades at ``clean_price``.

    Args:
        loan: Loan to price
        clean_price: Quoted price per 100 of notional
        day_count: Day count of the yield
        compounding: Compounding of the yield
        frequency: Compounding frequency of the yield
        settlement_date: Settlement date (defaults to the loan's)
        accuracy: Solver accuracy on the yield
        max_evaluations: Solver evaluation cap
        guess: Starting yield

    Returns:
        The yield, or 0 if the loan is fully repaid at settlement

    Raises:
        RootNotBracketedError: If no yield reproduces the price
        MaxIterationsExceededError: If the solver does not converge
    """
    settlement_date = _settlement(loan, settlement_date)
    if not loan.is_tradable(settlement_date):
        return 0.0
    dirty = clean_price + accrued_amount(loan, settlement_date)
    return cashflows.yield_rate(
        loan.ledger,
        _from_per_hundred(loan, dirty, settlement_date),
        day_count,
        compounding,
        frequency,
        _INCLUDE_SETTLEMENT_DATE_FLOWS,
        settlement_date,
        settlement_date,
        accuracy,
        max_evaluations,
        guess,
    )


def duration(
    loan: Loan,
    yield_rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    duration_type: DurationType = DurationType.MODIFIED,
    settlement_date: date | None = None,
) -> float:
    """Duration of the loan at a flat yield.

    Raises:
        NotTradableError: If the loan is fully repaid at settlement
        ValueError: For Macaulay duration of a yield that is not compounded
    """
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    rate = _yield(yield_rate, day_count, compounding, frequency)
    return cashflows.duration(
        loan.ledger, rate, duration_type, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date
    )


def convexity(
    loan: Loan,
    yield_rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    rate = _yield(yield_rate, day_count, compounding, frequency)
    return cashflows.convexity(loan.ledger, rate, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date)


def basis_point_value(
    loan: Loan,
    yield_rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    """Dirty price change (per 100 of notional) for a one basis point rise of the yield."""
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    rate = _yield(yield_rate, day_count, compounding, frequency)
    value = cashflows.basis_point_value(
        loan.ledger, rate, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date
    )
    return _per_hundred(loan, value, settlement_date)


def yield_value_basis_point(
    loan: Loan,
    yield_rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    """Yield change for a 0.01 change of the dirty price per 100 of notional."""
    settlement_date = _settlement(loan, settlement_date)
    _require_tradable(loan, settlement_date)
    rate = _yield(yield_rate, day_count, compounding, frequency)
    value = cashflows.yield_value_basis_point(
        loan.ledger, rate, _INCLUDE_SETTLEMENT_DATE_FLOWS, settlement_date
    )
    # inverse of a value, so the rescaling is inverted too
    return _from_per_hundred(loan, value, settlement_date)


# ---------------------------------------------------------------------------
# Z-spread analytics
# ---------------------------------------------------------------------------


def dirty_price_with_zspread(
    loan: Loan,
    curve: YieldCurve,
    z_spread: Spread,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    """Dirty price on ``curve`` with its zero rates shifted by ``z_spread``."""
    settlement_date = _settlement(loan, settlement_date)
    if not loan.is_tradable(settlement_date):
        return 0.0
    value = cashflows.npv_with_zspread(
        loan.ledger,
        curve,
        z_spread,
        day_count,
        compounding,
        frequency,
        _INCLUDE_SETTLEMENT_DATE_FLOWS,
        settlement_date,
    )
    return _per_hundred(loan, value, settlement_date)


def clean_price_with_zspread(
    loan: Loan,
    curve: YieldCurve,
    z_spread: Spread,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    settlement_date = _settlement(loan, settlement_date)
    if not loan.is_tradable(settlement_date):
        return 0.0
    dirty = dirty_price_with_zspread(
        loan, curve, z_spread, day_count, compounding, frequency, settlement_date
    )
    return dirty - accrued_amount(loan, settlement_date)


def z_spread(
    loan: Loan,
    clean_price: float,
    curve: YieldCurve,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
    accuracy: float = DEFAULT_ACCURACY,
    max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
    guess: Spread = cashflows.DEFAULT_SPREAD_GUESS,
) -> Spread:
    """Zero spread over ``curve`` at which the loan trades at ``clean_price``.

    Returns:
        The spread, or 0 if the loan is fully repaid at settlement

    Raises:
        RootNotBracketedError: If no spread reproduces the price
        MaxIterationsExceededError: If the solver does not converge
    """
    settlement_date = _settlement(loan, settlement_date)
    if not loan.is_tradable(settlement_date):
        return 0.0
    dirty = clean_price + accrued_amount(loan, settlement_date)
    return cashflows.z_spread(
        loan.ledger,
        curve,
        _from_per_hundred(loan, dirty, settlement_date),
        day_count,
        compounding,
        frequency,
        _INCLUDE_SETTLEMENT_DATE_FLOWS,
        settlement_date,
        settlement_date,
        accuracy,
        max_evaluations,
        guess,
    )
