"""Analytics over a ledger of cash flows.

Functions here know nothing about notionals or quotes: they work in currency
units on any date-ordered ledger. The loan-level analytics in
:mod:`jloan.analytics.loan_functions` rescale their results to prices per 100
of outstanding notional.

Throughout, ``include_settlement_date_flows`` decides whether a flow paying
exactly on the settlement date is still to be received (True) or already
gone (False).
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date

from jloan.core.cashflows import CashflowRecord
from jloan.core.ledger import Ledger
from jloan.core.types import (
    BASIS_POINT,
    Amount,
    Compounding,
    DayCountConvention,
    DurationType,
    Frequency,
    Rate,
    Spread,
)
from jloan.logging_config import get_logger
from jloan.termstructures.curves import YieldCurve, ZeroSpreadedCurve
from jloan.utilities.conventions import year_fraction
from jloan.utilities.interest_rate import InterestRate
from jloan.utilities.solvers import DEFAULT_ACCURACY, DEFAULT_MAX_EVALUATIONS, Brent

logger = get_logger(__name__)

DEFAULT_YIELD_GUESS = 0.05
DEFAULT_SPREAD_GUESS = 0.0
SOLVER_STEP = 0.01
# Yields at or below -100% make compounded discount factors meaningless.
MIN_YIELD = -0.99


# ---------------------------------------------------------------------------
# Dates and navigation
# ---------------------------------------------------------------------------


def start_date(ledger: Ledger) -> date | None:
    """Earliest accrual start (or payment date, for principal flows)."""
    if not ledger:
        return None
    return min(r.coupon.accrual_start if r.coupon else r.date for r in ledger)


def maturity_date(ledger: Ledger) -> date | None:
    """Latest accrual end (or payment date, for principal flows)."""
    if not ledger:
        return None
    return max(r.coupon.accrual_end if r.coupon else r.date for r in ledger)


def is_expired(ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date) -> bool:
    """True when every flow has occurred as of the settlement date."""
    return all(r.has_occurred(settlement_date, include_settlement_date_flows) for r in ledger)


def previous_cashflow_index(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> int | None:
    """Index of the last flow already paid, ``None`` if there is none."""
    for i in range(len(ledger) - 1, -1, -1):
        if ledger[i].has_occurred(settlement_date, include_settlement_date_flows):
            return i
    return None


def next_cashflow_index(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> int | None:
    """Index of the first flow still to be paid, ``None`` if there is none."""
    for i, record in enumerate(ledger):
        if not record.has_occurred(settlement_date, include_settlement_date_flows):
            return i
    return None


def _same_date_flows(ledger: Ledger, index: int | None, backwards: bool = False) -> list[CashflowRecord]:
    """Flows paying on the date of ``ledger[index]``, walking from ``index``."""
    if index is None:
        return []
    payment_date = ledger[index].date
    step = -1 if backwards else 1
    flows = []
    while 0 <= index < len(ledger) and ledger[index].date == payment_date:
        flows.append(ledger[index])
        index += step
    return flows


def previous_cashflow_date(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> date | None:
    index = previous_cashflow_index(ledger, include_settlement_date_flows, settlement_date)
    return ledger[index].date if index is not None else None


def next_cashflow_date(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> date | None:
    index = next_cashflow_index(ledger, include_settlement_date_flows, settlement_date)
    return ledger[index].date if index is not None else None


def previous_cashflow_amount(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> Amount:
    """Total paid on the last payment date before settlement."""
    index = previous_cashflow_index(ledger, include_settlement_date_flows, settlement_date)
    return sum(r.amount for r in _same_date_flows(ledger, index, backwards=True))


def next_cashflow_amount(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> Amount:
    """Total due on the first payment date after settlement."""
    index = next_cashflow_index(ledger, include_settlement_date_flows, settlement_date)
    return sum(r.amount for r in _same_date_flows(ledger, index))


def _aggregate_rate(flows: list[CashflowRecord]) -> Rate:
    return sum(r.coupon.rate.rate for r in flows if r.coupon is not None)


def previous_coupon_rate(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> Rate:
    """Sum of the rates of the coupons paid on the last payment date (0 if none)."""
    index = previous_cashflow_index(ledger, include_settlement_date_flows, settlement_date)
    return _aggregate_rate(_same_date_flows(ledger, index, backwards=True))


def next_coupon_rate(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> Rate:
    """Sum of the rates of the coupons due on the next payment date (0 if none)."""
    index = next_cashflow_index(ledger, include_settlement_date_flows, settlement_date)
    return _aggregate_rate(_same_date_flows(ledger, index))


# ---------------------------------------------------------------------------
# Accrual queries on the coupons paying next
# ---------------------------------------------------------------------------


def _next_coupons(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> list[CashflowRecord]:
    index = next_cashflow_index(ledger, include_settlement_date_flows, settlement_date)
    return [r for r in _same_date_flows(ledger, index) if r.is_coupon]


def _first_next_coupon(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> CashflowRecord | None:
    coupons = _next_coupons(ledger, include_settlement_date_flows, settlement_date)
    return coupons[0] if coupons else None


def accrual_start_date(ledger: Ledger, include: bool, settlement_date: date) -> date | None:
    cpn = _first_next_coupon(ledger, include, settlement_date)
    return cpn.coupon.accrual_start if cpn else None


def accrual_end_date(ledger: Ledger, include: bool, settlement_date: date) -> date | None:
    cpn = _first_next_coupon(ledger, include, settlement_date)
    return cpn.coupon.accrual_end if cpn else None


def reference_period_start(ledger: Ledger, include: bool, settlement_date: date) -> date | None:
    cpn = _first_next_coupon(ledger, include, settlement_date)
    return cpn.coupon.period_start if cpn else None


def reference_period_end(ledger: Ledger, include: bool, settlement_date: date) -> date | None:
    cpn = _first_next_coupon(ledger, include, settlement_date)
    return cpn.coupon.period_end if cpn else None


def accrual_period(ledger: Ledger, include: bool, settlement_date: date) -> float:
    cpn = _first_next_coupon(ledger, include, settlement_date)
    return cpn.coupon.accrual_period() if cpn else 0.0


def accrual_days(ledger: Ledger, include: bool, settlement_date: date) -> int:
    cpn = _first_next_coupon(ledger, include, settlement_date)
    return cpn.coupon.accrual_days() if cpn else 0


def accrued_period(ledger: Ledger, include: bool, settlement_date: date) -> float:
    cpn = _first_next_coupon(ledger, include, settlement_date)
    return cpn.accrued_period(settlement_date) if cpn else 0.0


def accrued_days(ledger: Ledger, include: bool, settlement_date: date) -> int:
    cpn = _first_next_coupon(ledger, include, settlement_date)
    return cpn.accrued_days(settlement_date) if cpn else 0


def accrued_amount(ledger: Ledger, include: bool, settlement_date: date) -> Amount:
    """Interest accrued at settlement by all coupons paying on the next payment date."""
    return sum(
        r.accrued_amount(settlement_date)
        for r in _next_coupons(ledger, include, settlement_date)
    )


# ---------------------------------------------------------------------------
# Discounting on a curve
# ---------------------------------------------------------------------------


def _future_flows(
    ledger: Ledger, include_settlement_date_flows: bool, settlement_date: date
) -> Iterator[CashflowRecord]:
    return (r for r in ledger if not r.has_occurred(settlement_date, include_settlement_date_flows))


def npv(
    ledger: Ledger,
    curve: YieldCurve,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> Amount:
    """Value at ``npv_date`` (default: settlement) of the flows after settlement."""
    npv_date = npv_date or settlement_date
    total = sum(
        r.amount * curve.discount(r.date)
        for r in _future_flows(ledger, include_settlement_date_flows, settlement_date)
    )
    return total / curve.discount(npv_date)


def bps(
    ledger: Ledger,
    curve: YieldCurve,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> Amount:
    """Value change for a one basis point parallel move of the coupon rates."""
    npv_date = npv_date or settlement_date
    total = sum(
        r.coupon.nominal * r.coupon.accrual_period() * curve.discount(r.date)
        for r in _future_flows(ledger, include_settlement_date_flows, settlement_date)
        if r.coupon is not None
    )
    return BASIS_POINT * total / curve.discount(npv_date)


def atm_rate(
    ledger: Ledger,
    curve: YieldCurve,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
    target_npv: Amount | None = None,
) -> Rate:
    """Coupon rate repricing the ledger to ``target_npv``.

    Without a target the curve NPV of the coupons is used, so the result is
    the par coupon rate implied by the curve.

    Raises:
        ZeroDivisionError: If no coupon is left (null annuity)
    """
    npv_date = npv_date or settlement_date
    coupon_npv = 0.0
    other_npv = 0.0
    annuity = 0.0
    for r in _future_flows(ledger, include_settlement_date_flows, settlement_date):
        df = curve.discount(r.date)
        if r.coupon is not None:
            coupon_npv += r.amount * df
            annuity += r.coupon.nominal * r.coupon.accrual_period() * df
        else:
            other_npv += r.amount * df

    if target_npv is None:
        target = coupon_npv
    else:
        target = target_npv * curve.discount(npv_date) - other_npv

    if target == 0.0:
        return 0.0
    if annuity == 0.0:
        raise ZeroDivisionError("null bps: impossible atm rate")
    return target / annuity


# ---------------------------------------------------------------------------
# Discounting at a flat yield
# ---------------------------------------------------------------------------


def discount_times(
    ledger: Ledger,
    day_count: DayCountConvention,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> list[tuple[CashflowRecord, float]]:
    """Future flows paired with their time (in years) from ``npv_date``.

    Each time is measured directly from ``npv_date`` (settlement by default),
    so it matches the time a curve with the same day count would use.
    """
    origin = npv_date or settlement_date
    return [
        (r, year_fraction(origin, r.date, day_count))
        for r in _future_flows(ledger, include_settlement_date_flows, settlement_date)
    ]


def npv_at_yield(
    ledger: Ledger,
    rate: InterestRate,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> Amount:
    """Value of the future flows discounted at a single flat yield."""
    return sum(
        r.amount * rate.discount_factor(t)
        for r, t in discount_times(
            ledger, rate.day_count, include_settlement_date_flows, settlement_date, npv_date
        )
    )


def bps_at_yield(
    ledger: Ledger,
    rate: InterestRate,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> Amount:
    """Basis-point sensitivity to the coupon rates, discounting at a flat yield."""
    total = sum(
        r.coupon.nominal * r.coupon.accrual_period() * rate.discount_factor(t)
        for r, t in discount_times(
            ledger, rate.day_count, include_settlement_date_flows, settlement_date, npv_date
        )
        if r.coupon is not None
    )
    return BASIS_POINT * total


def yield_rate(
    ledger: Ledger,
    target_npv: Amount,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
    accuracy: float = DEFAULT_ACCURACY,
    max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
    guess: Rate = DEFAULT_YIELD_GUESS,
) -> Rate:
    """Flat yield at which the future flows are worth ``target_npv``.

    Raises:
        RootNotBracketedError: If no yield in the domain matches the target
        MaxIterationsExceededError: If the solver does not converge in time
    """
    template = InterestRate(
        rate=guess, day_count=day_count, compounding=compounding, frequency=frequency
    )
    timed = discount_times(ledger, day_count, include_settlement_date_flows, settlement_date, npv_date)

    def objective(y: float) -> float:
        rate = template.with_rate(y)
        return sum(r.amount * rate.discount_factor(t) for r, t in timed) - target_npv

    solver = Brent(max_evaluations=max_evaluations, lower_bound=MIN_YIELD)
    result = solver.solve(objective, accuracy, guess, SOLVER_STEP)
    logger.debug("Solved yield", extra={"yield": result, "target_npv": target_npv})
    return result


def duration(
    ledger: Ledger,
    rate: InterestRate,
    duration_type: DurationType,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> float:
    """Duration of the future flows at a flat yield.

    Raises:
        ValueError: For Macaulay duration of a yield that is not compounded
    """
    timed = discount_times(
        ledger, rate.day_count, include_settlement_date_flows, settlement_date, npv_date
    )
    if duration_type == DurationType.SIMPLE:
        return _simple_duration(timed, rate)
    if duration_type == DurationType.MODIFIED:
        return _modified_duration(timed, rate)
    if rate.compounding != Compounding.COMPOUNDED:
        raise ValueError("Macaulay duration requires a compounded yield")
    return (1.0 + rate.rate / rate.periods_per_year) * _modified_duration(timed, rate)


def _simple_duration(timed: list[tuple[CashflowRecord, float]], rate: InterestRate) -> float:
    price = 0.0
    weighted = 0.0
    for r, t in timed:
        pv = r.amount * rate.discount_factor(t)
        price += pv
        weighted += t * pv
    return weighted / price if price != 0.0 else 0.0


def _uses_simple_rule(rate: InterestRate, t: float) -> bool:
    if rate.compounding == Compounding.SIMPLE:
        return True
    return rate.compounding == Compounding.SIMPLE_THEN_COMPOUNDED and t <= 1.0 / rate.periods_per_year


def _modified_duration(timed: list[tuple[CashflowRecord, float]], rate: InterestRate) -> float:
    price = 0.0
    dp_dy = 0.0
    y = rate.rate
    for r, t in timed:
        c = r.amount
        b = rate.discount_factor(t)
        price += c * b
        if rate.compounding == Compounding.CONTINUOUS:
            dp_dy -= c * b * t
        elif _uses_simple_rule(rate, t):
            dp_dy -= c * b * b * t
        else:
            dp_dy -= c * t * b / (1.0 + y / rate.periods_per_year)
    return -dp_dy / price if price != 0.0 else 0.0


def convexity(
    ledger: Ledger,
    rate: InterestRate,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> float:
    """Second derivative of the value with respect to the yield, over the value."""
    price = 0.0
    d2p_dy2 = 0.0
    y = rate.rate
    for r, t in discount_times(
        ledger, rate.day_count, include_settlement_date_flows, settlement_date, npv_date
    ):
        c = r.amount
        b = rate.discount_factor(t)
        price += c * b
        if rate.compounding == Compounding.CONTINUOUS:
            d2p_dy2 += c * b * t * t
        elif _uses_simple_rule(rate, t):
            d2p_dy2 += c * 2.0 * b * b * b * t * t
        else:
            n = rate.periods_per_year
            d2p_dy2 += c * b * t * (n * t + 1.0) / (n * (1.0 + y / n) ** 2)
    return d2p_dy2 / price if price != 0.0 else 0.0


def basis_point_value(
    ledger: Ledger,
    rate: InterestRate,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> Amount:
    """Value change for a one basis point rise of the yield (second order)."""
    value = npv_at_yield(ledger, rate, include_settlement_date_flows, settlement_date, npv_date)
    modified = duration(
        ledger, rate, DurationType.MODIFIED, include_settlement_date_flows, settlement_date, npv_date
    )
    curvature = convexity(ledger, rate, include_settlement_date_flows, settlement_date, npv_date)
    delta = -modified * value * BASIS_POINT
    gamma = 0.5 * curvature * value * BASIS_POINT * BASIS_POINT
    return delta + gamma


def yield_value_basis_point(
    ledger: Ledger,
    rate: InterestRate,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> float:
    """Yield change produced by a 0.01 change of the value."""
    value = npv_at_yield(ledger, rate, include_settlement_date_flows, settlement_date, npv_date)
    modified = duration(
        ledger, rate, DurationType.MODIFIED, include_settlement_date_flows, settlement_date, npv_date
    )
    return 0.01 / (-value * modified)


# ---------------------------------------------------------------------------
# Z-spread
# ---------------------------------------------------------------------------


def npv_with_zspread(
    ledger: Ledger,
    curve: YieldCurve,
    z_spread: Spread,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
) -> Amount:
    """Value on ``curve`` with its zero rates shifted by ``z_spread``."""
    shifted = ZeroSpreadedCurve(curve, z_spread, compounding, frequency, day_count)
    return npv(ledger, shifted, include_settlement_date_flows, settlement_date, npv_date)


def z_spread(
    ledger: Ledger,
    curve: YieldCurve,
    target_npv: Amount,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    include_settlement_date_flows: bool,
    settlement_date: date,
    npv_date: date | None = None,
    accuracy: float = DEFAULT_ACCURACY,
    max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
    guess: Spread = DEFAULT_SPREAD_GUESS,
) -> Spread:
    """Zero spread over ``curve`` at which the future flows are worth ``target_npv``.

    Raises:
        RootNotBracketedError: If no spread matches the target
        MaxIterationsExceededError: If the solver does not converge in time
    """

    def objective(s: float) -> float:
        return (
            npv_with_zspread(
                ledger,
                curve,
                s,
                day_count,
                compounding,
                frequency,
                include_settlement_date_flows,
                settlement_date,
                npv_date,
            )
            - target_npv
        )

    solver = Brent(max_evaluations=max_evaluations)
    result = solver.solve(objective, accuracy, guess, SOLVER_STEP)
    logger.debug("Solved z-spread", extra={"z_spread": result, "target_npv": target_npv})
    return result
