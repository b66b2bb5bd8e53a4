"""Principal repayment synthesis.

Given a notional schedule, one principal record is produced per breakpoint
after the sentinel: an amortizing payment for every intermediate step and a
final redemption on the last breakpoint. Redemption factors (base 100) scale
each paydown; a factor of 100 repays the step at par.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from jloan.amortization.notional import NotionalSchedule, build_notional_schedule
from jloan.core.cashflows import CashflowRecord, amortizing_payment, redemption
from jloan.core.ledger import Ledger
from jloan.core.types import Amount
from jloan.logging_config import get_logger

logger = get_logger(__name__)

PAR = 100.0


def redemption_factor(factors: Sequence[float], index: int) -> float:
    """Factor applying to breakpoint ``index``.

    Factors are aligned with the breakpoints, so ``factors[0]`` belongs to
    the sentinel and is never used. Breakpoints past the end of ``factors``
    reuse its last entry; with no factors at all, par applies.
    """
    if index < len(factors):
        return factors[index]
    if factors:
        return factors[-1]
    return PAR


def synthesize_redemptions(
    schedule: NotionalSchedule,
    factors: Sequence[float] = (),
) -> list[CashflowRecord]:
    """Create the principal records implied by a notional schedule.

    Breakpoints where the notional does not move still get a (zero-amount)
    record, keeping one record per breakpoint.

    Args:
        schedule: Notional schedule with at least two breakpoints
        factors: Optional redemption factors in base 100, indexed by breakpoint

    Returns:
        One principal record per breakpoint after the sentinel, in
        breakpoint order
    """
    last = len(schedule) - 1
    records = []
    for i in range(1, len(schedule)):
        factor = redemption_factor(factors, i)
        amount = factor / PAR * (schedule.notionals[i - 1] - schedule.notionals[i])
        payment_date: date = schedule.dates[i]  # type: ignore[assignment]
        if i < last:
            records.append(amortizing_payment(amount, payment_date))
        else:
            records.append(redemption(amount, payment_date))
    return records


def add_redemptions(
    ledger: Ledger,
    factors: Sequence[float] = (),
) -> tuple[Ledger, NotionalSchedule, tuple[CashflowRecord, ...]]:
    """Derive the notional schedule of a coupon ledger and add its principal flows.

    Args:
        ledger: Date-sorted ledger holding at least one coupon
        factors: Optional redemption factors in base 100, indexed by breakpoint

    Returns:
        Tuple of (ledger including principal records, notional schedule,
        principal records)

    Raises:
        EmptyCashflowListError: If the ledger has no coupon
        NonMonotonicNotionalError: If coupon nominals increase
    """
    schedule = build_notional_schedule(ledger)
    principal = synthesize_redemptions(schedule, factors)
    logger.debug(
        "Synthesized principal payments",
        extra={"payments": len(principal), "total": sum(r.amount for r in principal)},
    )
    return ledger.merged(principal), schedule, tuple(principal)


def single_redemption(
    ledger: Ledger,
    notional: Amount,
    payment_date: date,
    factor: float = PAR,
) -> tuple[Ledger, NotionalSchedule, CashflowRecord]:
    """Repay the whole notional with one redemption on ``payment_date``.

    The coupons (if any) are not inspected: the schedule is simply
    ``[notional, 0]`` with the breakpoint on the redemption date.

    Returns:
        Tuple of (ledger including the redemption, two-point notional
        schedule, redemption record)
    """
    flow = redemption(notional * factor / PAR, payment_date)
    schedule = NotionalSchedule((None, payment_date), (notional, 0.0))
    return ledger.merged((flow,)), schedule, flow
