"""Outstanding-notional schedules.

A :class:`NotionalSchedule` is a step function of the outstanding principal.
Breakpoint ``i`` closes the range on which ``notionals[i - 1]`` applied; the
first breakpoint is a sentinel (``None``) meaning "before the start" and the
last notional is always zero.

The schedule of an amortizing loan is derived from its coupons: each coupon
declares the nominal it accrues on, so the paydowns follow from the points
where that nominal steps down.
"""

from __future__ import annotations

import bisect
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from jloan.core.cashflows import CashflowRecord
from jloan.core.types import Amount
from jloan.exceptions import EmptyCashflowListError, NonMonotonicNotionalError
from jloan.logging_config import get_logger

logger = get_logger(__name__)

# Relative tolerance under which two coupon nominals are the same notional.
NOTIONAL_TOLERANCE = 1.0e-12


def same_notional(a: Amount, b: Amount) -> bool:
    return math.isclose(a, b, rel_tol=NOTIONAL_TOLERANCE, abs_tol=0.0)


@dataclass(frozen=True)
class NotionalSchedule:
    """Step function of the outstanding notional.

    ``notionals[i]`` is valid on ``[dates[i], dates[i + 1])``; ``dates[0]`` is
    ``None`` and ``notionals[-1]`` is 0.

    Attributes:
        dates: Breakpoint dates, sentinel first
        notionals: Notional levels, one per breakpoint

    Raises:
        NonMonotonicNotionalError: If a notional exceeds the previous one
        ValueError: If the shape is invalid (fewer than two breakpoints,
            missing sentinel, unsorted dates, non-zero final notional)
    """

    dates: tuple[date | None, ...]
    notionals: tuple[Amount, ...]

    def __post_init__(self) -> None:
        if len(self.dates) != len(self.notionals):
            raise ValueError(
                f"{len(self.dates)} breakpoint dates for {len(self.notionals)} notionals"
            )
        if len(self.dates) < 2:
            raise ValueError("a notional schedule needs at least two breakpoints")
        if self.dates[0] is not None:
            raise ValueError("the first breakpoint must be the sentinel None")
        if any(d is None for d in self.dates[1:]):
            raise ValueError("only the first breakpoint may be the sentinel")
        if any(later < earlier for earlier, later in zip(self.dates[1:], self.dates[2:])):
            raise ValueError("breakpoint dates must be sorted")
        if self.notionals[-1] != 0.0:
            raise ValueError(f"final notional must be 0, got {self.notionals[-1]}")
        for i in range(1, len(self.notionals)):
            if self.notionals[i] > self.notionals[i - 1] and not same_notional(
                self.notionals[i], self.notionals[i - 1]
            ):
                raise NonMonotonicNotionalError(
                    "increasing notionals in schedule",
                    context={
                        "breakpoint": i,
                        "previous": self.notionals[i - 1],
                        "notional": self.notionals[i],
                    },
                )

    def __len__(self) -> int:
        return len(self.dates)

    @property
    def final_date(self) -> date:
        """Date from which the loan is fully repaid."""
        return self.dates[-1]  # type: ignore[return-value]

    @property
    def initial_notional(self) -> Amount:
        return self.notionals[0]

    def notional_at(self, d: date) -> Amount:
        """Outstanding notional at ``d``.

        Between breakpoints the earlier level applies; on a breakpoint date
        the post-paydown level applies; from the final breakpoint on, 0.

        Example:
            >>> schedule = NotionalSchedule((None, date(2025, 1, 1), date(2026, 1, 1)),
            ...                             (100.0, 50.0, 0.0))
            >>> schedule.notional_at(date(2024, 6, 1)), schedule.notional_at(date(2025, 1, 1))
            (100.0, 50.0)
        """
        if d > self.final_date:
            return 0.0
        # skip the sentinel; index is the first breakpoint on or after d
        index = bisect.bisect_left(self.dates, d, lo=1)
        if d < self.dates[index]:  # type: ignore[operator]
            return self.notionals[index - 1]
        return self.notionals[index]

    def steps(self) -> list[tuple[date, Amount]]:
        """Paydown per breakpoint: ``(dates[i], notionals[i-1] - notionals[i])``."""
        return [
            (self.dates[i], self.notionals[i - 1] - self.notionals[i])  # type: ignore[misc]
            for i in range(1, len(self.dates))
        ]


def build_notional_schedule(records: Iterable[CashflowRecord]) -> NotionalSchedule:
    """Derive the notional schedule from the coupons of a date-sorted ledger.

    Principal records are ignored. Consecutive coupons with the same nominal
    extend the current range; a lower nominal closes it at the last payment
    date seen with the previous nominal. The final breakpoint is the last
    coupon date, with notional 0.

    Args:
        records: Date-sorted cash flow records

    Returns:
        The derived schedule

    Raises:
        EmptyCashflowListError: If there is no coupon among the records
        NonMonotonicNotionalError: If a coupon nominal exceeds the running
            notional
    """
    dates: list[date | None] = [None]
    notionals: list[Amount] = []
    last_payment_date: date | None = None

    for record in records:
        nominal = record.nominal
        if nominal is None:
            continue

        if not notionals:
            notionals.append(nominal)
        elif not same_notional(nominal, notionals[-1]):
            if nominal > notionals[-1]:
                raise NonMonotonicNotionalError(
                    "increasing coupon notionals",
                    context={
                        "date": record.date.isoformat(),
                        "nominal": nominal,
                        "current": notionals[-1],
                    },
                )
            notionals.append(nominal)
            # the previous notional was valid up to the last payment seen
            dates.append(last_payment_date)
        last_payment_date = record.date

    if not notionals:
        raise EmptyCashflowListError("no coupons provided")

    notionals.append(0.0)
    dates.append(last_payment_date)

    logger.debug(
        "Built notional schedule",
        extra={"breakpoints": len(dates), "initial_notional": notionals[0]},
    )
    return NotionalSchedule(tuple(dates), tuple(notionals))
