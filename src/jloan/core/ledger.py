"""Ordered collection of a loan's cash flows."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date
from typing import Any

import pandas as pd

from jloan.core.cashflows import CashflowRecord


def _ledger_order(record: CashflowRecord) -> tuple[date, bool]:
    return record.date, record.is_principal


@dataclass(frozen=True)
class Ledger:
    """Immutable, date-ordered sequence of cash flow records.

    Records are ordered by payment date, and principal records come after
    the coupons paying on the same day. The sort is stable, so coupons (or
    principal records) sharing a date keep their insertion order.

    Example:
        >>> ledger = Ledger.from_records(coupons)
        >>> ledger = ledger.merged(principal_records)
    """

    records: tuple[CashflowRecord, ...] = ()

    @classmethod
    def from_records(cls, records: Iterable[CashflowRecord]) -> Ledger:
        """Build a ledger, sorting the records by date then coupon before principal."""
        return cls(tuple(sorted(records, key=_ledger_order)))

    def merged(self, records: Iterable[CashflowRecord]) -> Ledger:
        """Return a new ledger with ``records`` appended and re-sorted stably."""
        return Ledger.from_records((*self.records, *records))

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[CashflowRecord]:
        return iter(self.records)

    def __getitem__(self, index: int) -> CashflowRecord:
        return self.records[index]

    def __bool__(self) -> bool:
        return bool(self.records)

    def coupons(self) -> tuple[CashflowRecord, ...]:
        """Coupon records in ledger order."""
        return tuple(r for r in self.records if r.is_coupon)

    def principal_records(self) -> tuple[CashflowRecord, ...]:
        """Amortizing and final principal records in ledger order."""
        return tuple(r for r in self.records if r.is_principal)

    def between(self, start: date, end: date) -> tuple[CashflowRecord, ...]:
        """Records paying in ``[start, end]``."""
        return tuple(r for r in self.records if start <= r.date <= end)

    def dates(self) -> list[date]:
        return [r.date for r in self.records]

    def to_dicts(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self.records]

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the ledger to a pandas DataFrame.

        Returns:
            DataFrame with columns date, amount and kind, plus nominal, rate,
            accrual_start and accrual_end for coupon rows

        Example:
            >>> df = loan.ledger.to_dataframe()
            >>> df.groupby("kind")["amount"].sum()
        """
        if not self.records:
            return pd.DataFrame()
        return pd.DataFrame(self.to_dicts())
