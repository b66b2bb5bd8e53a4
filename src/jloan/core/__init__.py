"""Core types, dates and cash flow records."""

from jloan.core.cashflows import (
    CashflowRecord,
    CouponTerms,
    amortizing_payment,
    fixed_rate_coupon,
    redemption,
)
from jloan.core.ledger import Ledger
from jloan.core.time import add_period, parse_cycle, parse_iso_date, period_delta, to_date
from jloan.core.types import (
    BASIS_POINT,
    Calendar,
    CashflowKind,
    Compounding,
    DayCountConvention,
    DurationType,
    Frequency,
)

__all__ = [
    # Records
    "CashflowRecord",
    "CouponTerms",
    "Ledger",
    "amortizing_payment",
    "fixed_rate_coupon",
    "redemption",
    # Dates
    "add_period",
    "parse_cycle",
    "parse_iso_date",
    "period_delta",
    "to_date",
    # Types
    "BASIS_POINT",
    "Calendar",
    "CashflowKind",
    "Compounding",
    "DayCountConvention",
    "DurationType",
    "Frequency",
]
