"""Type definitions and enumerations for loan analytics.

All enumerations inherit from str for JSON serializability and easy comparison,
except :class:`Frequency`, whose values are the number of periods per year.
"""

from enum import Enum, IntEnum
from typing import TypeAlias

# Type aliases for clarity
Amount: TypeAlias = float  # Monetary amount
Rate: TypeAlias = float  # Interest rate (decimal, e.g., 0.05 for 5%)
Spread: TypeAlias = float  # Additive rate spread (decimal)
Cycle: TypeAlias = str  # Period notation, e.g. '3M', '1Y', '2W'

BASIS_POINT = 1.0e-4


class CashflowKind(str, Enum):
    """Kind of a ledger record.

    Coupons carry their accrual terms; the two principal kinds are produced by
    the redemption synthesizer.
    """

    COUPON = "COUPON"  # Interest payment with a declared nominal
    AMORTIZING_PAYMENT = "AMORTIZING_PAYMENT"  # Partial principal paydown
    REDEMPTION = "REDEMPTION"  # Final principal repayment

    @property
    def is_principal(self) -> bool:
        """True for the two principal-repayment kinds."""
        return self is not CashflowKind.COUPON


class DayCountConvention(str, Enum):
    """Day count conventions for year fraction calculation.

    References:
        ISDA 2006 Definitions, Section 4.16
    """

    AA = "AA"  # Actual/Actual ISDA
    A360 = "A360"  # Actual/360
    A365 = "A365"  # Actual/365 Fixed
    E30360 = "E30360"  # 30E/360 (Eurobond basis)
    B30360 = "B30360"  # 30/360 (Bond basis, US)
    BUS252 = "BUS252"  # Business days / 252


class Compounding(str, Enum):
    """Interest compounding rules.

    SIMPLE_THEN_COMPOUNDED uses simple interest up to one compounding period
    and compounded interest afterwards.
    """

    SIMPLE = "SIMPLE"  # 1 + r*t
    COMPOUNDED = "COMPOUNDED"  # (1 + r/f)^(f*t)
    CONTINUOUS = "CONTINUOUS"  # exp(r*t)
    SIMPLE_THEN_COMPOUNDED = "SIMPLE_THEN_COMPOUNDED"


class Frequency(IntEnum):
    """Number of interest periods per year."""

    NO_FREQUENCY = -1
    ONCE = 0
    ANNUAL = 1
    SEMIANNUAL = 2
    EVERY_FOURTH_MONTH = 3
    QUARTERLY = 4
    BIMONTHLY = 6
    MONTHLY = 12


class DurationType(str, Enum):
    """Duration measures of price sensitivity to the yield."""

    SIMPLE = "SIMPLE"  # PV-weighted average time
    MACAULAY = "MACAULAY"  # Requires compounded yields
    MODIFIED = "MODIFIED"  # -dP/dy / P


class Calendar(str, Enum):
    """Named business day calendars."""

    NO_CALENDAR = "NO_CALENDAR"  # Every day is a business day
    MONDAY_TO_FRIDAY = "MONDAY_TO_FRIDAY"  # Weekends are holidays
