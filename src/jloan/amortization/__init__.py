"""Notional schedules and the principal payments they imply."""

from jloan.amortization.notional import NotionalSchedule, build_notional_schedule
from jloan.amortization.redemptions import (
    PAR,
    add_redemptions,
    redemption_factor,
    single_redemption,
    synthesize_redemptions,
)

__all__ = [
    "NotionalSchedule",
    "build_notional_schedule",
    "PAR",
    "add_redemptions",
    "redemption_factor",
    "single_redemption",
    "synthesize_redemptions",
]
