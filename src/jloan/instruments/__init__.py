"""Loan instruments."""

from jloan.instruments.amortizing import (
    AmortizingLoanTerms,
    amortizing_fixed_rate_loan,
    annuity_notionals,
    regular_payment_dates,
    sinking_fixed_rate_loan,
    sinking_notionals,
)
from jloan.instruments.loan import Loan

__all__ = [
    "Loan",
    "AmortizingLoanTerms",
    "amortizing_fixed_rate_loan",
    "sinking_fixed_rate_loan",
    "sinking_notionals",
    "annuity_notionals",
    "regular_payment_dates",
]
