"""Pricing engines for loans."""

from jloan.engine.discounting import (
    DiscountingLoanEngine,
    LoanArguments,
    LoanResults,
    PricingEngine,
)

__all__ = ["PricingEngine", "DiscountingLoanEngine", "LoanArguments", "LoanResults"]
