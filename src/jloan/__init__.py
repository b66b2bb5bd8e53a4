"""jloan: analytics for amortizing loans.

The package rebuilds the outstanding notional of a loan from its coupons,
adds the principal repayments that schedule implies, and prices the result
from a discount curve, a flat yield or a curve plus z-spread.

Basic usage:
    >>> import jloan
    >>> print(jloan.__version__)
    0.1.0
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

# Import core exceptions for convenient access
from jloan.exceptions import (
    ConfigurationError,
    ConventionError,
    DateTimeError,
    EmptyCashflowListError,
    InvalidSettlementDateError,
    LoanConstructionError,
    LoanException,
    MaxIterationsExceededError,
    MultipleRedemptionsAmbiguousError,
    NonMonotonicNotionalError,
    NoPricingEngineResultError,
    NotTradableError,
    RootNotBracketedError,
    SolverError,
)
from jloan.logging_config import configure_logging, get_logger

# Core building blocks
from jloan.core import (
    CashflowKind,
    CashflowRecord,
    Compounding,
    DayCountConvention,
    DurationType,
    Frequency,
    Ledger,
    fixed_rate_coupon,
)
from jloan.engine import DiscountingLoanEngine
from jloan.instruments import AmortizingLoanTerms, Loan, amortizing_fixed_rate_loan
from jloan.settings import EvaluationSettings, settings
from jloan.termstructures import FlatForward
from jloan.utilities import InterestRate

# Public API
__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Exceptions
    "LoanException",
    "LoanConstructionError",
    "EmptyCashflowListError",
    "NonMonotonicNotionalError",
    "InvalidSettlementDateError",
    "MultipleRedemptionsAmbiguousError",
    "NotTradableError",
    "SolverError",
    "RootNotBracketedError",
    "MaxIterationsExceededError",
    "NoPricingEngineResultError",
    "ConventionError",
    "DateTimeError",
    "ConfigurationError",
    # Logging
    "configure_logging",
    "get_logger",
    # Settings
    "EvaluationSettings",
    "settings",
    # Building blocks
    "CashflowKind",
    "CashflowRecord",
    "Compounding",
    "DayCountConvention",
    "DurationType",
    "Frequency",
    "Ledger",
    "InterestRate",
    "FlatForward",
    "fixed_rate_coupon",
    # Instruments and engines
    "Loan",
    "AmortizingLoanTerms",
    "amortizing_fixed_rate_loan",
    "DiscountingLoanEngine",
]
