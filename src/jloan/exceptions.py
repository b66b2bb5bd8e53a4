"""Custom exception classes for loan analytics errors.

This module defines a hierarchy of exceptions used throughout the jloan package.
All exceptions inherit from LoanException, which provides common functionality
for error handling and context preservation.
"""

from typing import Any


class LoanException(Exception):
    """Base exception for all jloan errors.

    Attributes:
        message: Human-readable error description
        context: Additional context information about the error
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description
            context: Optional dictionary with additional error context
                    (e.g., settlement_date, maturity_date, notional)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class LoanConstructionError(LoanException):
    """Exception raised when a loan is built from malformed input.

    Construction errors are never recovered locally: they indicate that the
    coupons, notionals or dates handed to the loan are inconsistent.
    """


class EmptyCashflowListError(LoanConstructionError):
    """Exception raised when no coupon-bearing cash flow is available.

    Example:
        >>> raise EmptyCashflowListError("no coupons provided")
    """


class NonMonotonicNotionalError(LoanConstructionError):
    """Exception raised when coupon nominals increase over time.

    Principal only amortizes down, so a coupon whose nominal exceeds the
    running notional makes the notional schedule undefined.

    Example:
        >>> raise NonMonotonicNotionalError(
        ...     "increasing coupon notionals",
        ...     context={"date": "2025-03-15", "nominal": 1200.0, "current": 1000.0}
        ... )
    """


class InvalidSettlementDateError(LoanConstructionError):
    """Exception raised when the issue date is not before the first payment."""


class MultipleRedemptionsAmbiguousError(LoanException):
    """Exception raised when asking for the single redemption of a loan with several."""


class NotTradableError(LoanException):
    """Exception raised when an analytic is requested on a fully amortized loan.

    Example:
        >>> raise NotTradableError(
        ...     "non tradable at settlement date",
        ...     context={"settlement_date": "2030-01-02", "maturity_date": "2029-12-15"}
        ... )
    """


class SolverError(LoanException):
    """Base exception for one-dimensional root-finding failures."""


class RootNotBracketedError(SolverError):
    """Exception raised when the solver cannot bracket a root."""


class MaxIterationsExceededError(SolverError):
    """Exception raised when the solver runs out of function evaluations."""


class NoPricingEngineResultError(LoanException):
    """Exception raised when no settlement value is available.

    This happens when a loan has no pricing engine attached, or when the
    engine did not provide a settlement value.
    """


class ConventionError(LoanException):
    """Exception raised for day count, calendar or cycle convention errors.

    Example:
        >>> raise ConventionError(
        ...     "Unsupported day count convention",
        ...     context={"convention": "ACT/999"}
        ... )
    """


class DateTimeError(LoanException):
    """Exception raised for date parsing or date arithmetic errors."""


class ConfigurationError(LoanException):
    """Exception raised for configuration and initialization errors.

    Example:
        >>> raise ConfigurationError(
        ...     "Invalid evaluation date in environment",
        ...     context={"JLOAN_EVALUATION_DATE": "2024-13-45"}
        ... )
    """
