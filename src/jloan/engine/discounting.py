"""Pricing engines for loans.

A loan hands its engine a :class:`LoanArguments` request (settlement date,
full ledger, calendar) and receives a :class:`LoanResults` response. The
engine holds the market data; the loan holds the cached results.

Example:
    >>> from jloan.engine import DiscountingLoanEngine
    >>> from jloan.termstructures import FlatForward
    >>> engine = DiscountingLoanEngine(FlatForward(date(2024, 1, 2), 0.04))
    >>> loan.set_pricing_engine(engine)
    >>> loan.settlement_value()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from jloan.analytics import cashflows
from jloan.core.ledger import Ledger
from jloan.core.types import Amount
from jloan.exceptions import EmptyCashflowListError, InvalidSettlementDateError
from jloan.logging_config import get_logger
from jloan.termstructures.curves import YieldCurve
from jloan.utilities.calendars import HolidayCalendar

logger = get_logger(__name__)


@dataclass(frozen=True)
class LoanArguments:
    """What a loan sends to its pricing engine."""

    settlement_date: date | None
    cashflows: Ledger
    calendar: HolidayCalendar

    def validate(self) -> None:
        """Check the request is complete.

        Raises:
            InvalidSettlementDateError: If no settlement date is given
            EmptyCashflowListError: If the ledger is empty
        """
        if self.settlement_date is None:
            raise InvalidSettlementDateError("no settlement date provided")
        if not self.cashflows:
            raise EmptyCashflowListError("no cashflows provided")


@dataclass(frozen=True)
class LoanResults:
    """What a pricing engine sends back.

    Attributes:
        value: NPV at the valuation date, ``None`` when not provided
        settlement_value: Value at the settlement date, ``None`` when not provided
        valuation_date: Date the NPV refers to
    """

    value: Amount | None = None
    settlement_value: Amount | None = None
    valuation_date: date | None = None


class PricingEngine(ABC):
    """Interface of loan pricing engines."""

    @abstractmethod
    def calculate(
        self, arguments: LoanArguments, include_reference_date_events: bool = False
    ) -> LoanResults:
        """Value the loan described by ``arguments``.

        Args:
            arguments: Validated request from the loan
            include_reference_date_events: Whether flows paying on the valuation
                date are still to be received (used unless the engine overrides it)
        """


class DiscountingLoanEngine(PricingEngine):
    """Discounts every outstanding flow on a yield curve.

    The NPV is taken at the curve reference date; the settlement value is
    taken at the settlement date, excluding flows paid on that date.

    Attributes:
        curve: Discount curve
        include_settlement_date_flows: Overrides the evaluation settings for
            flows paying on the valuation date when not ``None``
    """

    def __init__(
        self, curve: YieldCurve, include_settlement_date_flows: bool | None = None
    ) -> None:
        self.curve = curve
        self.include_settlement_date_flows = include_settlement_date_flows

    def calculate(
        self, arguments: LoanArguments, include_reference_date_events: bool = False
    ) -> LoanResults:
        arguments.validate()
        valuation_date = self.curve.reference_date
        include = (
            self.include_settlement_date_flows
            if self.include_settlement_date_flows is not None
            else include_reference_date_events
        )
        value = cashflows.npv(arguments.cashflows, self.curve, include, valuation_date, valuation_date)
        settlement_value = cashflows.npv(
            arguments.cashflows,
            self.curve,
            False,
            arguments.settlement_date,  # type: ignore[arg-type]
            arguments.settlement_date,
        )
        logger.debug(
            "Discounted loan cashflows",
            extra={
                "valuation_date": valuation_date,
                "settlement_date": arguments.settlement_date,
                "value": value,
                "settlement_value": settlement_value,
            },
        )
        return LoanResults(
            value=value, settlement_value=settlement_value, valuation_date=valuation_date
        )

    def __repr__(self) -> str:
        return f"DiscountingLoanEngine(curve={self.curve!r})"
