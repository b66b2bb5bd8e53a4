"""The amortizing loan instrument.

A :class:`Loan` owns its ledger and notional schedule, both fixed at
construction, and a cached settlement value obtained from its pricing
engine. The cache is dropped when the evaluation settings change (the loan
compares the settings version with the one its results were computed at) or
when :meth:`Loan.invalidate` is called.

Example:
    >>> coupons = [fixed_rate_coupon(d, n, 0.05, start, d) for ...]
    >>> loan = Loan(settlement_days=2, calendar="MTF", coupons=coupons)
    >>> loan.notional(date(2025, 6, 1))
    750000.0
    >>> loan.set_pricing_engine(DiscountingLoanEngine(curve))
    >>> loan.clean_price()
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from datetime import date

from jloan.amortization.redemptions import PAR, add_redemptions, single_redemption
from jloan.analytics import cashflows as cashflow_analytics
from jloan.analytics import loan_functions
from jloan.core.cashflows import CashflowRecord
from jloan.core.ledger import Ledger
from jloan.core.time import to_date
from jloan.core.types import Amount, Calendar, Compounding, DayCountConvention, Frequency, Rate
from jloan.engine.discounting import LoanArguments, LoanResults, PricingEngine
from jloan.exceptions import (
    InvalidSettlementDateError,
    MultipleRedemptionsAmbiguousError,
    NoPricingEngineResultError,
)
from jloan.logging_config import get_logger
from jloan.settings import EvaluationSettings
from jloan.settings import settings as default_settings
from jloan.utilities.calendars import HolidayCalendar, get_calendar
from jloan.utilities.solvers import DEFAULT_ACCURACY, DEFAULT_MAX_EVALUATIONS

logger = get_logger(__name__)

_EXPIRED_RESULTS = LoanResults(value=0.0, settlement_value=0.0, valuation_date=None)


class Loan:
    """Loan whose principal is repaid along a notional schedule.

    The notional schedule is derived from the coupon nominals and a principal
    record is added for every step of it (see
    :func:`~jloan.amortization.redemptions.add_redemptions`). Use
    :meth:`with_single_redemption` for a loan repaid in one payment.

    Attributes:
        settlement_days: Business days between evaluation and settlement
        calendar: Calendar used to roll the settlement date
        issue_date: Optional date before which the loan cannot settle
        ledger: All cash flows, principal after same-date coupons
        notional_schedule: Outstanding notional as a step function of time

    Raises:
        EmptyCashflowListError: If no coupon is given
        NonMonotonicNotionalError: If coupon nominals increase
        InvalidSettlementDateError: If the issue date is not before the first payment
    """

    def __init__(
        self,
        settlement_days: int,
        calendar: HolidayCalendar | Calendar | str,
        coupons: Iterable[CashflowRecord] = (),
        redemption_factors: Sequence[float] = (),
        issue_date: date | str | None = None,
        pricing_engine: PricingEngine | None = None,
        settings: EvaluationSettings | None = None,
    ) -> None:
        self._init_common(settlement_days, calendar, issue_date, pricing_engine, settings)
        ledger = Ledger.from_records(coupons)
        self.ledger, self.notional_schedule, self._redemptions = add_redemptions(
            ledger, redemption_factors
        )
        self._maturity_date = self.notional_schedule.final_date
        self._check_issue_date()
        logger.debug(
            "Loan created",
            extra={
                "cashflows": len(self.ledger),
                "breakpoints": len(self.notional_schedule),
                "maturity_date": self._maturity_date,
            },
        )

    @classmethod
    def with_single_redemption(
        cls,
        settlement_days: int,
        calendar: HolidayCalendar | Calendar | str,
        face_amount: Amount,
        maturity_date: date | str,
        coupons: Iterable[CashflowRecord] = (),
        redemption_factor: float = PAR,
        issue_date: date | str | None = None,
        pricing_engine: PricingEngine | None = None,
        settings: EvaluationSettings | None = None,
    ) -> Loan:
        """Loan repaying ``face_amount`` in full at ``maturity_date``.

        The notional schedule is ``[face_amount, 0]``; coupon nominals are
        not inspected.

        Example:
            >>> loan = Loan.with_single_redemption(2, "NONE", 1_000_000.0, date(2030, 1, 1))
            >>> loan.redemption().amount
            1000000.0
        """
        loan = cls.__new__(cls)
        loan._init_common(settlement_days, calendar, issue_date, pricing_engine, settings)
        maturity = to_date(maturity_date)
        loan.ledger, loan.notional_schedule, flow = single_redemption(
            Ledger.from_records(coupons), face_amount, maturity, redemption_factor
        )
        loan._redemptions = (flow,)
        loan._maturity_date = maturity
        loan._check_issue_date()
        return loan

    def _init_common(
        self,
        settlement_days: int,
        calendar: HolidayCalendar | Calendar | str,
        issue_date: date | str | None,
        pricing_engine: PricingEngine | None,
        settings: EvaluationSettings | None,
    ) -> None:
        if settlement_days < 0:
            raise ValueError(f"settlement days must be non-negative, got {settlement_days}")
        self.settlement_days = settlement_days
        self.calendar = calendar if isinstance(calendar, HolidayCalendar) else get_calendar(calendar)
        self.issue_date = to_date(issue_date) if issue_date is not None else None
        self._engine = pricing_engine
        self._settings = settings if settings is not None else default_settings
        self._lock = threading.RLock()
        self._results: LoanResults | None = None
        self._results_key: tuple[int, date] | None = None

    def _check_issue_date(self) -> None:
        if self.issue_date is not None and self.issue_date >= self.ledger[0].date:
            raise InvalidSettlementDateError(
                f"issue date ({self.issue_date}) not earlier than first payment date "
                f"({self.ledger[0].date})",
                context={
                    "issue_date": self.issue_date.isoformat(),
                    "first_payment_date": self.ledger[0].date.isoformat(),
                },
            )

    # ------------------------------------------------------------------
    # Inspectors
    # ------------------------------------------------------------------

    @property
    def settings(self) -> EvaluationSettings:
        return self._settings

    @property
    def pricing_engine(self) -> PricingEngine | None:
        return self._engine

    @property
    def maturity_date(self) -> date:
        return self._maturity_date

    @property
    def start_date(self) -> date | None:
        """Earliest accrual start of the loan's flows."""
        return cashflow_analytics.start_date(self.ledger)

    @property
    def notionals(self) -> tuple[Amount, ...]:
        return self.notional_schedule.notionals

    @property
    def cashflows(self) -> tuple[CashflowRecord, ...]:
        return self.ledger.records

    @property
    def redemptions(self) -> tuple[CashflowRecord, ...]:
        """Principal records, in payment order."""
        return self._redemptions

    def redemption(self) -> CashflowRecord:
        """The only principal record.

        Raises:
            MultipleRedemptionsAmbiguousError: If there is more than one
        """
        if len(self._redemptions) != 1:
            raise MultipleRedemptionsAmbiguousError(
                "multiple redemption cash flows given",
                context={"redemptions": len(self._redemptions)},
            )
        return self._redemptions[0]

    def notional(self, d: date | None = None) -> Amount:
        """Outstanding notional at ``d`` (default: the settlement date)."""
        if d is None:
            d = self.settlement_date()
        return self.notional_schedule.notional_at(d)

    def settlement_date(self, d: date | None = None) -> date:
        """Settlement date for a trade on ``d`` (default: the evaluation date).

        The date is moved forward by ``settlement_days`` business days and is
        never earlier than the issue date.
        """
        if d is None:
            d = self._settings.evaluation_date
        settlement = self.calendar.advance(d, self.settlement_days)
        if self.issue_date is not None:
            return max(settlement, self.issue_date)
        return settlement

    def is_tradable(self, d: date | None = None) -> bool:
        """Whether notional is still outstanding at ``d`` (default: settlement)."""
        return self.notional(d) != 0.0

    def is_expired(self) -> bool:
        """Whether every flow has been paid as of the evaluation date.

        Flows paying on the evaluation date itself count as not yet paid.
        """
        return cashflow_analytics.is_expired(self.ledger, True, self._settings.evaluation_date)

    # ------------------------------------------------------------------
    # Cached valuation
    # ------------------------------------------------------------------

    def set_pricing_engine(self, engine: PricingEngine | None) -> None:
        with self._lock:
            self._engine = engine
            self._results = None

    def invalidate(self) -> None:
        """Drop cached results; they are recomputed on next access."""
        with self._lock:
            self._results = None

    def _calculate(self) -> LoanResults:
        with self._lock:
            # An unset evaluation date follows the clock without bumping the version
            version = self._settings.version
            key = (version, self._settings.evaluation_date)
            if self._results is not None and self._results_key == key:
                return self._results

            if self.is_expired():
                results = _EXPIRED_RESULTS
            else:
                if self._engine is None:
                    raise NoPricingEngineResultError("null pricing engine")
                arguments = LoanArguments(self.settlement_date(), self.ledger, self.calendar)
                results = self._engine.calculate(
                    arguments, self._settings.include_reference_date_events
                )
            logger.debug(
                "Loan results recomputed",
                extra={"settings_version": version, "settlement_value": results.settlement_value},
            )
            self._results = results
            self._results_key = key
            return results

    def npv(self) -> Amount:
        """NPV at the engine's valuation date.

        Raises:
            NoPricingEngineResultError: If no engine is set or it gave no NPV
        """
        value = self._calculate().value
        if value is None:
            raise NoPricingEngineResultError("NPV not provided")
        return value

    def valuation_date(self) -> date | None:
        return self._calculate().valuation_date

    def settlement_value(self) -> Amount:
        """Value of the outstanding flows at the settlement date, in currency units.

        Raises:
            NoPricingEngineResultError: If no engine is set or it gave no
                settlement value
        """
        value = self._calculate().settlement_value
        if value is None:
            raise NoPricingEngineResultError("settlement value not provided")
        return value

    def settlement_value_from_price(self, clean_price: float) -> Amount:
        """Amount paid at settlement for a trade at ``clean_price``."""
        settlement = self.settlement_date()
        dirty = clean_price + self.accrued_amount(settlement)
        return dirty / 100.0 * self.notional(settlement)

    # ------------------------------------------------------------------
    # Prices and yields
    # ------------------------------------------------------------------

    def dirty_price(self) -> float:
        """Settlement value per 100 of outstanding notional."""
        current_notional = self.notional(self.settlement_date())
        if current_notional == 0.0:
            return 0.0
        return self.settlement_value() * 100.0 / current_notional

    def clean_price(self) -> float:
        return self.dirty_price() - self.accrued_amount(self.settlement_date())

    def accrued_amount(self, d: date | None = None) -> float:
        """Accrued interest per 100 of notional at ``d`` (default: settlement)."""
        if d is None:
            d = self.settlement_date()
        if self.notional(d) == 0.0:
            return 0.0
        return loan_functions.accrued_amount(self, d)

    def yield_rate(
        self,
        day_count: DayCountConvention,
        compounding: Compounding,
        frequency: Frequency,
        accuracy: float = DEFAULT_ACCURACY,
        max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
    ) -> Rate:
        """Yield implied by the engine's clean price."""
        settlement = self.settlement_date()
        if self.notional(settlement) == 0.0:
            return 0.0
        return loan_functions.yield_rate(
            self,
            self.clean_price(),
            day_count,
            compounding,
            frequency,
            settlement,
            accuracy,
            max_evaluations,
        )

    def yield_from_price(
        self,
        clean_price: float,
        day_count: DayCountConvention,
        compounding: Compounding,
        frequency: Frequency,
        settlement_date: date | None = None,
        accuracy: float = DEFAULT_ACCURACY,
        max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
    ) -> Rate:
        """Yield at which the loan trades at ``clean_price``."""
        settlement = settlement_date if settlement_date is not None else self.settlement_date()
        if self.notional(settlement) == 0.0:
            return 0.0
        return loan_functions.yield_rate(
            self,
            clean_price,
            day_count,
            compounding,
            frequency,
            settlement,
            accuracy,
            max_evaluations,
        )

    def clean_price_at_yield(
        self,
        yield_rate: Rate,
        day_count: DayCountConvention,
        compounding: Compounding,
        frequency: Frequency,
        settlement_date: date | None = None,
    ) -> float:
        return loan_functions.clean_price_at_yield(
            self, yield_rate, day_count, compounding, frequency, settlement_date
        )

    def dirty_price_at_yield(
        self,
        yield_rate: Rate,
        day_count: DayCountConvention,
        compounding: Compounding,
        frequency: Frequency,
        settlement_date: date | None = None,
    ) -> float:
        return loan_functions.dirty_price_at_yield(
            self, yield_rate, day_count, compounding, frequency, settlement_date
        )

    def __repr__(self) -> str:
        return (
            f"Loan(settlement_days={self.settlement_days}, notional={self.notionals[0]}, "
            f"maturity_date={self._maturity_date}, cashflows={len(self.ledger)})"
        )
