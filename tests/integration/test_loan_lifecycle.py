"""Integration tests for amortizing loans from construction to risk.

Test Categories:
- Schedule reconstruction for a stepped quarterly loan
- Zero-coupon bullet loans
- Engine pricing against flat-yield and z-spread analytics
- Evaluation date moves across paydowns
"""

from datetime import date

import pytest

from jloan.analytics import loan_functions
from jloan.core.types import CashflowKind, Compounding, DayCountConvention, DurationType, Frequency
from jloan.engine import DiscountingLoanEngine
from jloan.exceptions import InvalidSettlementDateError, NotTradableError
from jloan.instruments import Loan, sinking_fixed_rate_loan
from jloan.settings import EvaluationSettings
from jloan.termstructures import FlatForward

A365 = DayCountConvention.A365
ANNUAL_CONVENTIONS = (A365, Compounding.COMPOUNDED, Frequency.ANNUAL)


class TestSteppedQuarterlyLoan:
    """Four yearly notional levels paid quarterly."""

    def test_schedule_reconstruction(self, amortizing_loan):
        schedule = amortizing_loan.notional_schedule
        assert len(schedule) == 5
        assert schedule.dates[1:] == (
            date(2025, 1, 15),
            date(2026, 1, 15),
            date(2027, 1, 15),
            date(2028, 1, 15),
        )
        assert schedule.steps() == [
            (date(2025, 1, 15), 250_000.0),
            (date(2026, 1, 15), 250_000.0),
            (date(2027, 1, 15), 250_000.0),
            (date(2028, 1, 15), 250_000.0),
        ]

    def test_principal_kinds_and_placement(self, amortizing_loan):
        kinds = [r.kind for r in amortizing_loan.redemptions]
        assert kinds == [CashflowKind.AMORTIZING_PAYMENT] * 3 + [CashflowKind.REDEMPTION]
        for flow in amortizing_loan.redemptions:
            index = amortizing_loan.cashflows.index(flow)
            previous = amortizing_loan.cashflows[index - 1]
            assert previous.is_coupon
            assert previous.date == flow.date

    def test_mid_quarter_accrual(self, amortizing_loan):
        assert loan_functions.accrued_days(amortizing_loan) == 31
        assert loan_functions.accrued_amount(amortizing_loan) == pytest.approx(0.05 * 31 / 360 * 100)

    def test_ledger_export(self, amortizing_loan):
        df = amortizing_loan.ledger.to_dataframe()
        assert len(df) == 20
        assert (df["kind"] == "COUPON").sum() == 16
        assert df["amount"].sum() == pytest.approx(
            sum(r.amount for r in amortizing_loan.cashflows)
        )

    def test_evaluation_moves_across_paydowns(self, amortizing_loan):
        settings = amortizing_loan.settings
        settings.evaluation_date = date(2025, 1, 15)
        assert amortizing_loan.notional() == 750_000.0
        assert loan_functions.accrued_amount(amortizing_loan) == 0.0
        settings.evaluation_date = date(2027, 2, 15)
        assert amortizing_loan.notional() == 250_000.0
        settings.evaluation_date = date(2028, 1, 15)
        assert not amortizing_loan.is_tradable()
        with pytest.raises(NotTradableError):
            loan_functions.duration(amortizing_loan, 0.05, *ANNUAL_CONVENTIONS)
        assert loan_functions.clean_price_at_yield(amortizing_loan, 0.05, *ANNUAL_CONVENTIONS) == 0.0


class TestZeroCouponBullet:
    """Loan with a single redemption and no coupons."""

    def test_zero_yield_price_is_par(self, bullet_loan):
        assert loan_functions.clean_price_at_yield(bullet_loan, 0.0, *ANNUAL_CONVENTIONS) == pytest.approx(100.0)
        assert loan_functions.accrued_amount(bullet_loan) == 0.0

    def test_discounted_price(self, bullet_loan):
        days = (date(2029, 1, 15) - date(2024, 2, 15)).days
        expected = 100.0 / 1.05 ** (days / 365)
        assert loan_functions.clean_price_at_yield(bullet_loan, 0.05, *ANNUAL_CONVENTIONS) == pytest.approx(expected)

    def test_yield_of_par_price(self, bullet_loan, tolerance):
        assert loan_functions.yield_rate(bullet_loan, 100.0, *ANNUAL_CONVENTIONS) == pytest.approx(
            0.0, abs=tolerance["solver"]
        )

    def test_macaulay_duration_is_maturity(self, bullet_loan):
        days = (date(2029, 1, 15) - date(2024, 2, 15)).days
        duration = loan_functions.duration(bullet_loan, 0.05, *ANNUAL_CONVENTIONS, duration_type=DurationType.MACAULAY)
        assert duration == pytest.approx(days / 365)


class TestIssueDate:
    """Issue date validation and settlement flooring."""

    def test_issue_after_first_coupon(self, quarterly_coupons):
        with pytest.raises(InvalidSettlementDateError, match="issue date"):
            Loan(2, "MTF", quarterly_coupons, issue_date=date(2024, 5, 1))

    def test_trade_before_issue_settles_on_issue(self, quarterly_coupons):
        loan = Loan(
            2,
            "MTF",
            quarterly_coupons,
            issue_date=date(2024, 2, 1),
            settings=EvaluationSettings(date(2024, 1, 20)),
        )
        assert loan.settlement_date() == date(2024, 2, 1)


class TestEnginePricing:
    """Engine prices agree with the flat-yield and z-spread analytics."""

    @pytest.fixture
    def curve(self) -> FlatForward:
        return FlatForward(date(2024, 2, 15), 0.045, *ANNUAL_CONVENTIONS)

    @pytest.fixture
    def priced_loan(self, amortizing_loan, curve) -> Loan:
        amortizing_loan.set_pricing_engine(DiscountingLoanEngine(curve))
        return amortizing_loan

    def test_engine_price_matches_flat_yield(self, priced_loan):
        at_yield = loan_functions.clean_price_at_yield(priced_loan, 0.045, *ANNUAL_CONVENTIONS)
        assert priced_loan.clean_price() == pytest.approx(at_yield, rel=1e-10)

    def test_engine_price_has_zero_spread(self, priced_loan, curve, tolerance):
        spread = loan_functions.z_spread(priced_loan, priced_loan.clean_price(), curve, *ANNUAL_CONVENTIONS)
        assert spread == pytest.approx(0.0, abs=tolerance["solver"])

    def test_risk_chain(self, priced_loan):
        y = priced_loan.yield_rate(*ANNUAL_CONVENTIONS)
        dirty = priced_loan.dirty_price()
        duration = loan_functions.duration(priced_loan, y, *ANNUAL_CONVENTIONS)
        bpv = loan_functions.basis_point_value(priced_loan, y, *ANNUAL_CONVENTIONS)
        assert bpv == pytest.approx(-duration * dirty * 1e-4, rel=1e-3)

    def test_price_pulls_to_par_over_time(self, priced_loan):
        """At a yield equal to the coupon, the price stays at par as the loan amortizes."""
        settings = priced_loan.settings
        prices = []
        for evaluation in (date(2024, 2, 15), date(2025, 4, 15), date(2026, 10, 15)):
            settings.evaluation_date = evaluation
            prices.append(
                loan_functions.clean_price_at_yield(
                    priced_loan, 0.05, DayCountConvention.A360, Compounding.COMPOUNDED, Frequency.QUARTERLY
                )
            )
        assert prices == pytest.approx([100.0] * 3, abs=0.1)


class TestSinkingLoanOnBusinessDays:
    """Level-payment loan settling two business days after trade."""

    def test_priced_on_curve(self):
        settings = EvaluationSettings(date(2024, 3, 1))
        curve = FlatForward(date(2024, 3, 5), 0.05)
        loan = sinking_fixed_rate_loan(
            2,
            1_000_000.0,
            date(2024, 1, 15),
            20,
            Frequency.QUARTERLY,
            0.06,
            calendar="MONDAY_TO_FRIDAY",
            pricing_engine=DiscountingLoanEngine(curve),
            settings=settings,
        )
        assert loan.settlement_date() == date(2024, 3, 5)
        assert loan.clean_price() > 100.0
        assert loan.clean_price() == pytest.approx(loan_functions.clean_price(loan, curve))
