"""Tests for ledger-level cash flow analytics."""

from datetime import date

import pytest

from jloan.analytics import cashflows
from jloan.core.cashflows import amortizing_payment, fixed_rate_coupon, redemption
from jloan.core.ledger import Ledger
from jloan.core.types import Compounding, DayCountConvention, DurationType, Frequency
from jloan.exceptions import RootNotBracketedError
from jloan.instruments.amortizing import regular_payment_dates
from jloan.termstructures import FlatForward
from jloan.utilities.conventions import year_fraction
from jloan.utilities.interest_rate import InterestRate

START = date(2024, 1, 1)
MID_PERIOD = date(2024, 10, 1)


def _ledger(rate: float = 0.04) -> Ledger:
    """Semiannual loan of 1000 paying 500 down after a year and 500 at maturity."""
    coupons = []
    accrual_start = START
    for payment_date, nominal in zip(regular_payment_dates(START, "6M", 4), [1000.0, 1000.0, 500.0, 500.0]):
        coupons.append(fixed_rate_coupon(payment_date, nominal, rate, accrual_start, payment_date))
        accrual_start = payment_date
    principal = [amortizing_payment(500.0, date(2025, 1, 1)), redemption(500.0, date(2026, 1, 1))]
    return Ledger.from_records(coupons).merged(principal)


def _yield(rate: float, compounding: Compounding = Compounding.COMPOUNDED) -> InterestRate:
    return InterestRate(
        rate=rate,
        day_count=DayCountConvention.A360,
        compounding=compounding,
        frequency=Frequency.SEMIANNUAL,
    )


@pytest.fixture
def ledger() -> Ledger:
    return _ledger()


class TestDates:
    """Test start, maturity and expiry."""

    def test_start_and_maturity(self, ledger):
        assert cashflows.start_date(ledger) == START
        assert cashflows.maturity_date(ledger) == date(2026, 1, 1)

    def test_empty_ledger(self):
        assert cashflows.start_date(Ledger()) is None
        assert cashflows.maturity_date(Ledger()) is None

    def test_principal_only_ledger_uses_payment_dates(self):
        ledger = Ledger.from_records([redemption(100.0, date(2025, 6, 1))])
        assert cashflows.start_date(ledger) == date(2025, 6, 1)

    def test_expiry_on_last_payment_date(self, ledger):
        assert cashflows.is_expired(ledger, False, date(2026, 1, 1))
        assert not cashflows.is_expired(ledger, True, date(2026, 1, 1))
        assert not cashflows.is_expired(ledger, False, date(2025, 12, 31))


class TestNavigation:
    """Test previous and next cash flow queries."""

    def test_next_flows_aggregate_same_date(self, ledger):
        coupon = ledger[1]
        assert cashflows.next_cashflow_date(ledger, False, MID_PERIOD) == date(2025, 1, 1)
        assert cashflows.next_cashflow_amount(ledger, False, MID_PERIOD) == pytest.approx(
            coupon.amount + 500.0
        )

    def test_previous_flows_aggregate_same_date(self, ledger):
        settlement = date(2025, 3, 1)
        assert cashflows.previous_cashflow_date(ledger, False, settlement) == date(2025, 1, 1)
        assert cashflows.previous_cashflow_amount(ledger, False, settlement) == pytest.approx(
            ledger[1].amount + 500.0
        )

    def test_settlement_on_payment_date(self, ledger):
        settlement = date(2025, 1, 1)
        assert cashflows.next_cashflow_date(ledger, False, settlement) == date(2025, 7, 1)
        assert cashflows.next_cashflow_date(ledger, True, settlement) == date(2025, 1, 1)
        assert cashflows.previous_cashflow_date(ledger, True, settlement) == date(2024, 7, 1)

    def test_nothing_before_first_flow(self, ledger):
        assert cashflows.previous_cashflow_index(ledger, False, START) is None
        assert cashflows.previous_cashflow_date(ledger, False, START) is None
        assert cashflows.previous_cashflow_amount(ledger, False, START) == 0.0
        assert cashflows.previous_coupon_rate(ledger, False, START) == 0.0

    def test_nothing_after_last_flow(self, ledger):
        end = date(2026, 1, 1)
        assert cashflows.next_cashflow_index(ledger, False, end) is None
        assert cashflows.next_cashflow_date(ledger, False, end) is None
        assert cashflows.next_cashflow_amount(ledger, False, end) == 0.0

    def test_coupon_rates(self, ledger):
        assert cashflows.next_coupon_rate(ledger, False, MID_PERIOD) == pytest.approx(0.04)
        assert cashflows.previous_coupon_rate(ledger, False, MID_PERIOD) == pytest.approx(0.04)

    def test_coupon_rates_sum_on_same_date(self):
        payment = date(2024, 7, 1)
        ledger = Ledger.from_records(
            [
                fixed_rate_coupon(payment, 100.0, 0.03, START, payment),
                fixed_rate_coupon(payment, 100.0, 0.02, START, payment),
            ]
        )
        assert cashflows.next_coupon_rate(ledger, False, MID_PERIOD.replace(month=3)) == pytest.approx(0.05)


class TestAccrualQueries:
    """Test the accrual queries on the coupon paying next."""

    def test_mid_period(self, ledger):
        assert cashflows.accrual_start_date(ledger, False, MID_PERIOD) == date(2024, 7, 1)
        assert cashflows.accrual_end_date(ledger, False, MID_PERIOD) == date(2025, 1, 1)
        assert cashflows.reference_period_start(ledger, False, MID_PERIOD) == date(2024, 7, 1)
        assert cashflows.reference_period_end(ledger, False, MID_PERIOD) == date(2025, 1, 1)
        assert cashflows.accrual_days(ledger, False, MID_PERIOD) == 184
        assert cashflows.accrual_period(ledger, False, MID_PERIOD) == pytest.approx(184 / 360)
        assert cashflows.accrued_days(ledger, False, MID_PERIOD) == 92
        assert cashflows.accrued_period(ledger, False, MID_PERIOD) == pytest.approx(92 / 360)

    def test_accrued_amount(self, ledger):
        expected = 1000.0 * 0.04 * 92 / 360
        assert cashflows.accrued_amount(ledger, False, MID_PERIOD) == pytest.approx(expected)

    def test_accrued_amount_sums_same_date_coupons(self):
        payment = date(2024, 7, 1)
        ledger = Ledger.from_records(
            [
                fixed_rate_coupon(payment, 100.0, 0.03, START, payment),
                fixed_rate_coupon(payment, 200.0, 0.03, START, payment),
            ]
        )
        settlement = date(2024, 4, 1)
        expected = 300.0 * 0.03 * 91 / 360
        assert cashflows.accrued_amount(ledger, False, settlement) == pytest.approx(expected)

    def test_nothing_accrued_on_payment_date(self, ledger):
        assert cashflows.accrued_amount(ledger, False, date(2024, 7, 1)) == 0.0

    def test_accrued_on_payment_date_when_flows_included(self, ledger):
        settlement = date(2024, 7, 1)
        expected = 1000.0 * 0.04 * 182 / 360
        assert cashflows.accrued_amount(ledger, True, settlement) == pytest.approx(expected)

    def test_after_last_coupon(self, ledger):
        end = date(2026, 1, 1)
        assert cashflows.accrual_start_date(ledger, False, end) is None
        assert cashflows.accrual_end_date(ledger, False, end) is None
        assert cashflows.accrual_period(ledger, False, end) == 0.0
        assert cashflows.accrual_days(ledger, False, end) == 0
        assert cashflows.accrued_amount(ledger, False, end) == 0.0


class TestCurveDiscounting:
    """Test NPV, BPS and ATM rate on a curve."""

    @pytest.fixture
    def curve(self) -> FlatForward:
        return FlatForward(MID_PERIOD, 0.03)

    def test_npv_discounts_future_flows(self, ledger, curve):
        expected = sum(
            r.amount * curve.discount(r.date) for r in ledger if r.date > MID_PERIOD
        )
        assert cashflows.npv(ledger, curve, False, MID_PERIOD) == pytest.approx(expected)

    def test_npv_date_compounds_forward(self, ledger, curve):
        npv_date = date(2024, 12, 1)
        at_settlement = cashflows.npv(ledger, curve, False, MID_PERIOD)
        forward = cashflows.npv(ledger, curve, False, MID_PERIOD, npv_date)
        assert forward == pytest.approx(at_settlement / curve.discount(npv_date))

    def test_npv_of_expired_ledger_is_zero(self, ledger, curve):
        assert cashflows.npv(ledger, curve, False, date(2026, 6, 1)) == 0.0

    def test_bps_matches_one_basis_point_coupon_move(self, ledger, curve):
        bumped = _ledger(0.0401)
        difference = cashflows.npv(bumped, curve, False, MID_PERIOD) - cashflows.npv(
            ledger, curve, False, MID_PERIOD
        )
        assert cashflows.bps(ledger, curve, False, MID_PERIOD) == pytest.approx(difference)

    def test_atm_rate_is_coupon_rate(self, ledger, curve):
        assert cashflows.atm_rate(ledger, curve, False, MID_PERIOD) == pytest.approx(0.04)

    def test_atm_rate_reprices_target(self, ledger, curve):
        target = cashflows.npv(ledger, curve, False, MID_PERIOD)
        rate = cashflows.atm_rate(ledger, curve, False, MID_PERIOD, target_npv=target)
        assert rate == pytest.approx(0.04)

    def test_atm_rate_without_coupons(self, curve):
        ledger = Ledger.from_records([redemption(500.0, date(2025, 1, 1))])
        with pytest.raises(ZeroDivisionError, match="null bps"):
            cashflows.atm_rate(ledger, curve, False, MID_PERIOD, target_npv=1000.0)


class TestYieldDiscounting:
    """Test flat-yield valuation, yield solving and sensitivities."""

    def test_discount_times_from_settlement(self, ledger):
        timed = cashflows.discount_times(ledger, DayCountConvention.A360, False, MID_PERIOD)
        times = [t for _, t in timed]
        assert len(timed) == 5
        assert times[0] == pytest.approx(year_fraction(MID_PERIOD, date(2025, 1, 1), DayCountConvention.A360))
        assert times[1] == times[0]
        assert times[-1] == pytest.approx(year_fraction(MID_PERIOD, date(2026, 1, 1), DayCountConvention.A360))
        assert times == sorted(times)

    def test_discount_times_not_summed_by_period(self):
        settlement = date(2024, 1, 30)
        dates = regular_payment_dates(date(2024, 1, 31), "1M", 3)
        ledger = Ledger.from_records([redemption(100.0, d) for d in dates])
        timed = cashflows.discount_times(ledger, DayCountConvention.B30360, False, settlement)
        for (_, t), d in zip(timed, dates):
            assert t == year_fraction(settlement, d, DayCountConvention.B30360)

    def test_zero_yield_sums_flows(self, ledger):
        expected = sum(r.amount for r in ledger if r.date > MID_PERIOD)
        assert cashflows.npv_at_yield(ledger, _yield(0.0), False, MID_PERIOD) == pytest.approx(expected)

    def test_yield_round_trip(self, ledger):
        target = cashflows.npv_at_yield(ledger, _yield(0.06), False, MID_PERIOD)
        solved = cashflows.yield_rate(
            ledger,
            target,
            DayCountConvention.A360,
            Compounding.COMPOUNDED,
            Frequency.SEMIANNUAL,
            False,
            MID_PERIOD,
        )
        assert solved == pytest.approx(0.06, abs=1e-7)

    def test_negative_yield_round_trip(self, ledger):
        target = cashflows.npv_at_yield(ledger, _yield(-0.01), False, MID_PERIOD)
        solved = cashflows.yield_rate(
            ledger,
            target,
            DayCountConvention.A360,
            Compounding.COMPOUNDED,
            Frequency.SEMIANNUAL,
            False,
            MID_PERIOD,
        )
        assert solved == pytest.approx(-0.01, abs=1e-7)

    def test_unreachable_target(self, ledger):
        with pytest.raises(RootNotBracketedError):
            cashflows.yield_rate(
                ledger,
                -1.0,
                DayCountConvention.A360,
                Compounding.COMPOUNDED,
                Frequency.SEMIANNUAL,
                False,
                MID_PERIOD,
                max_evaluations=10,
            )

    def test_bps_at_yield(self, ledger):
        rate = _yield(0.05)
        difference = cashflows.npv_at_yield(_ledger(0.0401), rate, False, MID_PERIOD) - cashflows.npv_at_yield(
            ledger, rate, False, MID_PERIOD
        )
        assert cashflows.bps_at_yield(ledger, rate, False, MID_PERIOD) == pytest.approx(difference)

    @pytest.mark.parametrize(
        "compounding", [Compounding.COMPOUNDED, Compounding.CONTINUOUS, Compounding.SIMPLE]
    )
    def test_modified_duration_matches_finite_difference(self, ledger, compounding):
        h = 1e-5
        y = 0.05
        up = cashflows.npv_at_yield(ledger, _yield(y + h, compounding), False, MID_PERIOD)
        down = cashflows.npv_at_yield(ledger, _yield(y - h, compounding), False, MID_PERIOD)
        price = cashflows.npv_at_yield(ledger, _yield(y, compounding), False, MID_PERIOD)
        expected = -(up - down) / (2 * h) / price
        result = cashflows.duration(
            ledger, _yield(y, compounding), DurationType.MODIFIED, False, MID_PERIOD
        )
        assert result == pytest.approx(expected, rel=1e-6)

    def test_macaulay_duration(self, ledger):
        rate = _yield(0.05)
        modified = cashflows.duration(ledger, rate, DurationType.MODIFIED, False, MID_PERIOD)
        macaulay = cashflows.duration(ledger, rate, DurationType.MACAULAY, False, MID_PERIOD)
        assert macaulay == pytest.approx((1 + 0.05 / 2) * modified)

    def test_macaulay_requires_compounded_yield(self, ledger):
        with pytest.raises(ValueError, match="compounded"):
            cashflows.duration(
                ledger, _yield(0.05, Compounding.CONTINUOUS), DurationType.MACAULAY, False, MID_PERIOD
            )

    def test_simple_duration_equals_modified_for_continuous(self, ledger):
        rate = _yield(0.05, Compounding.CONTINUOUS)
        simple = cashflows.duration(ledger, rate, DurationType.SIMPLE, False, MID_PERIOD)
        modified = cashflows.duration(ledger, rate, DurationType.MODIFIED, False, MID_PERIOD)
        assert simple == pytest.approx(modified)

    def test_duration_of_expired_ledger(self, ledger):
        after = date(2026, 6, 1)
        assert cashflows.duration(ledger, _yield(0.05), DurationType.MODIFIED, False, after) == 0.0
        assert cashflows.convexity(ledger, _yield(0.05), False, after) == 0.0

    @pytest.mark.parametrize("compounding", [Compounding.COMPOUNDED, Compounding.CONTINUOUS])
    def test_convexity_matches_finite_difference(self, ledger, compounding):
        h = 1e-4
        y = 0.05
        up = cashflows.npv_at_yield(ledger, _yield(y + h, compounding), False, MID_PERIOD)
        mid = cashflows.npv_at_yield(ledger, _yield(y, compounding), False, MID_PERIOD)
        down = cashflows.npv_at_yield(ledger, _yield(y - h, compounding), False, MID_PERIOD)
        expected = (up - 2 * mid + down) / (h * h) / mid
        result = cashflows.convexity(ledger, _yield(y, compounding), False, MID_PERIOD)
        assert result == pytest.approx(expected, rel=1e-4)

    def test_basis_point_value(self, ledger):
        rate = _yield(0.05)
        move = cashflows.npv_at_yield(ledger, _yield(0.0501), False, MID_PERIOD) - cashflows.npv_at_yield(
            ledger, rate, False, MID_PERIOD
        )
        assert cashflows.basis_point_value(ledger, rate, False, MID_PERIOD) == pytest.approx(move, rel=1e-5)

    def test_yield_value_basis_point(self, ledger):
        rate = _yield(0.05)
        price = cashflows.npv_at_yield(ledger, rate, False, MID_PERIOD)
        modified = cashflows.duration(ledger, rate, DurationType.MODIFIED, False, MID_PERIOD)
        result = cashflows.yield_value_basis_point(ledger, rate, False, MID_PERIOD)
        assert result == pytest.approx(0.01 / (-price * modified))
        assert result < 0.0


class TestZSpread:
    """Test valuation over a shifted curve and the spread solver."""

    @pytest.fixture
    def curve(self) -> FlatForward:
        return FlatForward(MID_PERIOD, 0.03)

    def test_zero_spread_is_curve_npv(self, ledger, curve):
        shifted = cashflows.npv_with_zspread(
            ledger, curve, 0.0, DayCountConvention.A365, Compounding.CONTINUOUS, Frequency.ANNUAL, False, MID_PERIOD
        )
        assert shifted == pytest.approx(cashflows.npv(ledger, curve, False, MID_PERIOD))

    def test_continuous_spread_is_higher_flat_rate(self, ledger, curve):
        shifted = cashflows.npv_with_zspread(
            ledger, curve, 0.01, DayCountConvention.A365, Compounding.CONTINUOUS, Frequency.ANNUAL, False, MID_PERIOD
        )
        expected = cashflows.npv(ledger, FlatForward(MID_PERIOD, 0.04), False, MID_PERIOD)
        assert shifted == pytest.approx(expected)

    def test_z_spread_round_trip(self, ledger, curve):
        target = cashflows.npv_with_zspread(
            ledger, curve, 0.015, DayCountConvention.A365, Compounding.CONTINUOUS, Frequency.ANNUAL, False, MID_PERIOD
        )
        solved = cashflows.z_spread(
            ledger, curve, target, DayCountConvention.A365, Compounding.CONTINUOUS, Frequency.ANNUAL, False, MID_PERIOD
        )
        assert solved == pytest.approx(0.015, abs=1e-7)
