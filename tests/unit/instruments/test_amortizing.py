"""Tests for fixed-rate amortizing loan builders."""

from datetime import date

import pytest
from pydantic import ValidationError

from jloan.core.types import Calendar, Frequency
from jloan.instruments import (
    AmortizingLoanTerms,
    amortizing_fixed_rate_loan,
    annuity_notionals,
    regular_payment_dates,
    sinking_fixed_rate_loan,
    sinking_notionals,
)
from jloan.utilities.calendars import MondayToFridayCalendar

START = date(2024, 1, 15)


def _terms(**overrides) -> AmortizingLoanTerms:
    fields = {
        "accrual_start": START,
        "payment_dates": regular_payment_dates(START, "6M", 4),
        "notionals": [1000.0, 1000.0, 500.0, 500.0],
        "rates": [0.05],
    }
    fields.update(overrides)
    return AmortizingLoanTerms(**fields)


class TestAmortizingLoanTerms:
    """Test validation of loan terms."""

    def test_defaults(self):
        terms = _terms()
        assert terms.settlement_days == 0
        assert terms.calendar == Calendar.NO_CALENDAR
        assert terms.redemption_factors == []

    def test_length_mismatch(self):
        with pytest.raises(ValidationError, match="notionals given"):
            _terms(notionals=[1000.0, 500.0])

    def test_dates_must_increase(self):
        with pytest.raises(ValidationError, match="Payment dates must increase"):
            _terms(payment_dates=[date(2024, 7, 15), date(2024, 7, 15), date(2025, 1, 15), date(2025, 7, 15)])

    def test_first_date_after_accrual_start(self):
        with pytest.raises(ValidationError):
            _terms(accrual_start=date(2024, 8, 1))

    def test_non_positive_notional(self):
        with pytest.raises(ValidationError, match="positive"):
            _terms(notionals=[1000.0, 0.0, 0.0, 0.0])

    def test_rate_floor(self):
        with pytest.raises(ValidationError):
            _terms(rates=[-1.0])

    def test_negative_settlement_days(self):
        with pytest.raises(ValidationError):
            _terms(settlement_days=-2)

    def test_calendar_from_string(self):
        assert _terms(calendar="MONDAY_TO_FRIDAY").calendar == Calendar.MONDAY_TO_FRIDAY

    def test_last_rate_reused(self):
        terms = _terms(rates=[0.05, 0.06])
        assert [terms.rate_for(i) for i in range(4)] == [0.05, 0.06, 0.06, 0.06]

    def test_coupons_chain_accrual_periods(self):
        coupons = _terms().coupons()
        assert len(coupons) == 4
        assert coupons[0].coupon.accrual_start == START
        for previous, current in zip(coupons, coupons[1:]):
            assert current.coupon.accrual_start == previous.coupon.accrual_end
        assert [c.nominal for c in coupons] == [1000.0, 1000.0, 500.0, 500.0]
        assert coupons[0].amount == pytest.approx(1000.0 * 0.05 * 182 / 360)


class TestAmortizingFixedRateLoan:
    """Test loans built from terms."""

    def test_schedule(self, evaluation_settings):
        loan = amortizing_fixed_rate_loan(_terms(), settings=evaluation_settings)
        assert loan.notionals == (1000.0, 500.0, 0.0)
        assert [r.date for r in loan.redemptions] == [date(2025, 1, 15), date(2026, 1, 15)]

    def test_terms_reach_the_loan(self, evaluation_settings):
        terms = _terms(
            settlement_days=1,
            calendar=Calendar.MONDAY_TO_FRIDAY,
            redemption_factors=[100.0, 100.0, 101.0],
            issue_date=date(2024, 1, 10),
        )
        loan = amortizing_fixed_rate_loan(terms, settings=evaluation_settings)
        assert loan.settlement_days == 1
        assert isinstance(loan.calendar, MondayToFridayCalendar)
        assert loan.issue_date == date(2024, 1, 10)
        assert loan.redemptions[-1].amount == pytest.approx(505.0)

    def test_sinking_loan(self, evaluation_settings):
        loan = sinking_fixed_rate_loan(
            0, 1_000_000.0, START, 8, Frequency.QUARTERLY, 0.06, settings=evaluation_settings
        )
        assert len(loan.redemptions) == 8
        assert loan.maturity_date == date(2026, 1, 15)
        assert sum(r.amount for r in loan.redemptions) == pytest.approx(1_000_000.0)

    def test_sinking_loan_level_payments(self, evaluation_settings):
        """Coupon plus principal is the same on every payment date."""
        loan = sinking_fixed_rate_loan(
            0, 1_000_000.0, START, 12, Frequency.MONTHLY, 0.06, settings=evaluation_settings
        )
        notionals = loan.notionals
        totals = [n * 0.005 + (n - m) for n, m in zip(notionals, notionals[1:])]
        assert totals == pytest.approx([totals[0]] * 12)

    @pytest.mark.parametrize("frequency", [Frequency.ONCE, Frequency.NO_FREQUENCY])
    def test_sinking_loan_frequency(self, frequency):
        with pytest.raises(ValueError, match="whole months"):
            sinking_fixed_rate_loan(0, 1000.0, START, 4, frequency, 0.05)


class TestNotionalHelpers:
    """Test notional and date generators."""

    def test_sinking_notionals(self):
        assert sinking_notionals(1000.0, 4) == [1000.0, 750.0, 500.0, 250.0]

    def test_sinking_notionals_periods(self):
        with pytest.raises(ValueError):
            sinking_notionals(1000.0, 0)

    def test_annuity_notionals_decrease(self):
        notionals = annuity_notionals(1000.0, 10, 0.01)
        assert notionals[0] == 1000.0
        assert all(later < earlier for earlier, later in zip(notionals, notionals[1:]))

    def test_annuity_last_payment_clears_balance(self):
        notionals = annuity_notionals(1000.0, 10, 0.01)
        payment = 1000.0 * 0.01 / (1 - 1.01**-10)
        assert notionals[-1] * 1.01 == pytest.approx(payment)

    def test_annuity_without_interest(self):
        assert annuity_notionals(1000.0, 4, 0.0) == sinking_notionals(1000.0, 4)

    def test_regular_dates_clamp_month_end(self):
        assert regular_payment_dates(date(2024, 1, 31), "1M", 3) == [
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
        ]

    def test_regular_dates_count(self):
        dates = regular_payment_dates(START, "1Y", 5)
        assert len(dates) == 5
        assert dates[-1] == date(2029, 1, 15)
