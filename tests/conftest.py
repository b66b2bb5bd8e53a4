"""Pytest configuration and shared fixtures for jloan tests.

This module provides common fixtures and configuration for all tests.
"""

from datetime import date
from typing import Any

import pytest

from jloan.core.cashflows import CashflowRecord, fixed_rate_coupon
from jloan.core.types import DayCountConvention
from jloan.instruments.amortizing import regular_payment_dates
from jloan.instruments.loan import Loan
from jloan.settings import EvaluationSettings, settings

START = date(2024, 1, 15)
YEARLY_NOTIONALS = (1_000_000.0, 750_000.0, 500_000.0, 250_000.0)


def make_coupons(
    notionals: list[float],
    rate: float = 0.05,
    start: date = START,
    cycle: str = "3M",
    day_count: DayCountConvention = DayCountConvention.A360,
) -> list[CashflowRecord]:
    """Fixed-rate coupons, one per notional, paid every ``cycle`` from ``start``."""
    coupons = []
    accrual_start = start
    for payment_date, nominal in zip(regular_payment_dates(start, cycle, len(notionals)), notionals):
        coupons.append(fixed_rate_coupon(payment_date, nominal, rate, accrual_start, payment_date, day_count))
        accrual_start = payment_date
    return coupons


@pytest.fixture
def coupon_factory():
    """Provide the coupon builder to tests needing custom coupon lists."""
    return make_coupons


@pytest.fixture
def quarterly_notionals() -> list[float]:
    """Four years of quarterly notionals, paid down by 250,000 each year."""
    return [n for n in YEARLY_NOTIONALS for _ in range(4)]


@pytest.fixture
def quarterly_coupons(quarterly_notionals) -> list[CashflowRecord]:
    """5% quarterly coupons (Actual/360) on the yearly amortizing notional."""
    return make_coupons(quarterly_notionals)


@pytest.fixture
def evaluation_settings() -> EvaluationSettings:
    """Private settings with a mid-quarter evaluation date.

    Returns:
        Settings evaluating on 15 February 2024
    """
    return EvaluationSettings(evaluation_date=date(2024, 2, 15))


@pytest.fixture
def amortizing_loan(quarterly_coupons, evaluation_settings) -> Loan:
    """Loan from 2024-01-15 to 2028-01-15 settling on the evaluation date."""
    return Loan(
        settlement_days=0,
        calendar="NONE",
        coupons=quarterly_coupons,
        settings=evaluation_settings,
    )


@pytest.fixture
def bullet_loan(evaluation_settings) -> Loan:
    """Zero-coupon loan repaying 1,000,000 on 2029-01-15."""
    return Loan.with_single_redemption(
        settlement_days=0,
        calendar="NONE",
        face_amount=1_000_000.0,
        maturity_date=date(2029, 1, 15),
        settings=evaluation_settings,
    )


@pytest.fixture
def tolerance() -> dict[str, float]:
    """Provide numerical tolerance values for float comparisons.

    Returns:
        Dictionary with different tolerance levels
    """
    return {
        "rtol": 1e-6,  # Relative tolerance
        "atol": 1e-8,  # Absolute tolerance
        "solver": 1e-6,  # Round trips through the 1-D solvers
        "jax_rtol": 1e-3,  # float32 JAX kernels
    }


@pytest.fixture(autouse=True)
def reset_global_settings() -> None:
    """Restore the process-wide evaluation settings after each test."""
    yield
    settings.reset()


# Configure pytest markers
def pytest_configure(config: Any) -> None:
    """Configure custom pytest markers.

    Args:
        config: Pytest configuration object
    """
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")
