"""JAX-accelerated yield analytics.

The outstanding flows of a loan are turned once into two arrays (time from
settlement, amount) and then priced by a pure JAX kernel. The kernel is
jit-compiled, vmapped over yields to produce a whole price/yield profile in
one call, and differentiated with ``jax.grad`` to obtain duration and
convexity independently of the closed forms in
:mod:`jloan.analytics.cashflows`.

Architecture:
    Pre-computation (Python) -> Pure JAX kernel (jit + vmap + grad)

Note:
    JAX computes in float32 unless 64-bit mode is enabled, so results agree
    with the scalar analytics to single precision only.

Example:
    >>> yields = jnp.linspace(0.01, 0.10, 10)
    >>> prices = clean_price_profile(loan, yields, DayCountConvention.A365,
    ...                              Compounding.COMPOUNDED, Frequency.ANNUAL)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from functools import partial
from typing import TYPE_CHECKING

import jax
import jax.numpy as jnp

from jloan.analytics import cashflows, loan_functions
from jloan.core.types import Compounding, DayCountConvention, Frequency, Rate

if TYPE_CHECKING:
    from jloan.instruments.loan import Loan


@dataclass(frozen=True)
class FlowArrays:
    """Outstanding flows of a loan as arrays.

    Attributes:
        times: ``(num_flows,)`` years from settlement to each payment
        amounts: ``(num_flows,)`` payment amounts
        notional: Notional outstanding at settlement
        accrued: Accrued interest per 100 of notional at settlement
    """

    times: jnp.ndarray
    amounts: jnp.ndarray
    notional: float
    accrued: float

    @property
    def num_flows(self) -> int:
        return int(self.times.shape[0])


def flow_arrays(
    loan: Loan, day_count: DayCountConvention, settlement_date: date | None = None
) -> FlowArrays:
    """Extract the flows paid after settlement, timed with ``day_count``.

    Raises:
        NotTradableError: If the loan is fully repaid at settlement
    """
    settlement = settlement_date if settlement_date is not None else loan.settlement_date()
    accrued = loan_functions.accrued_amount(loan, settlement)
    timed = cashflows.discount_times(loan.ledger, day_count, False, settlement)
    return FlowArrays(
        times=jnp.array([t for _, t in timed], dtype=jnp.float32),
        amounts=jnp.array([r.amount for r, _ in timed], dtype=jnp.float32),
        notional=loan.notional(settlement),
        accrued=accrued,
    )


def _discount_factors(
    yield_rate: jnp.ndarray,
    times: jnp.ndarray,
    compounding: Compounding,
    frequency: Frequency,
) -> jnp.ndarray:
    if compounding == Compounding.SIMPLE:
        return 1.0 / (1.0 + yield_rate * times)
    if compounding == Compounding.CONTINUOUS:
        return jnp.exp(-yield_rate * times)
    f = float(frequency)
    compounded = jnp.power(1.0 + yield_rate / f, -f * times)
    if compounding == Compounding.SIMPLE_THEN_COMPOUNDED:
        return jnp.where(times <= 1.0 / f, 1.0 / (1.0 + yield_rate * times), compounded)
    return compounded


@partial(jax.jit, static_argnames=("compounding", "frequency"))
def present_value(
    yield_rate: jnp.ndarray,
    times: jnp.ndarray,
    amounts: jnp.ndarray,
    compounding: Compounding,
    frequency: Frequency,
) -> jnp.ndarray:
    """Value of ``amounts`` paid at ``times`` discounted at a flat yield.

    Note:
        This function is JIT-compiled; ``compounding`` and ``frequency`` are
        static, so each combination compiles once.
    """
    return jnp.sum(amounts * _discount_factors(yield_rate, times, compounding, frequency))


def _present_values(
    flows: FlowArrays, yields: jnp.ndarray, compounding: Compounding, frequency: Frequency
) -> jnp.ndarray:
    return jax.vmap(
        lambda y: present_value(y, flows.times, flows.amounts, compounding, frequency)
    )(jnp.asarray(yields, dtype=jnp.float32))


def dirty_price_profile(
    loan: Loan,
    yields: jnp.ndarray,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> jnp.ndarray:
    """Dirty prices per 100 of notional, one per entry of ``yields``."""
    flows = flow_arrays(loan, day_count, settlement_date)
    pv = _present_values(flows, yields, compounding, frequency)
    return pv * 100.0 / flows.notional


def clean_price_profile(
    loan: Loan,
    yields: jnp.ndarray,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> jnp.ndarray:
    """Clean prices per 100 of notional, one per entry of ``yields``."""
    flows = flow_arrays(loan, day_count, settlement_date)
    pv = _present_values(flows, yields, compounding, frequency)
    return pv * 100.0 / flows.notional - flows.accrued


def autodiff_duration(
    loan: Loan,
    yield_rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    """Modified duration ``-P'(y) / P(y)`` computed with ``jax.grad``."""
    flows = flow_arrays(loan, day_count, settlement_date)

    def value(y: jnp.ndarray) -> jnp.ndarray:
        return present_value(y, flows.times, flows.amounts, compounding, frequency)

    y = jnp.float32(yield_rate)
    return float(-jax.grad(value)(y) / value(y))


def autodiff_convexity(
    loan: Loan,
    yield_rate: Rate,
    day_count: DayCountConvention,
    compounding: Compounding,
    frequency: Frequency,
    settlement_date: date | None = None,
) -> float:
    """Convexity ``P''(y) / P(y)`` computed with nested ``jax.grad``."""
    flows = flow_arrays(loan, day_count, settlement_date)

    def value(y: jnp.ndarray) -> jnp.ndarray:
        return present_value(y, flows.times, flows.amounts, compounding, frequency)

    y = jnp.float32(yield_rate)
    return float(jax.grad(jax.grad(value))(y) / value(y))
