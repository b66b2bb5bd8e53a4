#!/usr/bin/env python3
"""
Amortizing Loan Example
=======================

This example builds a fixed-rate loan that pays its principal down in equal
quarterly steps, prices it off a flat curve and computes its yield and risk
figures with jloan.

What You'll Learn:
-----------------
1. How to describe a loan with AmortizingLoanTerms
2. How the notional schedule produces the principal payments
3. How to price a loan with DiscountingLoanEngine
4. How to compute yield, duration and z-spread from a quoted price
5. How to build a price/yield profile with the JAX kernel

Example: 1,000,000 loan at 5% (Actual/360), 2-year term, quarterly coupons,
         principal repaid in 8 installments of 125,000
"""

from datetime import date

import jax.numpy as jnp

from jloan import (
    AmortizingLoanTerms,
    Compounding,
    DayCountConvention,
    DiscountingLoanEngine,
    DurationType,
    EvaluationSettings,
    FlatForward,
    Frequency,
    amortizing_fixed_rate_loan,
    configure_logging,
)
from jloan.analytics import loan_functions, vectorized
from jloan.instruments import regular_payment_dates, sinking_notionals


def build_loan(settings: EvaluationSettings):
    start = date(2024, 1, 15)
    terms = AmortizingLoanTerms(
        settlement_days=0,
        accrual_start=start,
        payment_dates=regular_payment_dates(start, "3M", 8),
        notionals=sinking_notionals(1_000_000.0, 8),
        rates=[0.05],
        day_count=DayCountConvention.A360,
    )
    curve = FlatForward(start, 0.045, compounding=Compounding.COMPOUNDED)
    return amortizing_fixed_rate_loan(terms, DiscountingLoanEngine(curve), settings), curve


def example_1_schedule():
    """
    Example 1: Cash Flow Schedule
    -----------------------------
    Print every coupon and principal payment together with the outstanding
    notional after it.
    """
    print("=" * 80)
    print("Example 1: Cash flow schedule")
    print("=" * 80)

    settings = EvaluationSettings(evaluation_date=date(2024, 1, 15))
    loan, _ = build_loan(settings)

    print(f"\nMaturity date: {loan.maturity_date}")
    print(f"Breakpoints:   {len(loan.notional_schedule)}")
    print("\n" + "-" * 60)
    print(f"{'Date':<12} {'Kind':<10} {'Amount':>16} {'Notional after':>18}")
    print("-" * 60)
    for record in loan.ledger:
        print(
            f"{record.payment_date.isoformat():<12} {record.kind.value:<10} "
            f"{record.amount:>16,.2f} {loan.notional(record.payment_date):>18,.2f}"
        )

    frame = loan.ledger.to_dataframe()
    print("\nTotals by kind:")
    print(frame.groupby("kind")["amount"].sum().to_string())


def example_2_pricing_and_risk():
    """
    Example 2: Pricing and Risk
    ---------------------------
    Price the loan on the curve, then read yield, duration and z-spread off
    a quoted clean price of 100.25.
    """
    print("\n\n" + "=" * 80)
    print("Example 2: Pricing and risk")
    print("=" * 80)

    settings = EvaluationSettings(evaluation_date=date(2024, 4, 1))
    loan, curve = build_loan(settings)
    dc, comp, freq = DayCountConvention.A365, Compounding.COMPOUNDED, Frequency.QUARTERLY

    print(f"\nSettlement date:   {loan.settlement_date()}")
    print(f"Notional:          {loan.notional():,.2f}")
    print(f"NPV:               {loan.npv():,.2f}")
    print(f"Clean price:       {loan.clean_price():.4f}")
    print(f"Accrued:           {loan.accrued_amount():.4f}")
    print(f"Yield (engine):    {loan.yield_rate(dc, comp, freq):.6f}")

    quote = 100.25
    y = loan_functions.yield_rate(loan, quote, dc, comp, freq)
    print(f"\nQuoted clean price {quote}")
    print(f"  Yield:             {y:.6f}")
    print(f"  Modified duration: {loan_functions.duration(loan, y, dc, comp, freq):.4f}")
    macaulay = loan_functions.duration(loan, y, dc, comp, freq, DurationType.MACAULAY)
    print(f"  Macaulay duration: {macaulay:.4f}")
    print(f"  Convexity:         {loan_functions.convexity(loan, y, dc, comp, freq):.4f}")
    print(f"  BPV:               {loan_functions.basis_point_value(loan, y, dc, comp, freq):.6f}")
    spread = loan_functions.z_spread(loan, quote, curve, dc, comp, freq)
    print(f"  Z-spread:          {spread * 1e4:.2f} bp")


def example_3_price_yield_profile():
    """
    Example 3: Price/Yield Profile
    ------------------------------
    Price the loan at ten yields in one vectorized call and compare the
    autodiff duration with the closed form.
    """
    print("\n\n" + "=" * 80)
    print("Example 3: Price/yield profile")
    print("=" * 80)

    settings = EvaluationSettings(evaluation_date=date(2024, 4, 1))
    loan, _ = build_loan(settings)
    dc, comp, freq = DayCountConvention.A365, Compounding.COMPOUNDED, Frequency.ANNUAL

    yields = jnp.linspace(0.01, 0.10, 10)
    prices = vectorized.clean_price_profile(loan, yields, dc, comp, freq)
    print(f"\n{'Yield':>8} {'Clean price':>14}")
    for y, p in zip(yields.tolist(), prices.tolist()):
        print(f"{y:>8.2%} {p:>14.4f}")

    closed_form = loan_functions.duration(loan, 0.05, dc, comp, freq)
    autodiff = vectorized.autodiff_duration(loan, 0.05, dc, comp, freq)
    print(f"\nModified duration at 5%: closed form {closed_form:.4f}, autodiff {autodiff:.4f}")


if __name__ == "__main__":
    configure_logging()
    example_1_schedule()
    example_2_pricing_and_risk()
    example_3_price_yield_profile()
