"""Price, yield and risk analytics.

- :mod:`jloan.analytics.cashflows`: analytics of a ledger, in currency units
- :mod:`jloan.analytics.loan_functions`: analytics of a loan, per 100 of notional
- :mod:`jloan.analytics.vectorized`: JAX price/yield profiles and autodiff sensitivities
"""

from jloan.analytics import cashflows, loan_functions, vectorized

__all__ = ["cashflows", "loan_functions", "vectorized"]
