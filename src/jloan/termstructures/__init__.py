"""Discount curves consumed by the analytics."""

from jloan.termstructures.curves import DiscountCurve, FlatForward, YieldCurve, ZeroSpreadedCurve

__all__ = ["YieldCurve", "FlatForward", "DiscountCurve", "ZeroSpreadedCurve"]
