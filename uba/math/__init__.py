"""Mathematical primitives for UBA fee calculation.

This package provides:
- Truncating 18-decimal fixed-point helpers
- The piecewise linear fee curve and its integration engine
"""

from uba.math.curve import (
    FeeCurve,
    evaluate,
    get_bounds,
    get_deposit_balancing_fee,
    get_interval,
    get_refund_balancing_fee,
    integrate,
    perform_linear_integration,
)
from uba.math.fixed_point import ONE_18, div_trunc, format_units, mul_div, parse_units

__all__ = [
    # Fixed point
    "ONE_18",
    "div_trunc",
    "mul_div",
    "parse_units",
    "format_units",
    # Curves
    "FeeCurve",
    "get_bounds",
    "get_interval",
    "perform_linear_integration",
    "integrate",
    "evaluate",
    "get_deposit_balancing_fee",
    "get_refund_balancing_fee",
]
