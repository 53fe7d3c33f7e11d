"""Signed 18-decimal fixed-point helpers.

Fee percentages and curve values are integers scaled by 10^18. Every division
truncates toward zero, matching EVM and BigNumber arithmetic, so integrals
and fees come out bit-identical to on-chain and off-chain pricing.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

__all__ = [
    "ONE_18",
    "div_trunc",
    "mul_div",
    "parse_units",
    "format_units",
]

ONE_18 = 10**18

# Working precision for unit conversion (covers uint256 plus 18 decimals)
_DECIMAL_PRECISION = 100


def div_trunc(a: int, b: int) -> int:
    """Integer division with truncation toward zero.

    Python's // operator rounds toward negative infinity. Solidity and
    BigNumber truncate toward zero, which differs for negative quotients.

    Args:
        a: Dividend (can be positive or negative)
        b: Divisor (must be non-zero)

    Returns:
        a / b truncated toward zero

    Raises:
        ZeroDivisionError: If b is zero
    """
    if b == 0:
        raise ZeroDivisionError("Division by zero in div_trunc")

    if (a >= 0) == (b >= 0):
        return a // b
    return -(abs(a) // abs(b))


def mul_div(a: int, b: int, denominator: int = ONE_18) -> int:
    """Compute a * b / denominator, truncating toward zero.

    The default denominator applies an 18-decimal fixed-point factor, e.g.
    ``mul_div(amount, fee_pct)`` is the fee owed on ``amount``.
    """
    return div_trunc(a * b, denominator)


def parse_units(value: str | int | Decimal, decimals: int = 18) -> int:
    """Convert a human-readable decimal into a scaled integer.

    Args:
        value: Decimal value, e.g. "0.25" or "-1.5"
        decimals: Number of decimals in the scaled representation

    Returns:
        value * 10^decimals as an integer

    Raises:
        ValueError: If value is not a decimal or carries more precision than
            ``decimals`` allows
    """
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        try:
            scaled = Decimal(str(value)).scaleb(decimals)
        except InvalidOperation as err:
            raise ValueError(f"Not a decimal value: {value!r}") from err
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{value} has more than {decimals} decimals")
        return int(scaled)


def format_units(value: int, decimals: int = 18) -> str:
    """Render a scaled integer as a plain decimal string."""
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return format(Decimal(value).scaleb(-decimals).normalize(), "f")
