"""Shared type definitions for UBA models.

Amounts, balances and fee percentages are plain Python ints in memory and
decimal strings on the wire, so 256-bit values survive JSON untouched.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field, PlainSerializer

# Maximum uint256 value
UINT256_MAX = 2**256 - 1

# Signed 256-bit range
INT256_MAX = 2**255 - 1
INT256_MIN = -(2**255)


def _parse_integer(value: Any, kind: str) -> int:
    # bool is an int subclass; reject it along with floats
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"{kind} must be string or int, got {type(value).__name__}")

    if isinstance(value, int):
        return value

    try:
        return int(value.strip(), 10)
    except ValueError as err:
        raise ValueError(f"{kind} must be a decimal integer string: '{value}'") from err


def validate_uint256(value: Any) -> int:
    """Validate that a value is a valid uint256.

    Args:
        value: Value to validate (decimal string or int)

    Returns:
        The value as an int

    Raises:
        ValueError: If value is not a non-negative integer within uint256 range
    """
    int_value = _parse_integer(value, "Uint256")
    if int_value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if int_value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")
    return int_value


def validate_int256(value: Any) -> int:
    """Validate that a value is a valid signed int256.

    Raises:
        ValueError: If value is not an integer within int256 range
    """
    int_value = _parse_integer(value, "Int256")
    if not INT256_MIN <= int_value <= INT256_MAX:
        raise ValueError(f"Int256 out of range: {value}")
    return int_value


_to_decimal_string = PlainSerializer(lambda value: str(value), return_type=str)

# 256-bit unsigned integer, decimal string on the wire
Uint256 = Annotated[
    int,
    BeforeValidator(validate_uint256),
    _to_decimal_string,
    Field(description="256-bit unsigned integer as decimal string"),
]

# 256-bit signed integer, decimal string on the wire
Int256 = Annotated[
    int,
    BeforeValidator(validate_int256),
    _to_decimal_string,
    Field(description="256-bit signed integer as decimal string"),
]

# EVM-style chain id
ChainId = Annotated[int, Field(ge=0)]

# Block number or timestamp
BlockNumber = Annotated[int, Field(ge=0)]

# Transaction hash (32 bytes)
TxHash = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{64}$")]


def normalize_symbol(symbol: str) -> str:
    """Normalize a token symbol for config and cache lookups."""
    return symbol.strip().upper()
