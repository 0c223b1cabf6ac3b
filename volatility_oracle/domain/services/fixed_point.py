from __future__ import annotations

import math
from collections.abc import Callable
from decimal import Decimal

from volatility_oracle.domain.exceptions import InvariantViolationError


Q96 = 2**96
Q128 = 2**128
UINT128_MAX = 2**128 - 1
UINT160_MOD = 2**160
UINT256_MOD = 2**256
UINT256_MAX = UINT256_MOD - 1
UINT32_MOD = 2**32


def full_mul_div(x: int, y: int, denominator: int) -> int:
    """floor(x * y / denominator) without intermediate overflow."""
    if denominator == 0:
        raise InvariantViolationError("mulDiv denominator must be non-zero.")
    return (x * y) // denominator


def isqrt(x: int) -> int:
    if x < 0:
        raise InvariantViolationError("isqrt input must be non-negative.")
    return math.isqrt(x)


def wrapping_sub(late: int, early: int, *, modulus: int = UINT256_MOD) -> int:
    """Difference of two monotonic counters that may have wrapped around `modulus`."""
    return (late - early) % modulus


def mul_div_saturating(
    x: int,
    y: int,
    denominator: int,
    *,
    maximum: int = UINT128_MAX,
    mul_div: Callable[[int, int, int], int] = full_mul_div,
) -> int:
    result = mul_div(x, y, denominator)
    return maximum if result > maximum else result


def parse_uint256(value: int | str | Decimal | None) -> int:
    if value is None:
        raise ValueError("Missing uint256 value.")
    if isinstance(value, bool):
        raise ValueError("Unsupported uint256 value type.")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise ValueError("Empty uint256 string.")
        parsed = int(raw, 16) if raw.lower().startswith("0x") else int(raw)
    elif isinstance(value, Decimal):
        if value != value.to_integral_value():
            raise ValueError("Decimal uint256 value must be integral.")
        parsed = int(value)
    else:
        raise ValueError("Unsupported uint256 value type.")

    if parsed < 0:
        raise ValueError("uint256 value must be non-negative.")
    if parsed > UINT256_MAX:
        raise ValueError("uint256 value out of range.")
    return parsed
