from __future__ import annotations

from decimal import Decimal

import pytest

from volatility_oracle.domain.exceptions import InvariantViolationError
from volatility_oracle.domain.services.fixed_point import (
    UINT128_MAX,
    UINT160_MOD,
    UINT256_MAX,
    UINT256_MOD,
    full_mul_div,
    isqrt,
    mul_div_saturating,
    parse_uint256,
    wrapping_sub,
)


class TestFixedPoint:
    def test_full_mul_div_keeps_wide_intermediate(self):
        assert full_mul_div(UINT256_MAX, UINT256_MAX, UINT256_MAX) == UINT256_MAX
        assert full_mul_div(2**200, 2**100, 2**250) == 2**50

    def test_full_mul_div_floors(self):
        assert full_mul_div(7, 3, 2) == 10

    def test_full_mul_div_rejects_zero_denominator(self):
        with pytest.raises(InvariantViolationError):
            full_mul_div(1, 1, 0)

    def test_isqrt_floors(self):
        assert isqrt(0) == 0
        assert isqrt(15) == 3
        assert isqrt(16) == 4
        assert isqrt(2**256 - 1) == 2**128 - 1

    def test_isqrt_rejects_negative(self):
        with pytest.raises(InvariantViolationError):
            isqrt(-1)

    def test_wrapping_sub_without_wrap(self):
        assert wrapping_sub(30, 10) == 20

    def test_wrapping_sub_handles_uint256_wrap(self):
        assert wrapping_sub(3, UINT256_MOD - 5) == 8
        assert wrapping_sub(5, 10) == UINT256_MOD - 5

    def test_wrapping_sub_with_custom_modulus(self):
        assert wrapping_sub(5, UINT160_MOD - 10, modulus=UINT160_MOD) == 15

    def test_mul_div_saturating_clamps_to_maximum(self):
        assert mul_div_saturating(2**200, 3600, 1) == UINT128_MAX
        assert mul_div_saturating(UINT128_MAX, 1, 1) == UINT128_MAX
        assert mul_div_saturating(10, 10, 4) == 25

    def test_mul_div_saturating_uses_injected_mul_div(self):
        calls = []

        def recording_mul_div(x: int, y: int, denominator: int) -> int:
            calls.append((x, y, denominator))
            return full_mul_div(x, y, denominator)

        assert mul_div_saturating(6, 7, 2, mul_div=recording_mul_div) == 21
        assert calls == [(6, 7, 2)]

    def test_parse_uint256_accepts_int_string_hex_and_decimal(self):
        assert parse_uint256(123) == 123
        assert parse_uint256("456") == 456
        assert parse_uint256("0xff") == 255
        assert parse_uint256(Decimal("789")) == 789

    def test_parse_uint256_rejects_invalid_values(self):
        with pytest.raises(ValueError):
            parse_uint256(None)
        with pytest.raises(ValueError):
            parse_uint256("")
        with pytest.raises(ValueError):
            parse_uint256(-1)
        with pytest.raises(ValueError):
            parse_uint256(Decimal("1.5"))
        with pytest.raises(ValueError):
            parse_uint256(UINT256_MOD)
        with pytest.raises(ValueError):
            parse_uint256("abc")
