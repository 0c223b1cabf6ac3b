from __future__ import annotations

from dataclasses import replace
import math

import pytest

from volatility_oracle.domain.entities.volatility import FeeGrowthGlobals, PoolData, PoolMetadata
from volatility_oracle.domain.exceptions import InvariantViolationError
from volatility_oracle.domain.services.fixed_point import Q96, Q128, UINT128_MAX, UINT256_MOD, full_mul_div, isqrt
from volatility_oracle.domain.services.primitives import ExactFixedPointPrimitives
from volatility_oracle.domain.services.tick_math import sqrt_price_at_tick
from volatility_oracle.domain.services.volatility import (
    amount0_to_amount1,
    estimate_24h,
    estimate_24h_breakdown,
    revenue_with_gamma,
    tick_tvl,
)


LIQUIDITY = 10**21
T0 = 1_700_000_000


def _metadata(**overrides) -> PoolMetadata:
    base = PoolMetadata(max_seconds_ago=3600, gamma0=997_000, gamma1=997_000, tick_spacing=60)
    return replace(base, **overrides)


def _data(**overrides) -> PoolData:
    base = PoolData(
        sqrt_price_x96=Q96,
        current_tick=0,
        arithmetic_mean_tick=0,
        seconds_per_liquidity_x128=3600 * Q128 // LIQUIDITY,
        oracle_lookback=3600,
        tick_liquidity=LIQUIDITY,
    )
    return replace(base, **overrides)


def _snapshots(fees0: int = 5 * 10**18, fees1: int = 3 * 10**18, elapsed: int = 3600):
    a = FeeGrowthGlobals(fee_growth_global0_x128=0, fee_growth_global1_x128=0, timestamp=T0)
    b = FeeGrowthGlobals(
        fee_growth_global0_x128=fees0 * Q128 // LIQUIDITY,
        fee_growth_global1_x128=fees1 * Q128 // LIQUIDITY,
        timestamp=T0 + elapsed,
    )
    return a, b


class CountingPrimitives(ExactFixedPointPrimitives):
    def __init__(self):
        self.isqrt_calls = 0
        self.mul_div_calls = 0

    def isqrt(self, x: int) -> int:
        self.isqrt_calls += 1
        return super().isqrt(x)

    def full_mul_div(self, x: int, y: int, denominator: int) -> int:
        self.mul_div_calls += 1
        return super().full_mul_div(x, y, denominator)


class TestRevenueWithGamma:
    def test_wrapped_fee_growth_counter_yields_small_delta(self):
        assert revenue_with_gamma(UINT256_MOD - 5, 3, 1, 1, 1_000_000) == 8

    def test_plain_delta(self):
        assert revenue_with_gamma(10, 30, 1, 1, 1_000_000) == 20

    def test_gamma_scales_revenue(self):
        assert revenue_with_gamma(0, 1_000_000, 1, 1, 500_000) == 500_000

    def test_saturates_at_uint128(self):
        assert revenue_with_gamma(0, 2**200, 1, 3600, 1_000_000) == UINT128_MAX
        assert revenue_with_gamma(0, UINT128_MAX + 1, 1, 1, 1_000_000) == UINT128_MAX

    def test_zero_seconds_per_liquidity_is_fatal(self):
        with pytest.raises(InvariantViolationError):
            revenue_with_gamma(0, 10, 0, 3600, 1_000_000)


class TestAmount0ToAmount1:
    def test_tick_zero_is_identity(self):
        assert amount0_to_amount1(12345, 0) == 12345

    def test_conversion_follows_price(self):
        amount = 10**18
        assert amount0_to_amount1(amount, -60) < amount < amount0_to_amount1(amount, 60)

    def test_matches_squared_sqrt_price(self):
        sqrt_price = sqrt_price_at_tick(6932)
        expected = full_mul_div(10**18, full_mul_div(sqrt_price, sqrt_price, Q96), Q96)
        assert amount0_to_amount1(10**18, 6932) == expected


class TestTickTvl:
    def test_zero_liquidity(self):
        assert tick_tvl(60, 0, Q96, 0) == 0
        assert tick_tvl(60, -30, sqrt_price_at_tick(-30), 0) == 0

    def test_price_at_lower_boundary_is_all_token0(self):
        upper = sqrt_price_at_tick(60)
        assert tick_tvl(60, 0, Q96, LIQUIDITY) == (LIQUIDITY * (upper - Q96) // upper) << 64

    def test_price_at_upper_boundary_is_all_token1(self):
        upper = sqrt_price_at_tick(60)
        assert tick_tvl(60, 59, upper, LIQUIDITY) == (LIQUIDITY * (upper - Q96) // Q96) << 64

    def test_negative_tick_uses_band_below_zero(self):
        value = tick_tvl(60, -1, sqrt_price_at_tick(-1), LIQUIDITY)
        assert value > 0
        assert value < tick_tvl(60, -1, sqrt_price_at_tick(-1), LIQUIDITY * 2)

    def test_price_outside_band_is_fatal(self):
        with pytest.raises(InvariantViolationError):
            tick_tvl(60, 0, Q96 - 1, LIQUIDITY)
        with pytest.raises(InvariantViolationError):
            tick_tvl(60, 0, sqrt_price_at_tick(61), LIQUIDITY)


class TestEstimate24h:
    def test_golden_value_for_one_hour_window(self):
        a, b = _snapshots()
        iv = estimate_24h(_metadata(), _data(), a, b)

        volume_ref = (5e18 + 3e18) * 0.997
        tvl_ref = LIQUIDITY * (1 - 1.0001**-30)
        reference = 2e18 * math.sqrt(86400 / 3600) * math.sqrt(volume_ref / tvl_ref)

        assert iv == pytest.approx(reference, rel=1e-6)
        assert 1.55e19 < iv < 1.65e19

    def test_zero_liquidity_returns_zero(self):
        a, b = _snapshots()
        assert estimate_24h(_metadata(), _data(tick_liquidity=0), a, b) == 0

    def test_zero_liquidity_wins_over_bad_timestamps(self):
        a, _ = _snapshots()
        assert estimate_24h(_metadata(), _data(tick_liquidity=0), a, a) == 0

    def test_equal_timestamps_are_fatal(self):
        a, b = _snapshots()
        with pytest.raises(InvariantViolationError):
            estimate_24h(_metadata(), _data(), a, replace(b, timestamp=a.timestamp))

    def test_reversed_snapshots_are_fatal(self):
        a, b = _snapshots()
        with pytest.raises(InvariantViolationError):
            estimate_24h(_metadata(), _data(), b, replace(a, fee_growth_global0_x128=b.fee_growth_global0_x128))

    def test_is_deterministic(self):
        a, b = _snapshots()
        assert estimate_24h(_metadata(), _data(), a, b) == estimate_24h(_metadata(), _data(), a, b)

    def test_monotonic_in_fee_growth(self):
        a, b = _snapshots()
        _, bigger = _snapshots(fees0=20 * 10**18)
        low = estimate_24h(_metadata(), _data(), a, b)
        high = estimate_24h(_metadata(), _data(), a, bigger)
        assert high > low

    def test_longer_window_lowers_estimate_for_same_fees(self):
        a, short = _snapshots(elapsed=3600)
        _, long = _snapshots(elapsed=7200)
        assert estimate_24h(_metadata(), _data(), a, long) < estimate_24h(_metadata(), _data(), a, short)

    def test_breakdown_cross_weights_gammas(self):
        a, b = _snapshots(fees1=0)
        breakdown = estimate_24h_breakdown(_metadata(gamma0=1_000_000, gamma1=500_000), _data(), a, b)

        spl = _data().seconds_per_liquidity_x128
        assert breakdown.revenue0_gamma1 == full_mul_div(
            b.fee_growth_global0_x128, 3600 * 500_000, spl * 1_000_000
        )
        assert breakdown.revenue1_gamma0 == 0
        assert breakdown.volume_gamma0_gamma1 == breakdown.revenue0_gamma1
        assert breakdown.time_adjustment_x32 == isqrt((86400 << 64) // 3600)
        assert breakdown.sqrt_tick_tvl_x32 == isqrt(breakdown.tick_tvl_x64)

    def test_zero_liquidity_breakdown_has_no_time_adjustment(self):
        a, b = _snapshots()
        breakdown = estimate_24h_breakdown(_metadata(), _data(tick_liquidity=0), a, b)
        assert breakdown.implied_volatility == 0
        assert breakdown.time_adjustment_x32 is None

    def test_uses_injected_primitives(self):
        a, b = _snapshots()
        primitives = CountingPrimitives()

        iv = estimate_24h(_metadata(), _data(), a, b, primitives=primitives)

        assert iv == estimate_24h(_metadata(), _data(), a, b)
        assert primitives.isqrt_calls == 3
        assert primitives.mul_div_calls > 0
