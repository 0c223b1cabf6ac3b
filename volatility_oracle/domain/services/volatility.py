from __future__ import annotations

from volatility_oracle.domain.entities.volatility import (
    FeeGrowthGlobals,
    PoolData,
    PoolMetadata,
    VolatilityBreakdown,
)
from volatility_oracle.domain.exceptions import InvariantViolationError
from volatility_oracle.domain.services.fixed_point import (
    Q96,
    UINT128_MAX,
    mul_div_saturating,
    wrapping_sub,
)
from volatility_oracle.domain.services.primitives import EXACT_PRIMITIVES, FixedPointPrimitives


SECONDS_PER_DAY = 86400
GAMMA_SCALE = 1_000_000
# One unit of volatility is 1e18; the leading 2 comes from the estimator itself.
IV_SCALE = 2 * 10**18


def tick_tvl(
    tick_spacing: int,
    current_tick: int,
    sqrt_price_x96: int,
    liquidity: int,
    *,
    primitives: FixedPointPrimitives = EXACT_PRIMITIVES,
) -> int:
    """Token1-denominated value of `liquidity` spread over the current tick-spacing band, in Q64."""
    tick_floor = primitives.floor_to_spacing(current_tick, tick_spacing)
    value = _value_of_liquidity(
        sqrt_price_x96=sqrt_price_x96,
        sqrt_price_lower_x96=primitives.sqrt_price_at_tick(tick_floor),
        sqrt_price_upper_x96=primitives.sqrt_price_at_tick(tick_floor + tick_spacing),
        liquidity=liquidity,
        primitives=primitives,
    )
    return value << 64


def _value_of_liquidity(
    *,
    sqrt_price_x96: int,
    sqrt_price_lower_x96: int,
    sqrt_price_upper_x96: int,
    liquidity: int,
    primitives: FixedPointPrimitives,
) -> int:
    if not sqrt_price_lower_x96 <= sqrt_price_x96 <= sqrt_price_upper_x96:
        raise InvariantViolationError(
            "sqrt price outside its tick band: "
            f"lower={sqrt_price_lower_x96} price={sqrt_price_x96} upper={sqrt_price_upper_x96}."
        )

    numerator = primitives.full_mul_div(sqrt_price_x96, sqrt_price_upper_x96 - sqrt_price_x96, Q96)
    value0 = primitives.full_mul_div(liquidity, numerator, sqrt_price_upper_x96)
    value1 = primitives.full_mul_div(liquidity, sqrt_price_x96 - sqrt_price_lower_x96, Q96)
    return value0 + value1


def revenue_with_gamma(
    fee_growth_early_x128: int,
    fee_growth_late_x128: int,
    seconds_per_liquidity_x128: int,
    seconds_ago: int,
    gamma: int,
    *,
    primitives: FixedPointPrimitives = EXACT_PRIMITIVES,
) -> int:
    """Trading volume implied by a fee growth delta, scaled by `gamma` (ppm), saturating at uint128."""
    fee_growth_delta = wrapping_sub(fee_growth_late_x128, fee_growth_early_x128)
    return mul_div_saturating(
        fee_growth_delta,
        seconds_ago * gamma,
        seconds_per_liquidity_x128 * GAMMA_SCALE,
        maximum=UINT128_MAX,
        mul_div=primitives.full_mul_div,
    )


def amount0_to_amount1(
    amount0: int,
    tick: int,
    *,
    primitives: FixedPointPrimitives = EXACT_PRIMITIVES,
) -> int:
    sqrt_price_x96 = primitives.sqrt_price_at_tick(tick)
    price_x96 = primitives.full_mul_div(sqrt_price_x96, sqrt_price_x96, Q96)
    return primitives.full_mul_div(amount0, price_x96, Q96)


def estimate_24h_breakdown(
    metadata: PoolMetadata,
    data: PoolData,
    a: FeeGrowthGlobals,
    b: FeeGrowthGlobals,
    *,
    primitives: FixedPointPrimitives = EXACT_PRIMITIVES,
) -> VolatilityBreakdown:
    # Token0 revenue is scaled by gamma1 and token1 revenue by gamma0.
    revenue0_gamma1 = revenue_with_gamma(
        a.fee_growth_global0_x128,
        b.fee_growth_global0_x128,
        data.seconds_per_liquidity_x128,
        data.oracle_lookback,
        metadata.gamma1,
        primitives=primitives,
    )
    revenue1_gamma0 = revenue_with_gamma(
        a.fee_growth_global1_x128,
        b.fee_growth_global1_x128,
        data.seconds_per_liquidity_x128,
        data.oracle_lookback,
        metadata.gamma0,
        primitives=primitives,
    )
    # Mean price stands in for the price at each individual swap.
    volume_gamma0_gamma1 = revenue1_gamma0 + amount0_to_amount1(
        revenue0_gamma1,
        data.arithmetic_mean_tick,
        primitives=primitives,
    )

    tick_tvl_x64 = tick_tvl(
        metadata.tick_spacing,
        data.current_tick,
        data.sqrt_price_x96,
        data.tick_liquidity,
        primitives=primitives,
    )
    sqrt_tick_tvl_x32 = primitives.isqrt(tick_tvl_x64)

    if sqrt_tick_tvl_x32 == 0:
        return VolatilityBreakdown(
            revenue0_gamma1=revenue0_gamma1,
            revenue1_gamma0=revenue1_gamma0,
            volume_gamma0_gamma1=volume_gamma0_gamma1,
            tick_tvl_x64=tick_tvl_x64,
            sqrt_tick_tvl_x32=0,
            time_adjustment_x32=None,
            implied_volatility=0,
        )

    elapsed = b.timestamp - a.timestamp
    if elapsed <= 0:
        raise InvariantViolationError(
            f"snapshots must be strictly increasing in time: a={a.timestamp} b={b.timestamp}."
        )
    time_adjustment_x32 = primitives.isqrt((SECONDS_PER_DAY << 64) // elapsed)

    implied_volatility = (
        IV_SCALE * time_adjustment_x32 * primitives.isqrt(volume_gamma0_gamma1)
    ) // sqrt_tick_tvl_x32

    return VolatilityBreakdown(
        revenue0_gamma1=revenue0_gamma1,
        revenue1_gamma0=revenue1_gamma0,
        volume_gamma0_gamma1=volume_gamma0_gamma1,
        tick_tvl_x64=tick_tvl_x64,
        sqrt_tick_tvl_x32=sqrt_tick_tvl_x32,
        time_adjustment_x32=time_adjustment_x32,
        implied_volatility=implied_volatility,
    )


def estimate_24h(
    metadata: PoolMetadata,
    data: PoolData,
    a: FeeGrowthGlobals,
    b: FeeGrowthGlobals,
    *,
    primitives: FixedPointPrimitives = EXACT_PRIMITIVES,
) -> int:
    """Implied 24h volatility (1e18 = 100%) between fee growth snapshots `a` (earlier) and `b` (later)."""
    return estimate_24h_breakdown(metadata, data, a, b, primitives=primitives).implied_volatility
