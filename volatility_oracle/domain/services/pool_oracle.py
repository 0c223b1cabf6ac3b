from __future__ import annotations

from volatility_oracle.domain.entities.volatility import (
    FeeGrowthGlobals,
    PoolCumulatives,
    PoolData,
    PoolMetadata,
    PoolState,
)
from volatility_oracle.domain.exceptions import InsufficientHistoryError, InvariantViolationError
from volatility_oracle.domain.services.fixed_point import UINT32_MOD, UINT160_MOD, wrapping_sub


ONE_HOUR = 3600
ONE_DAY = 86400
FEE_PROTOCOL_NIBBLE = 16


def consult(*, cumulatives: PoolCumulatives, seconds_ago: int) -> tuple[int, int]:
    """Mean tick and seconds-per-liquidity delta from observations taken `seconds_ago` and 0 seconds back."""
    if seconds_ago <= 0:
        raise InvariantViolationError("seconds_ago must be positive.")
    if len(cumulatives.tick_cumulatives) != 2 or len(cumulatives.seconds_per_liquidity_cumulatives_x128) != 2:
        raise InvariantViolationError("consult expects exactly two observations.")

    tick_cumulative_delta = cumulatives.tick_cumulatives[1] - cumulatives.tick_cumulatives[0]
    # Floor division rounds toward negative infinity.
    arithmetic_mean_tick = tick_cumulative_delta // seconds_ago
    seconds_per_liquidity_x128 = wrapping_sub(
        cumulatives.seconds_per_liquidity_cumulatives_x128[1],
        cumulatives.seconds_per_liquidity_cumulatives_x128[0],
        modulus=UINT160_MOD,
    )
    return arithmetic_mean_tick, seconds_per_liquidity_x128


def oldest_observation_index(*, observation_index: int, observation_cardinality: int) -> int:
    if observation_cardinality <= 0:
        raise InvariantViolationError("observation_cardinality must be positive.")
    return (observation_index + 1) % observation_cardinality


def observation_age(*, observation_timestamp: int, block_timestamp: int) -> int:
    # Observation timestamps are uint32 and wrap.
    return wrapping_sub(block_timestamp, observation_timestamp, modulus=UINT32_MOD)


def pool_metadata_from_state(
    *,
    fee: int,
    fee_protocol: int,
    tick_spacing: int,
    oldest_observation_timestamp: int,
    block_timestamp: int,
) -> PoolMetadata:
    age = observation_age(
        observation_timestamp=oldest_observation_timestamp,
        block_timestamp=block_timestamp,
    )
    gamma0 = fee
    gamma1 = fee
    protocol0 = fee_protocol % FEE_PROTOCOL_NIBBLE
    protocol1 = fee_protocol >> 4
    if protocol0 != 0:
        gamma0 -= fee // protocol0
    if protocol1 != 0:
        gamma1 -= fee // protocol1

    return PoolMetadata(
        max_seconds_ago=(age * 3) // 5,
        gamma0=gamma0,
        gamma1=gamma1,
        tick_spacing=tick_spacing,
    )


def oracle_lookback(metadata: PoolMetadata) -> int:
    if metadata.max_seconds_ago < ONE_HOUR:
        raise InsufficientHistoryError(
            f"Pool oracle holds {metadata.max_seconds_ago}s of usable history, need at least {ONE_HOUR}s."
        )
    return min(metadata.max_seconds_ago, ONE_DAY)


def pool_data_from_state(
    *,
    state: PoolState,
    arithmetic_mean_tick: int,
    seconds_per_liquidity_x128: int,
    oracle_lookback: int,
) -> PoolData:
    return PoolData(
        sqrt_price_x96=state.sqrt_price_x96,
        current_tick=state.tick,
        arithmetic_mean_tick=arithmetic_mean_tick,
        seconds_per_liquidity_x128=seconds_per_liquidity_x128,
        oracle_lookback=oracle_lookback,
        tick_liquidity=state.liquidity,
    )


def fee_growth_globals_from_state(state: PoolState) -> FeeGrowthGlobals:
    return FeeGrowthGlobals(
        fee_growth_global0_x128=state.fee_growth_global0_x128,
        fee_growth_global1_x128=state.fee_growth_global1_x128,
        timestamp=state.block_timestamp,
    )
