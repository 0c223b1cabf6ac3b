from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PoolMetadata:
    max_seconds_ago: int
    gamma0: int
    gamma1: int
    tick_spacing: int


@dataclass(frozen=True)
class PoolData:
    sqrt_price_x96: int
    current_tick: int
    arithmetic_mean_tick: int
    seconds_per_liquidity_x128: int
    oracle_lookback: int
    tick_liquidity: int


@dataclass(frozen=True)
class FeeGrowthGlobals:
    fee_growth_global0_x128: int
    fee_growth_global1_x128: int
    timestamp: int


@dataclass(frozen=True)
class VolatilityBreakdown:
    revenue0_gamma1: int
    revenue1_gamma0: int
    volume_gamma0_gamma1: int
    tick_tvl_x64: int
    sqrt_tick_tvl_x32: int
    time_adjustment_x32: int | None
    implied_volatility: int


@dataclass(frozen=True)
class PoolState:
    pool_address: str
    block_number: int
    block_timestamp: int
    sqrt_price_x96: int
    tick: int
    observation_index: int
    observation_cardinality: int
    fee_protocol: int
    liquidity: int
    fee: int
    tick_spacing: int
    fee_growth_global0_x128: int
    fee_growth_global1_x128: int


@dataclass(frozen=True)
class PoolObservation:
    block_timestamp: int
    tick_cumulative: int
    seconds_per_liquidity_cumulative_x128: int
    initialized: bool


@dataclass(frozen=True)
class PoolCumulatives:
    tick_cumulatives: tuple[int, ...]
    seconds_per_liquidity_cumulatives_x128: tuple[int, ...]


@dataclass(frozen=True)
class VolatilityEstimate:
    pool_address: str
    implied_volatility: int
    reference_timestamp: int
    timestamp: int
    block_number: int | None = None


@dataclass(frozen=True)
class LensEntry:
    timestamp: int
    implied_volatility: int | None
