from __future__ import annotations

from dataclasses import dataclass

from volatility_oracle.domain.entities.volatility import (
    FeeGrowthGlobals,
    LensEntry,
    PoolData,
    PoolMetadata,
)


@dataclass(frozen=True)
class EstimateVolatilityInput:
    metadata: PoolMetadata
    data: PoolData
    snapshot_early: FeeGrowthGlobals
    snapshot_late: FeeGrowthGlobals


@dataclass(frozen=True)
class EstimateVolatilityOutput:
    implied_volatility: int
    revenue0_gamma1: int
    revenue1_gamma0: int
    volume_gamma0_gamma1: int
    tick_tvl_x64: int
    time_adjustment_x32: int | None
    elapsed_seconds: int


@dataclass(frozen=True)
class TickTvlInput:
    tick_spacing: int
    current_tick: int
    sqrt_price_x96: int
    liquidity: int


@dataclass(frozen=True)
class Amount0ToAmount1Input:
    amount0: int
    tick: int


@dataclass(frozen=True)
class RefreshVolatilityInput:
    pool_addresses: list[str]


@dataclass(frozen=True)
class RefreshVolatilityResult:
    pool_address: str
    implied_volatility: int | None
    reference_timestamp: int | None
    timestamp: int | None
    recorded_snapshot: bool
    error: str | None = None


@dataclass(frozen=True)
class RefreshVolatilityOutput:
    results: list[RefreshVolatilityResult]

    @property
    def failed(self) -> list[RefreshVolatilityResult]:
        return [row for row in self.results if row.error is not None]


@dataclass(frozen=True)
class VolatilityLensOutput:
    pool_address: str
    timestamp: int
    entries: list[LensEntry]
