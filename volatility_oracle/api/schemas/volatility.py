from __future__ import annotations

from pydantic import BaseModel, Field


class PoolMetadataPayload(BaseModel):
    max_seconds_ago: int = Field(0, ge=0, description="Oldest usable oracle history in seconds.")
    gamma0: int = Field(..., ge=0, le=1_000_000, description="Token0 fee retained by LPs, ppm.")
    gamma1: int = Field(..., ge=0, le=1_000_000, description="Token1 fee retained by LPs, ppm.")
    tick_spacing: int = Field(..., gt=0, description="Pool tick spacing.")


class PoolDataPayload(BaseModel):
    sqrt_price_x96: str = Field(..., description="Current sqrt price, Q64.96, decimal string.")
    current_tick: int
    arithmetic_mean_tick: int
    seconds_per_liquidity_x128: str = Field(..., description="Seconds-per-liquidity delta over the lookback, Q128.")
    oracle_lookback: int = Field(..., ge=0, description="Lookback window in seconds.")
    tick_liquidity: str = Field(..., description="In-range liquidity at the current tick.")


class FeeGrowthGlobalsPayload(BaseModel):
    fee_growth_global0_x128: str
    fee_growth_global1_x128: str
    timestamp: int = Field(..., ge=0)


class EstimateVolatilityRequest(BaseModel):
    metadata: PoolMetadataPayload
    data: PoolDataPayload
    snapshot_early: FeeGrowthGlobalsPayload
    snapshot_late: FeeGrowthGlobalsPayload


class EstimateVolatilityResponse(BaseModel):
    implied_volatility: str = Field(..., description="24h implied volatility scaled by 1e18.")
    revenue0_gamma1: str
    revenue1_gamma0: str
    volume_gamma0_gamma1: str
    tick_tvl_x64: str
    time_adjustment_x32: str | None
    elapsed_seconds: int


class TickTvlRequest(BaseModel):
    tick_spacing: int = Field(..., gt=0)
    current_tick: int
    sqrt_price_x96: str
    liquidity: str


class TickTvlResponse(BaseModel):
    tick_tvl_x64: str


class Amount0ToAmount1Request(BaseModel):
    amount0: str
    tick: int


class Amount0ToAmount1Response(BaseModel):
    amount1: str


class VolatilityResponse(BaseModel):
    pool_address: str
    implied_volatility: str
    reference_timestamp: int
    timestamp: int
    block_number: int | None = None


class PoolMetadataResponse(BaseModel):
    pool_address: str
    max_seconds_ago: int
    gamma0: int
    gamma1: int
    tick_spacing: int


class RefreshVolatilityRequest(BaseModel):
    pool_addresses: list[str] | None = Field(
        None,
        description="Pools to refresh; defaults to the configured VOLATILITY_PAIRS.",
    )


class RefreshVolatilityResultResponse(BaseModel):
    pool_address: str
    implied_volatility: str | None
    reference_timestamp: int | None
    timestamp: int | None
    recorded_snapshot: bool
    error: str | None = None


class RefreshVolatilityResponse(BaseModel):
    results: list[RefreshVolatilityResultResponse]


class VolatilityLensEntryResponse(BaseModel):
    timestamp: int
    implied_volatility: str | None


class VolatilityLensResponse(BaseModel):
    pool_address: str
    timestamp: int
    entries: list[VolatilityLensEntryResponse]
