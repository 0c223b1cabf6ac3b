from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from volatility_oracle.api.deps import (
    get_cache_pool_metadata_use_case,
    get_compute_tick_tvl_use_case,
    get_convert_amount0_to_amount1_use_case,
    get_default_pool_addresses,
    get_estimate_volatility_use_case,
    get_refresh_volatility_use_case,
    get_volatility_lens_use_case,
    get_volatility_use_case,
)
from volatility_oracle.api.schemas.volatility import (
    Amount0ToAmount1Request,
    Amount0ToAmount1Response,
    EstimateVolatilityRequest,
    EstimateVolatilityResponse,
    FeeGrowthGlobalsPayload,
    PoolMetadataResponse,
    RefreshVolatilityRequest,
    RefreshVolatilityResponse,
    RefreshVolatilityResultResponse,
    TickTvlRequest,
    TickTvlResponse,
    VolatilityLensEntryResponse,
    VolatilityLensResponse,
    VolatilityResponse,
)
from volatility_oracle.application.dto.volatility import (
    Amount0ToAmount1Input,
    EstimateVolatilityInput,
    RefreshVolatilityInput,
    TickTvlInput,
)
from volatility_oracle.application.use_cases.cache_pool_metadata import CachePoolMetadataUseCase
from volatility_oracle.application.use_cases.compute_tick_tvl import ComputeTickTvlUseCase
from volatility_oracle.application.use_cases.convert_amount0_to_amount1 import (
    ConvertAmount0ToAmount1UseCase,
)
from volatility_oracle.application.use_cases.estimate_volatility import EstimateVolatilityUseCase
from volatility_oracle.application.use_cases.get_volatility import GetVolatilityUseCase
from volatility_oracle.application.use_cases.get_volatility_lens import GetVolatilityLensUseCase
from volatility_oracle.application.use_cases.refresh_volatility import RefreshVolatilityUseCase
from volatility_oracle.domain.entities.volatility import FeeGrowthGlobals, PoolData, PoolMetadata
from volatility_oracle.domain.exceptions import (
    InsufficientHistoryError,
    InvariantViolationError,
    VolatilityInputError,
    VolatilityNotFoundError,
)
from volatility_oracle.domain.services.fixed_point import parse_uint256

router = APIRouter()
logger = logging.getLogger(__name__)


def _uint(value: str, field: str) -> int:
    try:
        return parse_uint256(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"{field}: {exc}") from exc


def _int_to_str_or_none(value: int | None) -> str | None:
    return str(value) if value is not None else None


def _snapshot(payload: FeeGrowthGlobalsPayload, field: str) -> FeeGrowthGlobals:
    return FeeGrowthGlobals(
        fee_growth_global0_x128=_uint(payload.fee_growth_global0_x128, f"{field}.fee_growth_global0_x128"),
        fee_growth_global1_x128=_uint(payload.fee_growth_global1_x128, f"{field}.fee_growth_global1_x128"),
        timestamp=payload.timestamp,
    )


@router.post("/v1/volatility/estimate", response_model=EstimateVolatilityResponse)
def estimate_volatility(
    req: EstimateVolatilityRequest,
    use_case: EstimateVolatilityUseCase = Depends(get_estimate_volatility_use_case),
):
    command = EstimateVolatilityInput(
        metadata=PoolMetadata(
            max_seconds_ago=req.metadata.max_seconds_ago,
            gamma0=req.metadata.gamma0,
            gamma1=req.metadata.gamma1,
            tick_spacing=req.metadata.tick_spacing,
        ),
        data=PoolData(
            sqrt_price_x96=_uint(req.data.sqrt_price_x96, "data.sqrt_price_x96"),
            current_tick=req.data.current_tick,
            arithmetic_mean_tick=req.data.arithmetic_mean_tick,
            seconds_per_liquidity_x128=_uint(
                req.data.seconds_per_liquidity_x128,
                "data.seconds_per_liquidity_x128",
            ),
            oracle_lookback=req.data.oracle_lookback,
            tick_liquidity=_uint(req.data.tick_liquidity, "data.tick_liquidity"),
        ),
        snapshot_early=_snapshot(req.snapshot_early, "snapshot_early"),
        snapshot_late=_snapshot(req.snapshot_late, "snapshot_late"),
    )
    try:
        result = use_case.execute(command)
    except VolatilityInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InvariantViolationError as exc:
        logger.warning("volatility_router: invariant_violation endpoint=estimate detail=%s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return EstimateVolatilityResponse(
        implied_volatility=str(result.implied_volatility),
        revenue0_gamma1=str(result.revenue0_gamma1),
        revenue1_gamma0=str(result.revenue1_gamma0),
        volume_gamma0_gamma1=str(result.volume_gamma0_gamma1),
        tick_tvl_x64=str(result.tick_tvl_x64),
        time_adjustment_x32=_int_to_str_or_none(result.time_adjustment_x32),
        elapsed_seconds=result.elapsed_seconds,
    )


@router.post("/v1/volatility/tick-tvl", response_model=TickTvlResponse)
def compute_tick_tvl(
    req: TickTvlRequest,
    use_case: ComputeTickTvlUseCase = Depends(get_compute_tick_tvl_use_case),
):
    try:
        value = use_case.execute(
            TickTvlInput(
                tick_spacing=req.tick_spacing,
                current_tick=req.current_tick,
                sqrt_price_x96=_uint(req.sqrt_price_x96, "sqrt_price_x96"),
                liquidity=_uint(req.liquidity, "liquidity"),
            )
        )
    except VolatilityInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InvariantViolationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return TickTvlResponse(tick_tvl_x64=str(value))


@router.post("/v1/volatility/amount0-to-amount1", response_model=Amount0ToAmount1Response)
def convert_amount0_to_amount1(
    req: Amount0ToAmount1Request,
    use_case: ConvertAmount0ToAmount1UseCase = Depends(get_convert_amount0_to_amount1_use_case),
):
    try:
        value = use_case.execute(
            Amount0ToAmount1Input(amount0=_uint(req.amount0, "amount0"), tick=req.tick)
        )
    except VolatilityInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InvariantViolationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return Amount0ToAmount1Response(amount1=str(value))


@router.post("/v1/volatility/refresh", response_model=RefreshVolatilityResponse)
def refresh_volatility(
    req: RefreshVolatilityRequest,
    default_pool_addresses: list[str] = Depends(get_default_pool_addresses),
    use_case: RefreshVolatilityUseCase = Depends(get_refresh_volatility_use_case),
):
    pool_addresses = req.pool_addresses if req.pool_addresses is not None else default_pool_addresses
    try:
        result = use_case.execute(RefreshVolatilityInput(pool_addresses=pool_addresses))
    except VolatilityInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InvariantViolationError as exc:
        logger.error("volatility_router: invariant_violation endpoint=refresh detail=%s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return RefreshVolatilityResponse(
        results=[
            RefreshVolatilityResultResponse(
                pool_address=row.pool_address,
                implied_volatility=_int_to_str_or_none(row.implied_volatility),
                reference_timestamp=row.reference_timestamp,
                timestamp=row.timestamp,
                recorded_snapshot=row.recorded_snapshot,
                error=row.error,
            )
            for row in result.results
        ]
    )


@router.get("/v1/volatility/{pool_address}", response_model=VolatilityResponse)
def get_volatility(
    pool_address: str,
    use_case: GetVolatilityUseCase = Depends(get_volatility_use_case),
):
    try:
        estimate = use_case.execute(pool_address)
    except VolatilityInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except VolatilityNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return VolatilityResponse(
        pool_address=estimate.pool_address,
        implied_volatility=str(estimate.implied_volatility),
        reference_timestamp=estimate.reference_timestamp,
        timestamp=estimate.timestamp,
        block_number=estimate.block_number,
    )


@router.get("/v1/volatility/{pool_address}/lens", response_model=VolatilityLensResponse)
def get_volatility_lens(
    pool_address: str,
    use_case: GetVolatilityLensUseCase = Depends(get_volatility_lens_use_case),
):
    try:
        result = use_case.execute(pool_address)
    except VolatilityInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (InsufficientHistoryError, InvariantViolationError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RuntimeError as exc:
        logger.warning("volatility_router: upstream_failed endpoint=lens pool=%s error=%s", pool_address, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return VolatilityLensResponse(
        pool_address=result.pool_address,
        timestamp=result.timestamp,
        entries=[
            VolatilityLensEntryResponse(
                timestamp=row.timestamp,
                implied_volatility=_int_to_str_or_none(row.implied_volatility),
            )
            for row in result.entries
        ],
    )


@router.post("/v1/volatility/{pool_address}/metadata", response_model=PoolMetadataResponse)
def cache_pool_metadata(
    pool_address: str,
    use_case: CachePoolMetadataUseCase = Depends(get_cache_pool_metadata_use_case),
):
    try:
        metadata = use_case.execute(pool_address)
    except VolatilityInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InvariantViolationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RuntimeError as exc:
        logger.warning("volatility_router: upstream_failed endpoint=metadata pool=%s error=%s", pool_address, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return PoolMetadataResponse(
        pool_address=pool_address.strip().lower(),
        max_seconds_ago=metadata.max_seconds_ago,
        gamma0=metadata.gamma0,
        gamma1=metadata.gamma1,
        tick_spacing=metadata.tick_spacing,
    )
