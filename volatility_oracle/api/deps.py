from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from volatility_oracle.application.use_cases.cache_pool_metadata import CachePoolMetadataUseCase
from volatility_oracle.application.use_cases.compute_tick_tvl import ComputeTickTvlUseCase
from volatility_oracle.application.use_cases.convert_amount0_to_amount1 import (
    ConvertAmount0ToAmount1UseCase,
)
from volatility_oracle.application.use_cases.estimate_volatility import EstimateVolatilityUseCase
from volatility_oracle.application.use_cases.get_volatility import GetVolatilityUseCase
from volatility_oracle.application.use_cases.get_volatility_lens import GetVolatilityLensUseCase
from volatility_oracle.application.use_cases.refresh_volatility import RefreshVolatilityUseCase
from volatility_oracle.infrastructure.clients.pool_rpc_client import (
    PoolRpcClient,
    PoolRpcClientSettings,
)
from volatility_oracle.infrastructure.db.engine import ensure_schema, get_engine
from volatility_oracle.infrastructure.db.repositories.volatility_repository import (
    SqlVolatilityRepository,
)
from volatility_oracle.shared.config import get_settings


@lru_cache(maxsize=4)
def _ensure_schema_once(dsn: str) -> None:
    ensure_schema(get_engine(dsn))


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    if settings.db_auto_create_schema:
        _ensure_schema_once(settings.postgres_dsn)
    return get_engine(settings.postgres_dsn)


@lru_cache(maxsize=1)
def _get_pool_rpc_client() -> PoolRpcClient:
    settings = get_settings()
    if not settings.rpc_url:
        raise HTTPException(status_code=500, detail="RPC_URL is required.")
    return PoolRpcClient(
        PoolRpcClientSettings(
            rpc_url=settings.rpc_url,
            timeout_seconds=settings.rpc_timeout_seconds,
            max_retries=settings.rpc_max_retries,
            min_interval_ms=settings.rpc_min_interval_ms,
        )
    )


def get_default_pool_addresses() -> list[str]:
    return [str(address) for address in get_settings().volatility_pairs.values()]


def get_estimate_volatility_use_case() -> EstimateVolatilityUseCase:
    return EstimateVolatilityUseCase()


def get_compute_tick_tvl_use_case() -> ComputeTickTvlUseCase:
    return ComputeTickTvlUseCase()


def get_convert_amount0_to_amount1_use_case() -> ConvertAmount0ToAmount1UseCase:
    return ConvertAmount0ToAmount1UseCase()


def get_volatility_use_case() -> GetVolatilityUseCase:
    return GetVolatilityUseCase(volatility_store_port=SqlVolatilityRepository(_get_db_engine()))


def get_refresh_volatility_use_case() -> RefreshVolatilityUseCase:
    settings = get_settings()
    return RefreshVolatilityUseCase(
        pool_state_port=_get_pool_rpc_client(),
        volatility_store_port=SqlVolatilityRepository(_get_db_engine()),
        history_size=settings.volatility_history_size,
        record_interval_seconds=settings.volatility_record_interval_seconds,
    )


def get_cache_pool_metadata_use_case() -> CachePoolMetadataUseCase:
    return CachePoolMetadataUseCase(
        pool_state_port=_get_pool_rpc_client(),
        volatility_store_port=SqlVolatilityRepository(_get_db_engine()),
    )


def get_volatility_lens_use_case() -> GetVolatilityLensUseCase:
    return GetVolatilityLensUseCase(
        pool_state_port=_get_pool_rpc_client(),
        volatility_store_port=SqlVolatilityRepository(_get_db_engine()),
    )
