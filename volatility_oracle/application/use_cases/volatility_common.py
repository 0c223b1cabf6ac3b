from __future__ import annotations

import logging
from dataclasses import dataclass

from volatility_oracle.application.ports.pool_state_port import PoolStatePort
from volatility_oracle.application.ports.volatility_store_port import VolatilityStorePort
from volatility_oracle.domain.entities.volatility import (
    FeeGrowthGlobals,
    PoolData,
    PoolMetadata,
    PoolState,
)
from volatility_oracle.domain.exceptions import VolatilityInputError
from volatility_oracle.domain.services.pool_oracle import (
    ONE_HOUR,
    consult,
    fee_growth_globals_from_state,
    oldest_observation_index,
    oracle_lookback,
    pool_data_from_state,
    pool_metadata_from_state,
)


POOL_ADDRESS_LENGTH = 42
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolContext:
    pool_address: str
    metadata: PoolMetadata
    state: PoolState
    data: PoolData
    current: FeeGrowthGlobals


def normalize_pool_address(pool_address: str) -> str:
    normalized = (pool_address or "").strip().lower()
    if not normalized.startswith("0x"):
        raise VolatilityInputError("pool_address must start with 0x.")
    if len(normalized) != POOL_ADDRESS_LENGTH:
        raise VolatilityInputError("pool_address must be a 20-byte hex address.")
    try:
        int(normalized, 16)
    except ValueError as exc:
        raise VolatilityInputError("pool_address must be hexadecimal.") from exc
    return normalized


def derive_pool_metadata(*, pool_state_port: PoolStatePort, pool_address: str) -> PoolMetadata:
    state = pool_state_port.get_pool_state(pool_address=pool_address)
    index = oldest_observation_index(
        observation_index=state.observation_index,
        observation_cardinality=state.observation_cardinality,
    )
    oldest = pool_state_port.get_observation(
        pool_address=pool_address,
        index=index,
        block_number=state.block_number,
    )
    if not oldest.initialized:
        # Ring buffer not yet full; slot 0 is the oldest written observation.
        oldest = pool_state_port.get_observation(
            pool_address=pool_address,
            index=0,
            block_number=state.block_number,
        )

    return pool_metadata_from_state(
        fee=state.fee,
        fee_protocol=state.fee_protocol,
        tick_spacing=state.tick_spacing,
        oldest_observation_timestamp=oldest.block_timestamp,
        block_timestamp=state.block_timestamp,
    )


def load_or_cache_metadata(
    *,
    pool_state_port: PoolStatePort,
    volatility_store_port: VolatilityStorePort,
    pool_address: str,
) -> PoolMetadata:
    metadata = volatility_store_port.get_pool_metadata(pool_address=pool_address)
    if metadata is not None and metadata.max_seconds_ago >= ONE_HOUR:
        return metadata
    if metadata is not None:
        logger.info(
            "volatility: metadata_rederive pool=%s cached_max_seconds_ago=%s",
            pool_address,
            metadata.max_seconds_ago,
        )

    metadata = derive_pool_metadata(pool_state_port=pool_state_port, pool_address=pool_address)
    # Young pools are not cached; the next refresh derives again.
    oracle_lookback(metadata)
    volatility_store_port.upsert_pool_metadata(pool_address=pool_address, metadata=metadata)
    logger.info(
        "volatility: metadata_cached pool=%s max_seconds_ago=%s gamma0=%s gamma1=%s tick_spacing=%s",
        pool_address,
        metadata.max_seconds_ago,
        metadata.gamma0,
        metadata.gamma1,
        metadata.tick_spacing,
    )
    return metadata


def load_pool_context(
    *,
    pool_state_port: PoolStatePort,
    volatility_store_port: VolatilityStorePort,
    pool_address: str,
) -> PoolContext:
    metadata = load_or_cache_metadata(
        pool_state_port=pool_state_port,
        volatility_store_port=volatility_store_port,
        pool_address=pool_address,
    )
    seconds_ago = oracle_lookback(metadata)

    state = pool_state_port.get_pool_state(pool_address=pool_address)
    cumulatives = pool_state_port.observe(
        pool_address=pool_address,
        seconds_agos=[seconds_ago, 0],
        block_number=state.block_number,
    )
    arithmetic_mean_tick, seconds_per_liquidity_x128 = consult(
        cumulatives=cumulatives,
        seconds_ago=seconds_ago,
    )

    return PoolContext(
        pool_address=pool_address,
        metadata=metadata,
        state=state,
        data=pool_data_from_state(
            state=state,
            arithmetic_mean_tick=arithmetic_mean_tick,
            seconds_per_liquidity_x128=seconds_per_liquidity_x128,
            oracle_lookback=seconds_ago,
        ),
        current=fee_growth_globals_from_state(state),
    )
