from __future__ import annotations

import logging

from volatility_oracle.application.ports.pool_state_port import PoolStatePort
from volatility_oracle.application.ports.volatility_store_port import VolatilityStorePort
from volatility_oracle.application.use_cases.volatility_common import (
    derive_pool_metadata,
    normalize_pool_address,
)
from volatility_oracle.domain.entities.volatility import PoolMetadata


logger = logging.getLogger(__name__)


class CachePoolMetadataUseCase:
    def __init__(
        self,
        *,
        pool_state_port: PoolStatePort,
        volatility_store_port: VolatilityStorePort,
    ):
        self._pool_state_port = pool_state_port
        self._volatility_store_port = volatility_store_port

    def execute(self, pool_address: str) -> PoolMetadata:
        normalized = normalize_pool_address(pool_address)
        metadata = derive_pool_metadata(pool_state_port=self._pool_state_port, pool_address=normalized)
        self._volatility_store_port.upsert_pool_metadata(pool_address=normalized, metadata=metadata)
        logger.info(
            "cache_pool_metadata: success pool=%s max_seconds_ago=%s gamma0=%s gamma1=%s tick_spacing=%s",
            normalized,
            metadata.max_seconds_ago,
            metadata.gamma0,
            metadata.gamma1,
            metadata.tick_spacing,
        )
        return metadata
