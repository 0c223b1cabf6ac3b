from __future__ import annotations

from volatility_oracle.application.dto.volatility import VolatilityLensOutput
from volatility_oracle.application.ports.pool_state_port import PoolStatePort
from volatility_oracle.application.ports.volatility_store_port import VolatilityStorePort
from volatility_oracle.application.use_cases.volatility_common import (
    load_pool_context,
    normalize_pool_address,
)
from volatility_oracle.domain.services.fee_growth_history import lens
from volatility_oracle.domain.services.primitives import EXACT_PRIMITIVES, FixedPointPrimitives


class GetVolatilityLensUseCase:
    """Estimates against every stored snapshot, without writing anything."""

    def __init__(
        self,
        *,
        pool_state_port: PoolStatePort,
        volatility_store_port: VolatilityStorePort,
        primitives: FixedPointPrimitives = EXACT_PRIMITIVES,
    ):
        self._pool_state_port = pool_state_port
        self._volatility_store_port = volatility_store_port
        self._primitives = primitives

    def execute(self, pool_address: str) -> VolatilityLensOutput:
        normalized = normalize_pool_address(pool_address)
        context = load_pool_context(
            pool_state_port=self._pool_state_port,
            volatility_store_port=self._volatility_store_port,
            pool_address=normalized,
        )
        history = self._volatility_store_port.list_fee_growth_history(pool_address=normalized)
        return VolatilityLensOutput(
            pool_address=normalized,
            timestamp=context.current.timestamp,
            entries=lens(
                context.metadata,
                context.data,
                history,
                context.current,
                primitives=self._primitives,
            ),
        )
