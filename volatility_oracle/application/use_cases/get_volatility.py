from __future__ import annotations

from volatility_oracle.application.ports.volatility_store_port import VolatilityStorePort
from volatility_oracle.application.use_cases.volatility_common import normalize_pool_address
from volatility_oracle.domain.entities.volatility import VolatilityEstimate
from volatility_oracle.domain.exceptions import VolatilityNotFoundError


class GetVolatilityUseCase:
    def __init__(self, *, volatility_store_port: VolatilityStorePort):
        self._volatility_store_port = volatility_store_port

    def execute(self, pool_address: str) -> VolatilityEstimate:
        normalized = normalize_pool_address(pool_address)
        estimate = self._volatility_store_port.get_latest_estimate(pool_address=normalized)
        if estimate is None:
            raise VolatilityNotFoundError("Volatility estimate not found.")
        return estimate
