from __future__ import annotations

from typing import Protocol

from volatility_oracle.domain.entities.volatility import (
    FeeGrowthGlobals,
    PoolMetadata,
    VolatilityEstimate,
)


class VolatilityStorePort(Protocol):
    def get_pool_metadata(self, *, pool_address: str) -> PoolMetadata | None:
        ...

    def upsert_pool_metadata(self, *, pool_address: str, metadata: PoolMetadata) -> None:
        ...

    def list_fee_growth_history(self, *, pool_address: str) -> list[FeeGrowthGlobals]:
        ...

    def append_fee_growth(
        self,
        *,
        pool_address: str,
        snapshot: FeeGrowthGlobals,
        history_size: int,
    ) -> None:
        ...

    def save_estimate(self, *, estimate: VolatilityEstimate) -> None:
        ...

    def get_latest_estimate(self, *, pool_address: str) -> VolatilityEstimate | None:
        ...
