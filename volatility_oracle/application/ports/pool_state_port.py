from __future__ import annotations

from typing import Protocol

from volatility_oracle.domain.entities.volatility import PoolCumulatives, PoolObservation, PoolState


class PoolStatePort(Protocol):
    def get_pool_state(self, *, pool_address: str) -> PoolState:
        ...

    def get_observation(
        self,
        *,
        pool_address: str,
        index: int,
        block_number: int,
    ) -> PoolObservation:
        ...

    def observe(
        self,
        *,
        pool_address: str,
        seconds_agos: list[int],
        block_number: int,
    ) -> PoolCumulatives:
        ...
