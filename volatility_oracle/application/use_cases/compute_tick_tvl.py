from __future__ import annotations

from volatility_oracle.application.dto.volatility import TickTvlInput
from volatility_oracle.domain.exceptions import VolatilityInputError
from volatility_oracle.domain.services.primitives import EXACT_PRIMITIVES, FixedPointPrimitives
from volatility_oracle.domain.services.volatility import tick_tvl


class ComputeTickTvlUseCase:
    def __init__(self, *, primitives: FixedPointPrimitives = EXACT_PRIMITIVES):
        self._primitives = primitives

    def execute(self, command: TickTvlInput) -> int:
        if command.tick_spacing <= 0:
            raise VolatilityInputError("tick_spacing must be positive.")
        if command.liquidity < 0:
            raise VolatilityInputError("liquidity must be >= 0.")
        return tick_tvl(
            command.tick_spacing,
            command.current_tick,
            command.sqrt_price_x96,
            command.liquidity,
            primitives=self._primitives,
        )
