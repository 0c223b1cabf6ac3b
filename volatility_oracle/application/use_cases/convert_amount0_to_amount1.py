from __future__ import annotations

from volatility_oracle.application.dto.volatility import Amount0ToAmount1Input
from volatility_oracle.domain.exceptions import VolatilityInputError
from volatility_oracle.domain.services.primitives import EXACT_PRIMITIVES, FixedPointPrimitives
from volatility_oracle.domain.services.volatility import amount0_to_amount1


class ConvertAmount0ToAmount1UseCase:
    def __init__(self, *, primitives: FixedPointPrimitives = EXACT_PRIMITIVES):
        self._primitives = primitives

    def execute(self, command: Amount0ToAmount1Input) -> int:
        if command.amount0 < 0:
            raise VolatilityInputError("amount0 must be >= 0.")
        return amount0_to_amount1(command.amount0, command.tick, primitives=self._primitives)
