from __future__ import annotations

from typing import Protocol

from volatility_oracle.domain.services import fixed_point, tick_math


class FixedPointPrimitives(Protocol):
    def full_mul_div(self, x: int, y: int, denominator: int) -> int:
        ...

    def isqrt(self, x: int) -> int:
        ...

    def sqrt_price_at_tick(self, tick: int) -> int:
        ...

    def floor_to_spacing(self, tick: int, tick_spacing: int) -> int:
        ...


class ExactFixedPointPrimitives:
    def full_mul_div(self, x: int, y: int, denominator: int) -> int:
        return fixed_point.full_mul_div(x, y, denominator)

    def isqrt(self, x: int) -> int:
        return fixed_point.isqrt(x)

    def sqrt_price_at_tick(self, tick: int) -> int:
        return tick_math.sqrt_price_at_tick(tick)

    def floor_to_spacing(self, tick: int, tick_spacing: int) -> int:
        return tick_math.floor_to_spacing(tick, tick_spacing)


EXACT_PRIMITIVES: FixedPointPrimitives = ExactFixedPointPrimitives()
