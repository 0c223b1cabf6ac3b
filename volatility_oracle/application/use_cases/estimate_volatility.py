from __future__ import annotations

import logging

from volatility_oracle.application.dto.volatility import (
    EstimateVolatilityInput,
    EstimateVolatilityOutput,
)
from volatility_oracle.domain.exceptions import VolatilityInputError
from volatility_oracle.domain.services.fixed_point import UINT128_MAX, UINT256_MAX
from volatility_oracle.domain.services.primitives import EXACT_PRIMITIVES, FixedPointPrimitives
from volatility_oracle.domain.services.volatility import GAMMA_SCALE, estimate_24h_breakdown


logger = logging.getLogger(__name__)


class EstimateVolatilityUseCase:
    def __init__(self, *, primitives: FixedPointPrimitives = EXACT_PRIMITIVES):
        self._primitives = primitives

    def execute(self, command: EstimateVolatilityInput) -> EstimateVolatilityOutput:
        self._validate(command)

        breakdown = estimate_24h_breakdown(
            command.metadata,
            command.data,
            command.snapshot_early,
            command.snapshot_late,
            primitives=self._primitives,
        )
        elapsed_seconds = command.snapshot_late.timestamp - command.snapshot_early.timestamp
        logger.info(
            "estimate_volatility: success elapsed_seconds=%s tick_tvl_x64=%s volume=%s iv=%s",
            elapsed_seconds,
            breakdown.tick_tvl_x64,
            breakdown.volume_gamma0_gamma1,
            breakdown.implied_volatility,
        )
        return EstimateVolatilityOutput(
            implied_volatility=breakdown.implied_volatility,
            revenue0_gamma1=breakdown.revenue0_gamma1,
            revenue1_gamma0=breakdown.revenue1_gamma0,
            volume_gamma0_gamma1=breakdown.volume_gamma0_gamma1,
            tick_tvl_x64=breakdown.tick_tvl_x64,
            time_adjustment_x32=breakdown.time_adjustment_x32,
            elapsed_seconds=elapsed_seconds,
        )

    def _validate(self, command: EstimateVolatilityInput) -> None:
        metadata = command.metadata
        data = command.data
        for name, gamma in (("gamma0", metadata.gamma0), ("gamma1", metadata.gamma1)):
            if gamma < 0 or gamma > GAMMA_SCALE:
                raise VolatilityInputError(f"{name} must be between 0 and {GAMMA_SCALE}.")
        if metadata.tick_spacing <= 0:
            raise VolatilityInputError("tick_spacing must be positive.")
        if data.oracle_lookback < 0:
            raise VolatilityInputError("oracle_lookback must be >= 0.")
        if data.sqrt_price_x96 <= 0:
            raise VolatilityInputError("sqrt_price_x96 must be positive.")
        if data.tick_liquidity < 0 or data.tick_liquidity > UINT128_MAX:
            raise VolatilityInputError("tick_liquidity must fit in uint128.")
        for snapshot in (command.snapshot_early, command.snapshot_late):
            for value in (snapshot.fee_growth_global0_x128, snapshot.fee_growth_global1_x128):
                if value < 0 or value > UINT256_MAX:
                    raise VolatilityInputError("fee growth values must fit in uint256.")
