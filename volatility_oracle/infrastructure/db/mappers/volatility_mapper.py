from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from volatility_oracle.domain.entities.volatility import (
    FeeGrowthGlobals,
    PoolMetadata,
    VolatilityEstimate,
)
from volatility_oracle.domain.services.fixed_point import parse_uint256


def _uint(value: Any) -> int:
    # NUMERIC(78, 0) columns come back as Decimal.
    return parse_uint256(value)


def map_row_to_pool_metadata(row: Mapping[str, Any]) -> PoolMetadata:
    return PoolMetadata(
        max_seconds_ago=int(row["max_seconds_ago"]),
        gamma0=int(row["gamma0"]),
        gamma1=int(row["gamma1"]),
        tick_spacing=int(row["tick_spacing"]),
    )


def map_row_to_fee_growth_globals(row: Mapping[str, Any]) -> FeeGrowthGlobals:
    return FeeGrowthGlobals(
        fee_growth_global0_x128=_uint(row["fee_growth_global0_x128"]),
        fee_growth_global1_x128=_uint(row["fee_growth_global1_x128"]),
        timestamp=int(row["block_timestamp"]),
    )


def map_row_to_volatility_estimate(row: Mapping[str, Any]) -> VolatilityEstimate:
    return VolatilityEstimate(
        pool_address=str(row["pool_address"]).lower(),
        implied_volatility=_uint(row["implied_volatility"]),
        reference_timestamp=int(row["reference_timestamp"]),
        timestamp=int(row["block_timestamp"]),
        block_number=int(row["block_number"]) if row.get("block_number") is not None else None,
    )
