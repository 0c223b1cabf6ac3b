from __future__ import annotations

import pytest

from volatility_oracle.domain.entities.volatility import PoolCumulatives, PoolMetadata, PoolState
from volatility_oracle.domain.exceptions import InsufficientHistoryError, InvariantViolationError
from volatility_oracle.domain.services.fixed_point import UINT160_MOD
from volatility_oracle.domain.services.pool_oracle import (
    consult,
    fee_growth_globals_from_state,
    oldest_observation_index,
    oracle_lookback,
    pool_data_from_state,
    pool_metadata_from_state,
)


def _metadata(max_seconds_ago: int) -> PoolMetadata:
    return PoolMetadata(max_seconds_ago=max_seconds_ago, gamma0=3000, gamma1=3000, tick_spacing=60)


class TestConsult:
    def test_positive_mean_tick_floors(self):
        cumulatives = PoolCumulatives(tick_cumulatives=(0, 3600 * 5 + 10), seconds_per_liquidity_cumulatives_x128=(0, 7))
        assert consult(cumulatives=cumulatives, seconds_ago=3600) == (5, 7)

    def test_negative_mean_tick_rounds_toward_negative_infinity(self):
        inexact = PoolCumulatives(tick_cumulatives=(1000, 1000 - 25201), seconds_per_liquidity_cumulatives_x128=(0, 0))
        exact = PoolCumulatives(tick_cumulatives=(1000, 1000 - 25200), seconds_per_liquidity_cumulatives_x128=(0, 0))
        assert consult(cumulatives=inexact, seconds_ago=3600)[0] == -8
        assert consult(cumulatives=exact, seconds_ago=3600)[0] == -7

    def test_seconds_per_liquidity_wraps_at_uint160(self):
        cumulatives = PoolCumulatives(tick_cumulatives=(0, 0), seconds_per_liquidity_cumulatives_x128=(UINT160_MOD - 10, 5))
        assert consult(cumulatives=cumulatives, seconds_ago=60)[1] == 15

    def test_rejects_non_positive_window(self):
        cumulatives = PoolCumulatives(tick_cumulatives=(0, 0), seconds_per_liquidity_cumulatives_x128=(0, 0))
        with pytest.raises(InvariantViolationError):
            consult(cumulatives=cumulatives, seconds_ago=0)

    def test_rejects_wrong_observation_count(self):
        cumulatives = PoolCumulatives(tick_cumulatives=(0,), seconds_per_liquidity_cumulatives_x128=(0,))
        with pytest.raises(InvariantViolationError):
            consult(cumulatives=cumulatives, seconds_ago=60)


class TestPoolMetadata:
    def test_oldest_observation_index_follows_ring_buffer(self):
        assert oldest_observation_index(observation_index=4, observation_cardinality=5) == 0
        assert oldest_observation_index(observation_index=2, observation_cardinality=10) == 3

    def test_without_protocol_fee_gammas_equal_fee(self):
        metadata = pool_metadata_from_state(
            fee=3000,
            fee_protocol=0,
            tick_spacing=60,
            oldest_observation_timestamp=1_000_000 - 10_000,
            block_timestamp=1_000_000,
        )
        assert metadata == PoolMetadata(max_seconds_ago=6000, gamma0=3000, gamma1=3000, tick_spacing=60)

    def test_protocol_fee_nibbles_reduce_each_gamma(self):
        metadata = pool_metadata_from_state(
            fee=3000,
            fee_protocol=(5 << 4) | 4,
            tick_spacing=60,
            oldest_observation_timestamp=0,
            block_timestamp=0,
        )
        assert metadata.gamma0 == 3000 - 3000 // 4
        assert metadata.gamma1 == 3000 - 3000 // 5
        assert metadata.max_seconds_ago == 0

    def test_observation_age_wraps_at_uint32(self):
        metadata = pool_metadata_from_state(
            fee=500,
            fee_protocol=0,
            tick_spacing=10,
            oldest_observation_timestamp=2**32 - 100,
            block_timestamp=900,
        )
        assert metadata.max_seconds_ago == 600


class TestOracleLookback:
    def test_requires_one_hour_of_history(self):
        with pytest.raises(InsufficientHistoryError):
            oracle_lookback(_metadata(3599))

    def test_uses_available_history_up_to_one_day(self):
        assert oracle_lookback(_metadata(3600)) == 3600
        assert oracle_lookback(_metadata(7200)) == 7200
        assert oracle_lookback(_metadata(200_000)) == 86400


def test_state_projections():
    state = PoolState(
        pool_address="0x" + "ab" * 20,
        block_number=100,
        block_timestamp=1_700_000_000,
        sqrt_price_x96=2**96,
        tick=0,
        observation_index=1,
        observation_cardinality=10,
        fee_protocol=0,
        liquidity=123,
        fee=3000,
        tick_spacing=60,
        fee_growth_global0_x128=11,
        fee_growth_global1_x128=22,
    )

    data = pool_data_from_state(state=state, arithmetic_mean_tick=-3, seconds_per_liquidity_x128=99, oracle_lookback=3600)
    current = fee_growth_globals_from_state(state)

    assert data.tick_liquidity == 123
    assert data.arithmetic_mean_tick == -3
    assert data.oracle_lookback == 3600
    assert (current.fee_growth_global0_x128, current.fee_growth_global1_x128, current.timestamp) == (11, 22, 1_700_000_000)
