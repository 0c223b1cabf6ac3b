from __future__ import annotations

from volatility_oracle.domain.entities.volatility import FeeGrowthGlobals, PoolData, PoolMetadata
from volatility_oracle.domain.services.fee_growth_history import (
    lens,
    pick_reference_snapshot,
    should_record,
)
from volatility_oracle.domain.services.fixed_point import Q96, Q128
from volatility_oracle.domain.services.volatility import estimate_24h


NOW = 1_700_100_000
LIQUIDITY = 10**21


def _snapshot(timestamp: int, fee_growth: int = 0) -> FeeGrowthGlobals:
    return FeeGrowthGlobals(
        fee_growth_global0_x128=fee_growth,
        fee_growth_global1_x128=fee_growth,
        timestamp=timestamp,
    )


class TestPickReferenceSnapshot:
    def test_empty_history(self):
        assert pick_reference_snapshot([], now=NOW) is None

    def test_picks_snapshot_closest_to_one_day_old(self):
        history = [_snapshot(NOW - 80_000), _snapshot(NOW - 90_000), _snapshot(NOW - 86_000)]
        assert pick_reference_snapshot(history, now=NOW).timestamp == NOW - 86_000

    def test_tie_goes_to_older_snapshot(self):
        history = [_snapshot(NOW - 86_300), _snapshot(NOW - 86_500)]
        assert pick_reference_snapshot(history, now=NOW).timestamp == NOW - 86_500

    def test_ignores_snapshots_not_older_than_now(self):
        assert pick_reference_snapshot([_snapshot(NOW), _snapshot(NOW + 10)], now=NOW) is None

    def test_young_snapshot_is_used_when_nothing_else_exists(self):
        assert pick_reference_snapshot([_snapshot(NOW - 3600)], now=NOW).timestamp == NOW - 3600


class TestShouldRecord:
    def test_records_into_empty_history(self):
        assert should_record([], now=NOW) is True

    def test_waits_for_full_interval(self):
        assert should_record([_snapshot(NOW - 3600)], now=NOW, interval_seconds=3600) is False
        assert should_record([_snapshot(NOW - 3601)], now=NOW, interval_seconds=3600) is True

    def test_uses_newest_snapshot(self):
        history = [_snapshot(NOW - 3601), _snapshot(NOW - 10), _snapshot(NOW - 7200)]
        assert should_record(history, now=NOW, interval_seconds=3600) is False


def test_lens_estimates_against_each_older_snapshot():
    metadata = PoolMetadata(max_seconds_ago=3600, gamma0=997_000, gamma1=997_000, tick_spacing=60)
    data = PoolData(
        sqrt_price_x96=Q96,
        current_tick=0,
        arithmetic_mean_tick=0,
        seconds_per_liquidity_x128=3600 * Q128 // LIQUIDITY,
        oracle_lookback=3600,
        tick_liquidity=LIQUIDITY,
    )
    current = _snapshot(NOW, fee_growth=10**18 * Q128 // LIQUIDITY)
    older = _snapshot(NOW - 86_400)
    history = [current, older]

    entries = lens(metadata, data, history, current)

    assert [row.timestamp for row in entries] == [NOW - 86_400, NOW]
    assert entries[0].implied_volatility == estimate_24h(metadata, data, older, current)
    assert entries[1].implied_volatility is None
