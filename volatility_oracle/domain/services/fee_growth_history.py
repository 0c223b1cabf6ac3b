from __future__ import annotations

from collections.abc import Sequence

from volatility_oracle.domain.entities.volatility import (
    FeeGrowthGlobals,
    LensEntry,
    PoolData,
    PoolMetadata,
)
from volatility_oracle.domain.services.primitives import EXACT_PRIMITIVES, FixedPointPrimitives
from volatility_oracle.domain.services.volatility import SECONDS_PER_DAY, estimate_24h


DEFAULT_HISTORY_SIZE = 25
DEFAULT_RECORD_INTERVAL_SECONDS = 3600


def timing_error(*, snapshot_timestamp: int, now: int) -> int:
    age = now - snapshot_timestamp
    return abs(age - SECONDS_PER_DAY)


def pick_reference_snapshot(history: Sequence[FeeGrowthGlobals], *, now: int) -> FeeGrowthGlobals | None:
    """Stored snapshot whose age is closest to 24 hours; ties go to the older one."""
    best: FeeGrowthGlobals | None = None
    best_error: int | None = None
    for snapshot in sorted(history, key=lambda row: row.timestamp):
        if snapshot.timestamp >= now:
            continue
        error = timing_error(snapshot_timestamp=snapshot.timestamp, now=now)
        if best_error is None or error < best_error:
            best = snapshot
            best_error = error
    return best


def should_record(
    history: Sequence[FeeGrowthGlobals],
    *,
    now: int,
    interval_seconds: int = DEFAULT_RECORD_INTERVAL_SECONDS,
) -> bool:
    if not history:
        return True
    newest = max(row.timestamp for row in history)
    return now - interval_seconds > newest


def lens(
    metadata: PoolMetadata,
    data: PoolData,
    history: Sequence[FeeGrowthGlobals],
    current: FeeGrowthGlobals,
    *,
    primitives: FixedPointPrimitives = EXACT_PRIMITIVES,
) -> list[LensEntry]:
    entries: list[LensEntry] = []
    for snapshot in sorted(history, key=lambda row: row.timestamp):
        if snapshot.timestamp >= current.timestamp:
            entries.append(LensEntry(timestamp=snapshot.timestamp, implied_volatility=None))
            continue
        entries.append(
            LensEntry(
                timestamp=snapshot.timestamp,
                implied_volatility=estimate_24h(metadata, data, snapshot, current, primitives=primitives),
            )
        )
    return entries
