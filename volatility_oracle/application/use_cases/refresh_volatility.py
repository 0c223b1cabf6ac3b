from __future__ import annotations

import logging
from time import perf_counter

from volatility_oracle.application.dto.volatility import (
    RefreshVolatilityInput,
    RefreshVolatilityOutput,
    RefreshVolatilityResult,
)
from volatility_oracle.application.ports.pool_state_port import PoolStatePort
from volatility_oracle.application.ports.volatility_store_port import VolatilityStorePort
from volatility_oracle.application.use_cases.volatility_common import (
    load_pool_context,
    normalize_pool_address,
)
from volatility_oracle.domain.entities.volatility import VolatilityEstimate
from volatility_oracle.domain.exceptions import (
    DomainError,
    InvariantViolationError,
    VolatilityInputError,
)
from volatility_oracle.domain.services.fee_growth_history import (
    DEFAULT_HISTORY_SIZE,
    DEFAULT_RECORD_INTERVAL_SECONDS,
    pick_reference_snapshot,
    should_record,
)
from volatility_oracle.domain.services.primitives import EXACT_PRIMITIVES, FixedPointPrimitives
from volatility_oracle.domain.services.volatility import estimate_24h


logger = logging.getLogger(__name__)


class RefreshVolatilityUseCase:
    def __init__(
        self,
        *,
        pool_state_port: PoolStatePort,
        volatility_store_port: VolatilityStorePort,
        history_size: int = DEFAULT_HISTORY_SIZE,
        record_interval_seconds: int = DEFAULT_RECORD_INTERVAL_SECONDS,
        primitives: FixedPointPrimitives = EXACT_PRIMITIVES,
    ):
        self._pool_state_port = pool_state_port
        self._volatility_store_port = volatility_store_port
        self._history_size = max(1, history_size)
        self._record_interval_seconds = max(0, record_interval_seconds)
        self._primitives = primitives

    def execute(self, command: RefreshVolatilityInput) -> RefreshVolatilityOutput:
        if not command.pool_addresses:
            raise VolatilityInputError("pool_addresses must not be empty.")
        pool_addresses = list(dict.fromkeys(normalize_pool_address(addr) for addr in command.pool_addresses))

        logger.info("refresh_volatility: start pools=%s", len(pool_addresses))
        start = perf_counter()
        results: list[RefreshVolatilityResult] = []
        for pool_address in pool_addresses:
            try:
                results.append(self._refresh_pool(pool_address))
            except InvariantViolationError:
                logger.error("refresh_volatility: invariant_violation pool=%s", pool_address)
                raise
            except (DomainError, RuntimeError) as exc:
                logger.warning(
                    "refresh_volatility: pool_failed pool=%s error_type=%s error=%s",
                    pool_address,
                    type(exc).__name__,
                    exc,
                )
                results.append(
                    RefreshVolatilityResult(
                        pool_address=pool_address,
                        implied_volatility=None,
                        reference_timestamp=None,
                        timestamp=None,
                        recorded_snapshot=False,
                        error=str(exc),
                    )
                )

        output = RefreshVolatilityOutput(results=results)
        logger.info(
            "refresh_volatility: end pools=%s failed=%s elapsed_ms=%.2f",
            len(pool_addresses),
            len(output.failed),
            (perf_counter() - start) * 1000,
        )
        return output

    def _refresh_pool(self, pool_address: str) -> RefreshVolatilityResult:
        context = load_pool_context(
            pool_state_port=self._pool_state_port,
            volatility_store_port=self._volatility_store_port,
            pool_address=pool_address,
        )
        now = context.current.timestamp
        history = self._volatility_store_port.list_fee_growth_history(pool_address=pool_address)
        reference = pick_reference_snapshot(history, now=now)

        implied_volatility: int | None = None
        if reference is None:
            logger.info(
                "refresh_volatility: no_reference_snapshot pool=%s history=%s now=%s",
                pool_address,
                len(history),
                now,
            )
        else:
            implied_volatility = estimate_24h(
                context.metadata,
                context.data,
                reference,
                context.current,
                primitives=self._primitives,
            )
            self._volatility_store_port.save_estimate(
                estimate=VolatilityEstimate(
                    pool_address=pool_address,
                    implied_volatility=implied_volatility,
                    reference_timestamp=reference.timestamp,
                    timestamp=now,
                    block_number=context.state.block_number,
                )
            )

        recorded = should_record(history, now=now, interval_seconds=self._record_interval_seconds)
        if recorded:
            self._volatility_store_port.append_fee_growth(
                pool_address=pool_address,
                snapshot=context.current,
                history_size=self._history_size,
            )

        logger.info(
            "refresh_volatility: pool_done pool=%s block=%s reference_ts=%s iv=%s recorded=%s",
            pool_address,
            context.state.block_number,
            reference.timestamp if reference is not None else None,
            implied_volatility,
            recorded,
        )
        return RefreshVolatilityResult(
            pool_address=pool_address,
            implied_volatility=implied_volatility,
            reference_timestamp=reference.timestamp if reference is not None else None,
            timestamp=now,
            recorded_snapshot=recorded,
        )
