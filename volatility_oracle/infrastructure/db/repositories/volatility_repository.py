from __future__ import annotations

import logging

from sqlalchemy import text

from volatility_oracle.application.ports.volatility_store_port import VolatilityStorePort
from volatility_oracle.domain.entities.volatility import (
    FeeGrowthGlobals,
    PoolMetadata,
    VolatilityEstimate,
)
from volatility_oracle.infrastructure.db.mappers.volatility_mapper import (
    map_row_to_fee_growth_globals,
    map_row_to_pool_metadata,
    map_row_to_volatility_estimate,
)


logger = logging.getLogger(__name__)


class SqlVolatilityRepository(VolatilityStorePort):
    def __init__(self, engine):
        self._engine = engine

    def get_pool_metadata(self, *, pool_address: str) -> PoolMetadata | None:
        sql = """
            SELECT
                max_seconds_ago,
                gamma0,
                gamma1,
                tick_spacing
            FROM public.volatility_pool_metadata
            WHERE pool_address = :pool_address
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(
                text(sql),
                {"pool_address": pool_address.lower()},
            ).mappings().first()
        if not row:
            logger.debug("volatility_repo: metadata_not_found pool=%s", pool_address.lower())
            return None
        return map_row_to_pool_metadata(row)

    def upsert_pool_metadata(self, *, pool_address: str, metadata: PoolMetadata) -> None:
        sql = text(
            """
            INSERT INTO public.volatility_pool_metadata (
                pool_address,
                max_seconds_ago,
                gamma0,
                gamma1,
                tick_spacing,
                updated_at
            )
            VALUES (
                :pool_address,
                :max_seconds_ago,
                :gamma0,
                :gamma1,
                :tick_spacing,
                now()
            )
            ON CONFLICT (pool_address)
            DO UPDATE SET
                max_seconds_ago = EXCLUDED.max_seconds_ago,
                gamma0 = EXCLUDED.gamma0,
                gamma1 = EXCLUDED.gamma1,
                tick_spacing = EXCLUDED.tick_spacing,
                updated_at = now()
            """
        )
        normalized_pool = pool_address.lower()
        with self._engine.begin() as conn:
            conn.execute(
                sql,
                {
                    "pool_address": normalized_pool,
                    "max_seconds_ago": metadata.max_seconds_ago,
                    "gamma0": metadata.gamma0,
                    "gamma1": metadata.gamma1,
                    "tick_spacing": metadata.tick_spacing,
                },
            )
        logger.debug("volatility_repo: upsert_pool_metadata pool=%s", normalized_pool)

    def list_fee_growth_history(self, *, pool_address: str) -> list[FeeGrowthGlobals]:
        sql = """
            SELECT
                block_timestamp,
                fee_growth_global0_x128,
                fee_growth_global1_x128
            FROM public.volatility_fee_growth_globals
            WHERE pool_address = :pool_address
            ORDER BY block_timestamp ASC
        """
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(sql),
                {"pool_address": pool_address.lower()},
            ).mappings().all()
        return [map_row_to_fee_growth_globals(row) for row in rows]

    def append_fee_growth(
        self,
        *,
        pool_address: str,
        snapshot: FeeGrowthGlobals,
        history_size: int,
    ) -> None:
        insert_sql = text(
            """
            INSERT INTO public.volatility_fee_growth_globals (
                pool_address,
                block_timestamp,
                fee_growth_global0_x128,
                fee_growth_global1_x128,
                created_at
            )
            VALUES (
                :pool_address,
                :block_timestamp,
                CAST(:fee_growth_global0_x128 AS NUMERIC(78, 0)),
                CAST(:fee_growth_global1_x128 AS NUMERIC(78, 0)),
                now()
            )
            ON CONFLICT (pool_address, block_timestamp) DO NOTHING
            """
        )
        prune_sql = text(
            """
            DELETE FROM public.volatility_fee_growth_globals
            WHERE pool_address = :pool_address
              AND block_timestamp NOT IN (
                SELECT block_timestamp
                FROM public.volatility_fee_growth_globals
                WHERE pool_address = :pool_address
                ORDER BY block_timestamp DESC
                LIMIT :history_size
              )
            """
        )
        normalized_pool = pool_address.lower()
        with self._engine.begin() as conn:
            conn.execute(
                insert_sql,
                {
                    "pool_address": normalized_pool,
                    "block_timestamp": snapshot.timestamp,
                    "fee_growth_global0_x128": str(snapshot.fee_growth_global0_x128),
                    "fee_growth_global1_x128": str(snapshot.fee_growth_global1_x128),
                },
            )
            pruned = conn.execute(
                prune_sql,
                {"pool_address": normalized_pool, "history_size": history_size},
            ).rowcount
        logger.debug(
            "volatility_repo: append_fee_growth pool=%s ts=%s pruned=%s",
            normalized_pool,
            snapshot.timestamp,
            pruned,
        )

    def save_estimate(self, *, estimate: VolatilityEstimate) -> None:
        sql = text(
            """
            INSERT INTO public.volatility_estimates (
                pool_address,
                block_timestamp,
                reference_timestamp,
                block_number,
                implied_volatility,
                created_at
            )
            VALUES (
                :pool_address,
                :block_timestamp,
                :reference_timestamp,
                :block_number,
                CAST(:implied_volatility AS NUMERIC(78, 0)),
                now()
            )
            ON CONFLICT (pool_address, block_timestamp)
            DO UPDATE SET
                reference_timestamp = EXCLUDED.reference_timestamp,
                block_number = EXCLUDED.block_number,
                implied_volatility = EXCLUDED.implied_volatility
            """
        )
        normalized_pool = estimate.pool_address.lower()
        with self._engine.begin() as conn:
            conn.execute(
                sql,
                {
                    "pool_address": normalized_pool,
                    "block_timestamp": estimate.timestamp,
                    "reference_timestamp": estimate.reference_timestamp,
                    "block_number": estimate.block_number,
                    "implied_volatility": str(estimate.implied_volatility),
                },
            )
        logger.debug(
            "volatility_repo: save_estimate pool=%s ts=%s iv=%s",
            normalized_pool,
            estimate.timestamp,
            estimate.implied_volatility,
        )

    def get_latest_estimate(self, *, pool_address: str) -> VolatilityEstimate | None:
        sql = """
            SELECT
                pool_address,
                block_timestamp,
                reference_timestamp,
                block_number,
                implied_volatility
            FROM public.volatility_estimates
            WHERE pool_address = :pool_address
            ORDER BY block_timestamp DESC
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(
                text(sql),
                {"pool_address": pool_address.lower()},
            ).mappings().first()
        if not row:
            logger.warning("volatility_repo: estimate_not_found pool=%s", pool_address.lower())
            return None
        return map_row_to_volatility_estimate(row)
