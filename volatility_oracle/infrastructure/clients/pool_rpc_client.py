from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Lock
import time
from typing import Any

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector
import httpx

from volatility_oracle.application.ports.pool_state_port import PoolStatePort
from volatility_oracle.domain.entities.volatility import (
    PoolCumulatives,
    PoolObservation,
    PoolState,
)


logger = logging.getLogger(__name__)


SLOT0_TYPES = ["uint160", "int24", "uint16", "uint16", "uint16", "uint8", "bool"]
OBSERVATION_TYPES = ["uint32", "int56", "uint160", "bool"]
OBSERVE_TYPES = ["int56[]", "uint160[]"]


class PoolRpcError(RuntimeError):
    pass


class PoolRpcEmptyResultError(PoolRpcError):
    pass


class PoolRpcRevertError(PoolRpcError):
    pass


@dataclass(frozen=True)
class PoolRpcClientSettings:
    rpc_url: str
    timeout_seconds: float
    max_retries: int
    min_interval_ms: int


class PoolRpcClient(PoolStatePort):
    def __init__(
        self,
        settings: PoolRpcClientSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport
        self._lock = Lock()
        self._last_request_at = 0.0
        self._request_id = 0

    def get_pool_state(self, *, pool_address: str) -> PoolState:
        pool = pool_address.lower()
        block_number, block_timestamp = self._get_latest_block()

        (
            sqrt_price_x96,
            tick,
            observation_index,
            observation_cardinality,
            _observation_cardinality_next,
            fee_protocol,
            _unlocked,
        ) = self._call(pool_address=pool, signature="slot0()", output_types=SLOT0_TYPES, block_number=block_number)
        (liquidity,) = self._call(
            pool_address=pool, signature="liquidity()", output_types=["uint128"], block_number=block_number
        )
        (fee,) = self._call(pool_address=pool, signature="fee()", output_types=["uint24"], block_number=block_number)
        (tick_spacing,) = self._call(
            pool_address=pool, signature="tickSpacing()", output_types=["int24"], block_number=block_number
        )
        (fee_growth_global0_x128,) = self._call(
            pool_address=pool,
            signature="feeGrowthGlobal0X128()",
            output_types=["uint256"],
            block_number=block_number,
        )
        (fee_growth_global1_x128,) = self._call(
            pool_address=pool,
            signature="feeGrowthGlobal1X128()",
            output_types=["uint256"],
            block_number=block_number,
        )

        logger.info(
            "pool_rpc_client: pool_state pool=%s block=%s ts=%s tick=%s liquidity=%s",
            pool,
            block_number,
            block_timestamp,
            tick,
            liquidity,
        )
        return PoolState(
            pool_address=pool,
            block_number=block_number,
            block_timestamp=block_timestamp,
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
            observation_index=observation_index,
            observation_cardinality=observation_cardinality,
            fee_protocol=fee_protocol,
            liquidity=liquidity,
            fee=fee,
            tick_spacing=tick_spacing,
            fee_growth_global0_x128=fee_growth_global0_x128,
            fee_growth_global1_x128=fee_growth_global1_x128,
        )

    def get_observation(
        self,
        *,
        pool_address: str,
        index: int,
        block_number: int,
    ) -> PoolObservation:
        block_timestamp, tick_cumulative, seconds_per_liquidity_cumulative_x128, initialized = self._call(
            pool_address=pool_address.lower(),
            signature="observations(uint256)",
            arg_types=["uint256"],
            args=[index],
            output_types=OBSERVATION_TYPES,
            block_number=block_number,
        )
        return PoolObservation(
            block_timestamp=block_timestamp,
            tick_cumulative=tick_cumulative,
            seconds_per_liquidity_cumulative_x128=seconds_per_liquidity_cumulative_x128,
            initialized=initialized,
        )

    def observe(
        self,
        *,
        pool_address: str,
        seconds_agos: list[int],
        block_number: int,
    ) -> PoolCumulatives:
        tick_cumulatives, seconds_per_liquidity_cumulatives_x128 = self._call(
            pool_address=pool_address.lower(),
            signature="observe(uint32[])",
            arg_types=["uint32[]"],
            args=[list(seconds_agos)],
            output_types=OBSERVE_TYPES,
            block_number=block_number,
        )
        return PoolCumulatives(
            tick_cumulatives=tuple(tick_cumulatives),
            seconds_per_liquidity_cumulatives_x128=tuple(seconds_per_liquidity_cumulatives_x128),
        )

    def _get_latest_block(self) -> tuple[int, int]:
        block = self._rpc("eth_getBlockByNumber", ["latest", False])
        if not isinstance(block, dict) or "number" not in block or "timestamp" not in block:
            raise PoolRpcError("eth_getBlockByNumber returned no block.")
        return int(block["number"], 16), int(block["timestamp"], 16)

    def _call(
        self,
        *,
        pool_address: str,
        signature: str,
        output_types: list[str],
        block_number: int,
        arg_types: list[str] | None = None,
        args: list[Any] | None = None,
    ) -> tuple:
        calldata = function_signature_to_4byte_selector(signature)
        if arg_types:
            calldata += encode(arg_types, args or [])

        result = self._rpc(
            "eth_call",
            [{"to": pool_address, "data": "0x" + calldata.hex()}, hex(block_number)],
        )
        raw = bytes.fromhex(str(result or "0x")[2:])
        if not raw:
            raise PoolRpcEmptyResultError(
                f"eth_call {signature} returned no data for {pool_address}; not a pool contract?"
            )
        return decode(output_types, raw)

    def _rpc(self, method: str, params: list) -> Any:
        attempts = max(1, self._settings.max_retries)
        delay = 0.25
        last_exc: Exception | None = None

        for attempt in range(1, attempts + 1):
            self._respect_rate_limit()
            self._request_id += 1
            try:
                with httpx.Client(timeout=self._settings.timeout_seconds, transport=self._transport) as client:
                    response = client.post(
                        self._settings.rpc_url,
                        json={
                            "jsonrpc": "2.0",
                            "id": self._request_id,
                            "method": method,
                            "params": params,
                        },
                    )
                    response.raise_for_status()
                    payload = response.json()

                error = payload.get("error")
                if error:
                    message = error.get("message", error) if isinstance(error, dict) else error
                    if "revert" in str(message).lower():
                        raise PoolRpcRevertError(f"{method} reverted: {message}")
                    raise PoolRpcError(f"{method} failed: {message}")
                return payload.get("result")
            except PoolRpcRevertError:
                raise
            except (httpx.HTTPError, RuntimeError, ValueError) as exc:
                last_exc = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "pool_rpc_client: rpc_retry method=%s attempt=%s/%s error=%s",
                    method,
                    attempt,
                    attempts,
                    exc,
                )
                time.sleep(delay)
                delay *= 2

        raise PoolRpcError(f"JSON-RPC {method} failed after retries: {last_exc}") from last_exc

    def _respect_rate_limit(self) -> None:
        min_interval = max(0, self._settings.min_interval_ms) / 1000.0
        if min_interval <= 0:
            return

        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_at
            if elapsed < min_interval:
                time.sleep(min_interval - elapsed)
            self._last_request_at = time.monotonic()
