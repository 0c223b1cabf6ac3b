from __future__ import annotations

import json
import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _json(name: str) -> dict:
    value = _env(name)
    if not value:
        return {}
    return json.loads(value)


def _bool(name: str, default: str = "false") -> bool:
    return (_env(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    postgres_dsn: str
    db_auto_create_schema: bool
    rpc_url: str
    rpc_timeout_seconds: float
    rpc_max_retries: int
    rpc_min_interval_ms: int
    volatility_history_size: int
    volatility_record_interval_seconds: int
    volatility_pairs: dict


def get_settings() -> Settings:
    return Settings(
        postgres_dsn=_env("POSTGRES_DSN", ""),
        db_auto_create_schema=_bool("DB_AUTO_CREATE_SCHEMA"),
        rpc_url=_env("RPC_URL", ""),
        rpc_timeout_seconds=float(_env("RPC_TIMEOUT_SECONDS", "10")),
        rpc_max_retries=int(_env("RPC_MAX_RETRIES", "3")),
        rpc_min_interval_ms=int(_env("RPC_MIN_INTERVAL_MS", "0")),
        volatility_history_size=int(_env("VOLATILITY_HISTORY_SIZE", "25")),
        volatility_record_interval_seconds=int(_env("VOLATILITY_RECORD_INTERVAL_SECONDS", "3600")),
        volatility_pairs=_json("VOLATILITY_PAIRS"),
    )
