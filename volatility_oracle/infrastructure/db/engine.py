from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


@lru_cache(maxsize=4)
def get_engine(dsn: str):
    return create_engine(dsn, future=True, pool_pre_ping=True)


def ensure_schema(engine) -> None:
    from volatility_oracle.infrastructure.db.models import volatility  # noqa: F401

    Base.metadata.create_all(engine)
