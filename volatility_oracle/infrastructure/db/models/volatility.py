from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Integer, Numeric, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from volatility_oracle.infrastructure.db.engine import Base


UINT256_NUMERIC = Numeric(78, 0)


class VolatilityPoolMetadataModel(Base):
    __tablename__ = "volatility_pool_metadata"
    __table_args__ = ({"schema": "public"},)

    pool_address: Mapped[str] = mapped_column(Text, primary_key=True)
    max_seconds_ago: Mapped[int] = mapped_column(BigInteger, nullable=False)
    gamma0: Mapped[int] = mapped_column(Integer, nullable=False)
    gamma1: Mapped[int] = mapped_column(Integer, nullable=False)
    tick_spacing: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))


class VolatilityFeeGrowthGlobalsModel(Base):
    __tablename__ = "volatility_fee_growth_globals"
    __table_args__ = ({"schema": "public"},)

    pool_address: Mapped[str] = mapped_column(Text, primary_key=True)
    block_timestamp: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    fee_growth_global0_x128: Mapped[Decimal] = mapped_column(UINT256_NUMERIC, nullable=False)
    fee_growth_global1_x128: Mapped[Decimal] = mapped_column(UINT256_NUMERIC, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))


class VolatilityEstimateModel(Base):
    __tablename__ = "volatility_estimates"
    __table_args__ = ({"schema": "public"},)

    pool_address: Mapped[str] = mapped_column(Text, primary_key=True)
    block_timestamp: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    reference_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    implied_volatility: Mapped[Decimal] = mapped_column(UINT256_NUMERIC, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
