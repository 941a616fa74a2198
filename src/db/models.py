"""SQLAlchemy ORM models."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Boolean,
    DateTime,
    CheckConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Get current UTC timestamp."""
    return datetime.utcnow()


class Holding(Base):
    """Portfolio holding model."""

    __tablename__ = "holdings"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_holdings_quantity_non_negative"),
        CheckConstraint("cost_basis_per_unit >= 0", name="ck_holdings_cost_non_negative"),
    )

    id = Column(String, primary_key=True, default=generate_uuid)
    symbol = Column(String(20), nullable=False)
    position = Column(Integer, nullable=False, default=0)  # Display/insertion order
    asset_type = Column(String(10), nullable=False, default="Stock")  # Stock, ETF, Crypto
    quantity = Column(Float, nullable=False, default=0.0)
    cost_basis_per_unit = Column(Float, nullable=False, default=0.0)
    currency = Column(String(10), nullable=True)
    exchange = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def total_cost(self) -> float:
        """Total cost basis for this position."""
        return self.quantity * self.cost_basis_per_unit

    def __repr__(self) -> str:
        return f"<Holding(id={self.id}, symbol={self.symbol}, quantity={self.quantity})>"


class Preferences(Base):
    """Persisted user preferences (single row)."""

    __tablename__ = "preferences"

    id = Column(Integer, primary_key=True, default=1)
    base_currency = Column(String(10), nullable=False, default="CAD")
    use_live_prices = Column(Boolean, nullable=False, default=False)
    crypto_provider = Column(String(20), nullable=False, default="coingecko")
    equity_provider = Column(String(20), nullable=False, default="finnhub")
    finnhub_api_key = Column(String(255), nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Preferences(base_currency={self.base_currency}, "
            f"use_live_prices={self.use_live_prices})>"
        )
