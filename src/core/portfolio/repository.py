"""Portfolio repository for CRUD operations."""

from __future__ import annotations

import math
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.data.market.models import AssetType
from src.data.market.symbols import normalize_symbol
from src.db.models import Holding


def _check_non_negative(name: str, value: Optional[float]) -> None:
    if value is not None and (not math.isfinite(value) or value < 0):
        raise ValueError(f"{name} must be a finite, non-negative number, got {value}")


class HoldingRepository:
    """Repository for Holding CRUD operations."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def get_all(self) -> List[Holding]:
        """Get all holdings in insertion order."""
        return self.db.query(Holding).order_by(Holding.position, Holding.created_at).all()

    def get_by_id(self, holding_id: str) -> Optional[Holding]:
        """Get a holding by ID."""
        return self.db.query(Holding).filter_by(id=holding_id).first()

    def get_by_symbol(self, symbol: str) -> List[Holding]:
        """Get every holding recorded under a symbol."""
        return self.db.query(Holding).filter_by(symbol=normalize_symbol(symbol)).all()

    def symbols(self) -> List[str]:
        """Distinct symbols across all holdings."""
        rows = self.db.query(Holding.symbol).distinct().all()
        return sorted(row[0] for row in rows)

    def create(
        self,
        symbol: str,
        quantity: float,
        cost_basis_per_unit: float,
        asset_type: AssetType | str = AssetType.STOCK,
        currency: Optional[str] = None,
        exchange: Optional[str] = None,
    ) -> Holding:
        """Create a new holding.

        Args:
            symbol: Ticker symbol (normalized to upper case)
            quantity: Units held
            cost_basis_per_unit: Book cost per unit
            asset_type: Stock, ETF or Crypto
            currency: Optional currency metadata
            exchange: Optional exchange metadata

        Returns:
            Created holding

        Raises:
            ValueError: If symbol is blank, a number is negative or the type is unknown
        """
        symbol = normalize_symbol(symbol)
        if not symbol:
            raise ValueError("Symbol must not be blank")
        _check_non_negative("Quantity", quantity)
        _check_non_negative("Cost basis", cost_basis_per_unit)
        if not isinstance(asset_type, AssetType):
            asset_type = AssetType.parse(asset_type)

        position = (self.db.query(func.max(Holding.position)).scalar() or 0) + 1
        holding = Holding(
            symbol=symbol,
            position=position,
            asset_type=asset_type.value,
            quantity=quantity,
            cost_basis_per_unit=cost_basis_per_unit,
            currency=currency or None,
            exchange=exchange or None,
        )
        self.db.add(holding)
        self.db.flush()
        return holding

    def update(
        self,
        holding_id: str,
        symbol: Optional[str] = None,
        asset_type: Optional[AssetType | str] = None,
        quantity: Optional[float] = None,
        cost_basis_per_unit: Optional[float] = None,
        currency: Optional[str] = None,
        exchange: Optional[str] = None,
    ) -> Optional[Holding]:
        """Update a holding.

        Args:
            holding_id: Holding ID
            symbol: New symbol
            asset_type: New instrument type
            quantity: New quantity
            cost_basis_per_unit: New cost basis per unit
            currency: New currency metadata
            exchange: New exchange metadata

        Returns:
            Updated holding or None if not found

        Raises:
            ValueError: If a value is invalid
        """
        holding = self.get_by_id(holding_id)
        if not holding:
            return None

        _check_non_negative("Quantity", quantity)
        _check_non_negative("Cost basis", cost_basis_per_unit)

        if symbol is not None:
            symbol = normalize_symbol(symbol)
            if not symbol:
                raise ValueError("Symbol must not be blank")
            holding.symbol = symbol
        if asset_type is not None:
            if not isinstance(asset_type, AssetType):
                asset_type = AssetType.parse(asset_type)
            holding.asset_type = asset_type.value
        if quantity is not None:
            holding.quantity = quantity
        if cost_basis_per_unit is not None:
            holding.cost_basis_per_unit = cost_basis_per_unit
        if currency is not None:
            holding.currency = currency or None
        if exchange is not None:
            holding.exchange = exchange or None

        self.db.flush()
        return holding

    def delete(self, holding_id: str) -> bool:
        """Delete a holding.

        Returns:
            True if deleted, False if not found
        """
        holding = self.get_by_id(holding_id)
        if not holding:
            return False

        self.db.delete(holding)
        self.db.flush()
        return True

    def delete_all(self) -> int:
        """Delete every holding. Returns the number removed."""
        count = self.db.query(Holding).delete()
        self.db.flush()
        return count
