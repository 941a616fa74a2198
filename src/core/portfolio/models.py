"""Pydantic schemas for portfolio operations."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from src.data.market.models import AssetType, PriceSource


class HoldingCreate(BaseModel):
    """Schema for creating a new holding."""

    symbol: str = Field(..., min_length=1, max_length=20)
    asset_type: AssetType = AssetType.STOCK
    quantity: float = Field(..., ge=0, allow_inf_nan=False)
    cost_basis_per_unit: float = Field(
        ..., ge=0, allow_inf_nan=False, description="Book cost per unit"
    )
    currency: Optional[str] = Field(None, max_length=10)
    exchange: Optional[str] = Field(None, max_length=20)

    @field_validator("symbol")
    @classmethod
    def symbol_uppercase(cls, v: str) -> str:
        v = v.upper().strip()
        if not v:
            raise ValueError("Symbol must not be blank")
        return v

    @field_validator("asset_type", mode="before")
    @classmethod
    def parse_asset_type(cls, v):
        return AssetType.parse(v) if isinstance(v, str) else v


class HoldingUpdate(BaseModel):
    """Schema for updating a holding."""

    symbol: Optional[str] = Field(None, min_length=1, max_length=20)
    asset_type: Optional[AssetType] = None
    quantity: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    cost_basis_per_unit: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    currency: Optional[str] = Field(None, max_length=10)
    exchange: Optional[str] = Field(None, max_length=20)

    @field_validator("symbol")
    @classmethod
    def symbol_uppercase(cls, v: Optional[str]) -> Optional[str]:
        return v.upper().strip() if v is not None else v

    @field_validator("asset_type", mode="before")
    @classmethod
    def parse_asset_type(cls, v):
        return AssetType.parse(v) if isinstance(v, str) else v


class HoldingResponse(BaseModel):
    """Schema for holding response."""

    id: str
    symbol: str
    asset_type: AssetType
    quantity: float
    cost_basis_per_unit: float
    currency: Optional[str]
    exchange: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PositionValue(BaseModel):
    """One holding valued at its effective price."""

    holding_id: Optional[str] = None
    symbol: str
    asset_type: AssetType
    quantity: float
    cost_basis_per_unit: float
    price: float
    price_source: PriceSource
    current_value: float
    total_cost: float
    unrealized_pnl: float
    unrealized_pnl_pct: float


class AllocationSlice(BaseModel):
    """Current value aggregated for one instrument type."""

    asset_type: AssetType
    value: float
    weight_pct: float


class PortfolioSummary(BaseModel):
    """Portfolio valuation with aggregated metrics."""

    base_currency: str = ""
    current: float
    cost: float
    pnl: float
    pnl_pct: float
    allocation: List[AllocationSlice] = Field(default_factory=list)
    positions: List[PositionValue] = Field(default_factory=list)
    holdings_count: int = 0
