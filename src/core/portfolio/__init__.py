"""Portfolio management and valuation."""

from .models import (
    AllocationSlice,
    HoldingCreate,
    HoldingUpdate,
    HoldingResponse,
    PositionValue,
    PortfolioSummary,
)
from .repository import HoldingRepository
from .valuation import calculate_valuation, effective_price
from .csv_io import CSVImportError, export_holdings_csv, import_holdings_csv, parse_holdings_csv

__all__ = [
    "AllocationSlice",
    "HoldingCreate",
    "HoldingUpdate",
    "HoldingResponse",
    "PositionValue",
    "PortfolioSummary",
    "HoldingRepository",
    "calculate_valuation",
    "effective_price",
    "CSVImportError",
    "export_holdings_csv",
    "import_holdings_csv",
    "parse_holdings_csv",
]
