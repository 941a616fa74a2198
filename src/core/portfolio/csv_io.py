"""CSV holdings interchange (export and all-or-nothing import)."""

from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass, field
from io import StringIO
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from src.core.portfolio.repository import HoldingRepository
from src.data.market.models import AssetType
from src.data.market.symbols import normalize_symbol

logger = logging.getLogger(__name__)

# Column names as written on export; matched case-insensitively on import
EXPORT_COLUMNS = ["symbol", "type", "quantity", "costBasisPerUnit", "currency", "exchange"]
REQUIRED_COLUMNS = ["symbol", "type", "quantity", "costBasisPerUnit"]

IMPORT_MODES = ("replace", "append")


class CSVImportError(ValueError):
    """Raised when a CSV file is rejected. Nothing has been changed."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


@dataclass
class ImportedHolding:
    """A holding parsed from a CSV row."""

    symbol: str
    asset_type: AssetType
    quantity: float
    cost_basis_per_unit: float
    currency: Optional[str] = None
    exchange: Optional[str] = None


@dataclass
class ImportResult:
    """Result of an import operation."""

    created: int
    removed: int
    holdings: List[ImportedHolding] = field(default_factory=list)


def format_number(value: float) -> str:
    """Format a number so float() reads back the identical value."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def parse_number(value: str, column: str) -> float:
    """Parse a non-negative number cell; empty means 0.

    Raises:
        ValueError: If the cell is not a finite, non-negative number
    """
    cleaned = (value or "").strip().replace(",", "")
    if not cleaned:
        return 0.0
    try:
        number = float(cleaned)
    except ValueError:
        raise ValueError(f"{column} is not a number: {value!r}")
    if not math.isfinite(number) or number < 0:
        raise ValueError(f"{column} must be a non-negative number, got {value!r}")
    return number


def export_holdings_csv(holdings: Iterable[Any]) -> str:
    """Render holdings as CSV text.

    Args:
        holdings: Objects with symbol, asset_type, quantity,
            cost_basis_per_unit, currency and exchange attributes

    Returns:
        CSV text with a header row
    """
    out = StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for h in holdings:
        asset_type = h.asset_type.value if isinstance(h.asset_type, AssetType) else h.asset_type
        writer.writerow(
            [
                h.symbol,
                asset_type,
                format_number(h.quantity),
                format_number(h.cost_basis_per_unit),
                h.currency or "",
                h.exchange or "",
            ]
        )
    return out.getvalue()


def parse_holdings_csv(csv_content: str) -> List[ImportedHolding]:
    """Parse CSV text into holdings.

    The header must contain symbol, type, quantity and costBasisPerUnit
    (any case, any order). Cells are read by header column index; blank
    lines are skipped; missing cells default to empty / zero.

    Args:
        csv_content: Raw CSV content

    Returns:
        Parsed holdings in file order

    Raises:
        CSVImportError: On a missing column or any invalid row
    """
    rows = [row for row in csv.reader(StringIO(csv_content)) if any(c.strip() for c in row)]
    if not rows:
        raise CSVImportError(["CSV file is empty"])

    header, data_rows = rows[0], rows[1:]
    idx: Dict[str, int] = {}
    for i, name in enumerate(header):
        idx.setdefault(name.strip().lower(), i)

    missing = [c for c in REQUIRED_COLUMNS if c.lower() not in idx]
    if missing:
        raise CSVImportError(
            [f"CSV must include columns: {','.join(REQUIRED_COLUMNS)} (missing: {','.join(missing)})"]
        )

    def cell(row: List[str], column: str) -> str:
        i = idx.get(column.lower())
        if i is None or i >= len(row):
            return ""
        return row[i].strip()

    holdings: List[ImportedHolding] = []
    errors: List[str] = []

    for row_num, row in enumerate(data_rows, start=2):
        try:
            symbol = normalize_symbol(cell(row, "symbol"))
            if not symbol:
                raise ValueError("symbol is empty")
            holdings.append(
                ImportedHolding(
                    symbol=symbol,
                    asset_type=AssetType.parse(cell(row, "type") or AssetType.STOCK.value),
                    quantity=parse_number(cell(row, "quantity"), "quantity"),
                    cost_basis_per_unit=parse_number(
                        cell(row, "costBasisPerUnit"), "costBasisPerUnit"
                    ),
                    currency=cell(row, "currency") or None,
                    exchange=cell(row, "exchange") or None,
                )
            )
        except ValueError as e:
            errors.append(f"Row {row_num}: {e}")

    if errors:
        raise CSVImportError(errors)
    return holdings


def import_holdings(
    db: Session,
    holdings: List[ImportedHolding],
    mode: str = "replace",
) -> ImportResult:
    """Write parsed holdings to the database.

    Args:
        db: Database session (the caller's transaction covers the whole import)
        holdings: Parsed holdings
        mode: 'replace' deletes existing holdings first; 'append' keeps them

    Returns:
        ImportResult with counts
    """
    if mode not in IMPORT_MODES:
        raise ValueError(f"Invalid mode: {mode}. Must be one of {', '.join(IMPORT_MODES)}")

    repo = HoldingRepository(db)
    removed = repo.delete_all() if mode == "replace" else 0

    for h in holdings:
        repo.create(
            symbol=h.symbol,
            quantity=h.quantity,
            cost_basis_per_unit=h.cost_basis_per_unit,
            asset_type=h.asset_type,
            currency=h.currency,
            exchange=h.exchange,
        )

    logger.info(f"Imported {len(holdings)} holdings ({mode}, removed {removed})")
    return ImportResult(created=len(holdings), removed=removed, holdings=holdings)


def import_holdings_csv(db: Session, csv_content: str, mode: str = "replace") -> ImportResult:
    """Parse and import a holdings CSV.

    Parsing happens before any write, so a rejected file leaves the
    existing holdings untouched.

    Raises:
        CSVImportError: If the file is rejected
        ValueError: If mode is invalid
    """
    if mode not in IMPORT_MODES:
        raise ValueError(f"Invalid mode: {mode}. Must be one of {', '.join(IMPORT_MODES)}")
    holdings = parse_holdings_csv(csv_content)
    return import_holdings(db, holdings, mode)
