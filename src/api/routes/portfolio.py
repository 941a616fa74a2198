"""Portfolio API routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from src.api.deps import get_db, get_preferences, get_price_resolver
from src.core.portfolio.csv_io import (
    IMPORT_MODES,
    CSVImportError,
    export_holdings_csv,
    import_holdings,
    parse_holdings_csv,
)
from src.core.portfolio.models import (
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
    PortfolioSummary,
)
from src.core.portfolio.repository import HoldingRepository
from src.core.portfolio.valuation import calculate_valuation
from src.data.market.resolver import PriceResolver
from src.db.models import Preferences

router = APIRouter()


class ImportResultResponse(BaseModel):
    """Response for import operation."""

    status: str
    mode: str
    created: int
    removed: int


@router.get("/", response_model=List[HoldingResponse])
def list_holdings(db: Session = Depends(get_db)):
    """List all holdings."""
    return HoldingRepository(db).get_all()


@router.post("/", response_model=HoldingResponse, status_code=status.HTTP_201_CREATED)
def add_holding(payload: HoldingCreate, db: Session = Depends(get_db)):
    """Add a new holding."""
    repo = HoldingRepository(db)
    return repo.create(
        symbol=payload.symbol,
        quantity=payload.quantity,
        cost_basis_per_unit=payload.cost_basis_per_unit,
        asset_type=payload.asset_type,
        currency=payload.currency,
        exchange=payload.exchange,
    )


@router.get("/summary", response_model=PortfolioSummary)
async def portfolio_summary(
    db: Session = Depends(get_db),
    prefs: Preferences = Depends(get_preferences),
    resolver: PriceResolver = Depends(get_price_resolver),
):
    """Value the portfolio at freshly resolved prices."""
    holdings = HoldingRepository(db).get_all()
    prices = await run_in_threadpool(
        resolver.resolve, [h.symbol for h in holdings], prefs.base_currency
    )
    return calculate_valuation(
        holdings, prices, fallback=resolver.fallback, base_currency=prefs.base_currency
    )


@router.get("/export", response_class=PlainTextResponse)
def export_csv(db: Session = Depends(get_db)):
    """Download holdings as CSV."""
    csv_content = export_holdings_csv(HoldingRepository(db).get_all())
    return PlainTextResponse(
        csv_content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="holdings.csv"'},
    )


@router.post("/import", response_model=ImportResultResponse)
async def import_csv(
    file: UploadFile = File(..., description="Holdings CSV file"),
    mode: str = Query(
        "replace",
        description="Import mode: replace (delete all first) or append (keep existing)",
    ),
    db: Session = Depends(get_db),
):
    """Import holdings from CSV.

    The whole file is validated before anything is written; a rejected
    file leaves the current holdings untouched.
    """
    if mode not in IMPORT_MODES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid mode: {mode}. Must be 'replace' or 'append'",
        )

    # Read file content
    try:
        content = await file.read()
        csv_content = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Error reading file: {str(e)}",
        )

    try:
        holdings = parse_holdings_csv(csv_content)
    except CSVImportError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Import failed: {e}",
        )

    result = import_holdings(db, holdings, mode)
    return ImportResultResponse(
        status="ok",
        mode=mode,
        created=result.created,
        removed=result.removed,
    )


@router.get("/{holding_id}", response_model=HoldingResponse)
def get_holding(holding_id: str, db: Session = Depends(get_db)):
    """Get a specific holding."""
    holding = HoldingRepository(db).get_by_id(holding_id)
    if not holding:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Holding {holding_id} not found",
        )
    return holding


@router.patch("/{holding_id}", response_model=HoldingResponse)
def update_holding(holding_id: str, payload: HoldingUpdate, db: Session = Depends(get_db)):
    """Update a holding."""
    repo = HoldingRepository(db)
    try:
        updated = repo.update(
            holding_id=holding_id,
            symbol=payload.symbol,
            asset_type=payload.asset_type,
            quantity=payload.quantity,
            cost_basis_per_unit=payload.cost_basis_per_unit,
            currency=payload.currency,
            exchange=payload.exchange,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Holding {holding_id} not found",
        )
    return updated


@router.delete("/{holding_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holding(holding_id: str, db: Session = Depends(get_db)):
    """Delete a holding."""
    if not HoldingRepository(db).delete(holding_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Holding {holding_id} not found",
        )
