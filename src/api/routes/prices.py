"""Batch price resolution API route."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.api.deps import get_preferences, get_price_resolver
from src.config import get_settings
from src.data.market.resolver import PriceResolver
from src.db.models import Preferences

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()

# Rate limiter for the price endpoint (bounds upstream call rate)
limiter = Limiter(key_func=get_remote_address)


class PriceRequest(BaseModel):
    """Body of a batch resolution request."""

    symbols: List[str] = Field(default_factory=list)
    base_currency: Optional[str] = Field(None, alias="baseCurrency", max_length=10)

    model_config = {"populate_by_name": True}


class PriceResponse(BaseModel):
    """Resolved prices; null means no live or fallback price."""

    prices: Dict[str, Optional[float]]
    sources: Dict[str, str]
    base_currency: str = Field(..., serialization_alias="baseCurrency")


def bad_request() -> JSONResponse:
    """Structured client error carrying an empty price map."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"prices": {}, "error": "bad-request"},
    )


@router.post("/prices")
@limiter.limit(settings.prices_rate_limit)
async def resolve_prices(
    request: Request,
    prefs: Preferences = Depends(get_preferences),
    resolver: PriceResolver = Depends(get_price_resolver),
):
    """Resolve one price per requested symbol.

    Body: {"symbols": ["BTC", "VFV"], "baseCurrency": "CAD"}.
    Each symbol gets its live price, else its fallback price, else null.
    """
    try:
        body = await request.json()
        payload = PriceRequest.model_validate(body if body is not None else {})
    except (ValueError, ValidationError) as e:
        # JSON decode errors are ValueErrors too
        logger.info(f"Rejected price request: {e}")
        return bad_request()

    base_currency = payload.base_currency or prefs.base_currency
    # Provider calls block; keep them off the event loop
    price_map = await run_in_threadpool(resolver.resolve, payload.symbols, base_currency)

    response = PriceResponse(
        prices=price_map.to_prices(),
        sources=price_map.to_sources(),
        base_currency=price_map.base_currency,
    )
    return JSONResponse(content=response.model_dump(by_alias=True))
