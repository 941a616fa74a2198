"""Price refresh service - resolves prices for the stored portfolio."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from src.core.portfolio.models import PortfolioSummary
from src.core.portfolio.repository import HoldingRepository
from src.core.portfolio.valuation import calculate_valuation
from src.core.preferences.repository import PreferencesRepository
from src.data.market.board import PriceBoard
from src.data.market.models import PriceMap
from src.data.market.resolver import PriceResolver, build_price_resolver
from src.db.database import get_db

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Prices and valuation from one refresh cycle."""

    prices: PriceMap
    summary: PortfolioSummary


def value_portfolio(db: Session, resolver: Optional[PriceResolver] = None) -> RefreshResult:
    """Resolve prices for all holdings and value the portfolio.

    Args:
        db: Database session
        resolver: Resolver to use. Defaults to one built from preferences.

    Returns:
        RefreshResult with the fresh price map and valuation
    """
    prefs = PreferencesRepository(db).get()
    holdings = HoldingRepository(db).get_all()
    resolver = resolver or build_price_resolver(prefs)

    prices = resolver.resolve([h.symbol for h in holdings], prefs.base_currency)
    summary = calculate_valuation(
        holdings, prices, fallback=resolver.fallback, base_currency=prefs.base_currency
    )
    return RefreshResult(prices=prices, summary=summary)


def run_refresh_cycle(
    board: Optional[PriceBoard] = None,
    resolver: Optional[PriceResolver] = None,
) -> RefreshResult:
    """Run one refresh cycle and publish the prices.

    Args:
        board: Board to publish the new price map to
        resolver: Resolver override (mainly for tests)

    Returns:
        RefreshResult of this cycle
    """
    with get_db() as db:
        result = value_portfolio(db, resolver)

    if board is not None:
        board.publish(result.prices)

    logger.info(
        f"Refreshed {result.summary.holdings_count} holdings: "
        f"value {result.summary.current:,.2f} {result.summary.base_currency}"
    )
    return result
