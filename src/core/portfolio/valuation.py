"""Portfolio valuation from holdings and resolved prices."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from src.config import get_settings
from src.data.market.models import AssetType, PriceMap, PriceSource, valid_price
from src.data.market.symbols import normalize_symbol
from .models import AllocationSlice, PortfolioSummary, PositionValue

settings = get_settings()


def _pct(numerator: float, denominator: float) -> float:
    """Percentage, defined as 0 when the denominator is not positive."""
    return numerator / denominator * 100 if denominator > 0 else 0.0


def effective_price(
    symbol: str,
    prices: Mapping[str, Any],
    fallback: Mapping[str, float],
) -> Tuple[float, PriceSource]:
    """Price used for valuation: resolved ?? fallback ?? 0.

    Args:
        symbol: Normalized symbol
        prices: PriceMap, or a plain symbol -> price mapping
        fallback: Symbol -> fallback price

    Returns:
        Tuple of (price, source)
    """
    if isinstance(prices, PriceMap):
        entry = prices.get(symbol)
        if entry is not None and entry.price is not None:
            return entry.price, entry.source
    else:
        resolved = valid_price(prices.get(symbol))
        if resolved is not None:
            return resolved, PriceSource.LIVE

    backup = valid_price(fallback.get(symbol))
    if backup is not None:
        return backup, PriceSource.FALLBACK
    return 0.0, PriceSource.UNKNOWN


def calculate_valuation(
    holdings: Iterable[Any],
    prices: Mapping[str, Any],
    fallback: Optional[Mapping[str, float]] = None,
    base_currency: Optional[str] = None,
) -> PortfolioSummary:
    """Value a portfolio.

    Each holding is valued at its effective price times quantity, and
    costed at cost basis per unit times quantity. P&L % is 0 when the
    total cost is 0.

    Args:
        holdings: Objects with symbol, asset_type, quantity and
            cost_basis_per_unit attributes (ORM rows or schemas)
        prices: Resolved prices (PriceMap or symbol -> price)
        fallback: Last-resort prices. Defaults to settings.fallback_prices.
        base_currency: Currency label for the summary

    Returns:
        PortfolioSummary with totals, allocation by type and per-position rows
    """
    if fallback is None:
        fallback = settings.fallback_prices
    if base_currency is None:
        base_currency = getattr(prices, "base_currency", "")

    current = 0.0
    cost = 0.0
    by_type: Dict[AssetType, float] = {}
    positions = []

    for h in holdings:
        symbol = normalize_symbol(h.symbol)
        asset_type = (
            h.asset_type if isinstance(h.asset_type, AssetType) else AssetType.parse(h.asset_type)
        )
        price, source = effective_price(symbol, prices, fallback)

        position_value = price * h.quantity
        position_cost = h.cost_basis_per_unit * h.quantity
        current += position_value
        cost += position_cost
        by_type[asset_type] = by_type.get(asset_type, 0.0) + position_value

        positions.append(
            PositionValue(
                holding_id=getattr(h, "id", None),
                symbol=symbol,
                asset_type=asset_type,
                quantity=h.quantity,
                cost_basis_per_unit=h.cost_basis_per_unit,
                price=price,
                price_source=source,
                current_value=position_value,
                total_cost=position_cost,
                unrealized_pnl=position_value - position_cost,
                unrealized_pnl_pct=_pct(position_value - position_cost, position_cost),
            )
        )

    pnl = current - cost
    allocation = [
        AllocationSlice(asset_type=t, value=by_type[t], weight_pct=_pct(by_type[t], current))
        for t in AssetType
        if by_type.get(t, 0.0) > 0
    ]

    return PortfolioSummary(
        base_currency=base_currency,
        current=current,
        cost=cost,
        pnl=pnl,
        pnl_pct=_pct(pnl, cost),
        allocation=allocation,
        positions=positions,
        holdings_count=len(positions),
    )
