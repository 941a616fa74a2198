"""Merge provider results and fallback prices into one price per symbol."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping

from .models import PriceMap, PriceSource, QuoteResult, ResolvedPrice, valid_price
from .symbols import normalize_symbols

logger = logging.getLogger(__name__)


def reconcile(
    symbols: Iterable[str],
    crypto_results: Mapping[str, QuoteResult],
    equity_results: Mapping[str, QuoteResult],
    fallback: Mapping[str, float],
    base_currency: str = "",
) -> PriceMap:
    """Build the final price map for a resolution cycle.

    Precedence per symbol: live quote > fallback table > unknown. Every
    requested symbol gets exactly one entry; nothing is dropped or added.

    Args:
        symbols: Requested symbols
        crypto_results: Partial results from the crypto provider
        equity_results: Partial results from the equity provider
        fallback: Symbol -> last-known/demo price
        base_currency: Currency the live quotes are in

    Returns:
        Immutable PriceMap keyed by normalized symbol
    """
    entries: Dict[str, ResolvedPrice] = {}

    for symbol in normalize_symbols(symbols):
        quotes = [
            q for q in (crypto_results.get(symbol), equity_results.get(symbol)) if q is not None
        ]
        live = next(
            (valid_price(q.price) for q in quotes if valid_price(q.price) is not None), None
        )
        if live is not None:
            entries[symbol] = ResolvedPrice(symbol, live, PriceSource.LIVE)
            continue

        for quote in quotes:
            if quote.error:
                logger.debug(f"No live price for {symbol}: {quote.error}")

        backup = valid_price(fallback.get(symbol))
        if backup is not None:
            entries[symbol] = ResolvedPrice(symbol, backup, PriceSource.FALLBACK)
        else:
            entries[symbol] = ResolvedPrice(symbol, None, PriceSource.UNKNOWN)

    price_map = PriceMap(entries, base_currency=base_currency)
    if price_map.unknown:
        logger.info(f"Unpriced symbols: {', '.join(price_map.unknown)}")
    return price_map
