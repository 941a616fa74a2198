"""Symbol normalization and provider classification."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping

logger = logging.getLogger(__name__)

# Canonical symbol -> provider listing symbol.
# These instruments trade on the TSX, which quote services list with a .TO suffix.
TICKER_OVERRIDES: Dict[str, str] = {
    "DOL": "DOL.TO",
    "ENB": "ENB.TO",
    "VFV": "VFV.TO",
    "QQC": "QQC.TO",
    "XEQT": "XEQT.TO",
}


def normalize_symbol(symbol: str) -> str:
    """Normalize a user-entered symbol to its upper-case key."""
    return (symbol or "").strip().upper()


def normalize_symbols(symbols: Iterable[str]) -> List[str]:
    """Normalize, drop blanks and de-duplicate (first occurrence wins)."""
    seen: Dict[str, None] = {}
    for symbol in symbols:
        key = normalize_symbol(symbol)
        if key and key not in seen:
            seen[key] = None
    return list(seen)


def provider_ticker(symbol: str, overrides: Mapping[str, str] = TICKER_OVERRIDES) -> str:
    """Map a canonical symbol to the ticker the equity provider lists it under."""
    ticker = overrides.get(symbol, symbol)
    if ticker != symbol:
        logger.debug(f"Ticker override {symbol} -> {ticker}")
    return ticker


@dataclass
class SymbolPartition:
    """Requested symbols split by provider bucket."""

    crypto_ids: Dict[str, str] = field(default_factory=dict)  # symbol -> provider id
    equities: List[str] = field(default_factory=list)


def classify_symbols(symbols: Iterable[str], crypto_ids: Mapping[str, str]) -> SymbolPartition:
    """Split symbols into crypto (by id table) and equity buckets.

    Anything not in the crypto id table is treated as an equity; there is
    no "unknown instrument" rejection here.

    Args:
        symbols: Requested symbols (any case, may repeat)
        crypto_ids: Symbol -> crypto provider id table

    Returns:
        SymbolPartition with normalized symbols
    """
    partition = SymbolPartition()
    for symbol in normalize_symbols(symbols):
        coin_id = crypto_ids.get(symbol)
        if coin_id:
            partition.crypto_ids[symbol] = coin_id
        else:
            partition.equities.append(symbol)
    return partition
