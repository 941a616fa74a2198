"""Price resolution value types."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional


class AssetType(str, Enum):
    """Instrument types a holding can have."""

    STOCK = "Stock"
    ETF = "ETF"
    CRYPTO = "Crypto"

    @classmethod
    def parse(cls, value: str) -> "AssetType":
        """Parse a type name case-insensitively ('etf' -> ETF).

        Raises:
            ValueError: If the name is not a known type
        """
        cleaned = (value or "").strip().lower()
        for member in cls:
            if member.value.lower() == cleaned:
                return member
        raise ValueError(f"Unknown asset type: {value!r} (expected Stock, ETF or Crypto)")


class PriceSource(str, Enum):
    """Where a resolved price came from."""

    LIVE = "live"
    FALLBACK = "fallback"
    UNKNOWN = "unknown"


def valid_price(value: Any) -> Optional[float]:
    """Return value as a float if it is a usable price, else None.

    Usable means a real number (not a bool or string), finite and
    strictly positive. Anything else counts as "no price".
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    price = float(value)
    if not math.isfinite(price) or price <= 0:
        return None
    return price


@dataclass(frozen=True)
class QuoteResult:
    """Outcome of quoting one symbol at one provider."""

    symbol: str
    price: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.price is not None

    @classmethod
    def success(cls, symbol: str, price: float) -> "QuoteResult":
        return cls(symbol=symbol, price=price)

    @classmethod
    def failure(cls, symbol: str, reason: str) -> "QuoteResult":
        return cls(symbol=symbol, error=reason)


@dataclass(frozen=True)
class ResolvedPrice:
    """Final price for one requested symbol."""

    symbol: str
    price: Optional[float]
    source: PriceSource


class PriceMap(Mapping):
    """Read-only symbol -> ResolvedPrice mapping produced by one resolution cycle."""

    def __init__(self, entries: Mapping[str, ResolvedPrice], base_currency: str = ""):
        self._entries = MappingProxyType(dict(entries))
        self.base_currency = base_currency

    def __getitem__(self, symbol: str) -> ResolvedPrice:
        return self._entries[symbol]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"<PriceMap({self.base_currency}, {len(self)} symbols)>"

    def price_of(self, symbol: str) -> Optional[float]:
        """Resolved price for a symbol, None if unknown or not requested."""
        entry = self._entries.get(symbol.upper())
        return entry.price if entry else None

    def to_prices(self) -> Dict[str, Optional[float]]:
        """Plain symbol -> price dict (None for unknown)."""
        return {symbol: entry.price for symbol, entry in self._entries.items()}

    def to_sources(self) -> Dict[str, str]:
        """Plain symbol -> source name dict."""
        return {symbol: entry.source.value for symbol, entry in self._entries.items()}

    @property
    def unknown(self) -> List[str]:
        """Symbols that ended with no price at all."""
        return [s for s, e in self._entries.items() if e.source is PriceSource.UNKNOWN]
