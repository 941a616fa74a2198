"""Market data feeds: provider adapters and price resolution."""

from .board import PriceBoard
from .models import AssetType, PriceMap, PriceSource, QuoteResult, ResolvedPrice, valid_price
from .reconciler import reconcile
from .resolver import PriceResolver, build_price_resolver
from .symbols import TICKER_OVERRIDES, SymbolPartition, classify_symbols, normalize_symbol

__all__ = [
    "AssetType",
    "PriceBoard",
    "PriceMap",
    "PriceResolver",
    "PriceSource",
    "QuoteResult",
    "ResolvedPrice",
    "SymbolPartition",
    "TICKER_OVERRIDES",
    "build_price_resolver",
    "classify_symbols",
    "normalize_symbol",
    "reconcile",
    "valid_price",
]
