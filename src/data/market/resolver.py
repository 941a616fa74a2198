"""Price resolution: classify, fan out to providers, join, reconcile."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Iterable, Mapping, Optional

from src.config import get_settings
from .models import PriceMap, QuoteResult
from .providers import (
    COIN_IDS,
    CryptoQuotable,
    EquityQuotable,
    get_crypto_provider,
    get_equity_provider,
)
from .reconciler import reconcile
from .symbols import classify_symbols, normalize_symbols

logger = logging.getLogger(__name__)
settings = get_settings()


class PriceResolver:
    """Resolves a symbol set to a complete PriceMap.

    The crypto batch and the equity fan-out run at the same time; each
    returns its own partial result and the two are merged once, after
    both are done. With live prices off (or no providers), the map is
    built from the fallback table alone.
    """

    # Shared executor for the two provider buckets (reused across calls)
    _executor: Optional[ThreadPoolExecutor] = None

    def __init__(
        self,
        crypto_provider: Optional[CryptoQuotable] = None,
        equity_provider: Optional[EquityQuotable] = None,
        fallback: Optional[Mapping[str, float]] = None,
        use_live: bool = True,
    ):
        """Initialize resolver.

        Args:
            crypto_provider: Provider for crypto symbols (None disables crypto quotes)
            equity_provider: Provider for everything else (None disables equity quotes)
            fallback: Symbol -> fallback price. Defaults to settings.fallback_prices.
            use_live: Whether to call providers at all
        """
        self.crypto_provider = crypto_provider
        self.equity_provider = equity_provider
        self.fallback = dict(fallback if fallback is not None else settings.fallback_prices)
        self.use_live = use_live

    @classmethod
    def _get_executor(cls) -> ThreadPoolExecutor:
        """Get or create shared executor."""
        if cls._executor is None:
            cls._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="resolver")
        return cls._executor

    @property
    def crypto_ids(self) -> Mapping[str, str]:
        # Crypto stays out of the equity bucket even with crypto quotes disabled
        return self.crypto_provider.coin_ids if self.crypto_provider else COIN_IDS

    @staticmethod
    def _join(future: Optional[Future], bucket: str) -> Dict[str, QuoteResult]:
        """Wait for one provider bucket; an escaped error only empties that bucket."""
        if future is None:
            return {}
        try:
            return future.result()
        except Exception:
            logger.exception(f"Unexpected error in {bucket} price provider")
            return {}

    def resolve(self, symbols: Iterable[str], base_currency: str) -> PriceMap:
        """Resolve prices for symbols.

        Args:
            symbols: Requested symbols (any case, may repeat)
            base_currency: Target currency code for the providers

        Returns:
            PriceMap with one entry per normalized requested symbol
        """
        requested = normalize_symbols(symbols)
        base_currency = (base_currency or settings.default_base_currency).upper()

        if not self.use_live or not requested:
            return reconcile(requested, {}, {}, self.fallback, base_currency)

        partition = classify_symbols(requested, self.crypto_ids)
        executor = self._get_executor()

        crypto_future = None
        if self.crypto_provider and partition.crypto_ids:
            crypto_future = executor.submit(
                self.crypto_provider.get_crypto_quotes, partition.crypto_ids, base_currency
            )

        equity_future = None
        if self.equity_provider and partition.equities:
            equity_future = executor.submit(
                self.equity_provider.get_equity_quotes, partition.equities
            )

        crypto_results = self._join(crypto_future, "crypto")
        equity_results = self._join(equity_future, "equity")

        price_map = reconcile(
            requested, crypto_results, equity_results, self.fallback, base_currency
        )
        logger.info(
            f"Resolved {len(price_map)} symbols in {base_currency} "
            f"({len(partition.crypto_ids)} crypto, {len(partition.equities)} equity)"
        )
        return price_map


def build_price_resolver(preferences: Any) -> PriceResolver:
    """Build a resolver from persisted preferences.

    Args:
        preferences: Object with use_live_prices, crypto_provider,
            equity_provider and finnhub_api_key attributes

    Returns:
        Configured PriceResolver
    """
    api_key = preferences.finnhub_api_key or settings.finnhub_api_key or None
    return PriceResolver(
        crypto_provider=get_crypto_provider(preferences.crypto_provider),
        equity_provider=get_equity_provider(preferences.equity_provider, api_key),
        use_live=bool(preferences.use_live_prices),
    )
