"""CoinGecko crypto price provider (no API key needed)."""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from src.config import get_settings
from src.data.market.models import QuoteResult, valid_price
from .base import CryptoQuotable

logger = logging.getLogger(__name__)
settings = get_settings()

# Symbol -> CoinGecko coin id
COIN_IDS: Dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "XRP": "ripple",
}


class CoinGeckoProvider(CryptoQuotable):
    """Batched crypto quotes from the CoinGecko simple price endpoint.

    Successful responses are cached for a short window so repeated
    refreshes don't hammer the public API. The cache key is the exact
    (ids, currency) query.
    """

    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        coin_ids: Optional[Mapping[str, str]] = None,
        cache_seconds: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize provider.

        Args:
            coin_ids: Symbol -> coin id table. Defaults to COIN_IDS.
            cache_seconds: Staleness window for cached responses. Defaults to settings.
            timeout: Per-request timeout in seconds. Defaults to settings.
        """
        self._coin_ids = dict(coin_ids if coin_ids is not None else COIN_IDS)
        self.cache_seconds = (
            cache_seconds if cache_seconds is not None else settings.crypto_cache_seconds
        )
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._cache: Dict[Tuple[str, str], Tuple[float, Dict[str, Any]]] = {}
        self._lock = Lock()

    @property
    def name(self) -> str:
        return "coingecko"

    @property
    def coin_ids(self) -> Mapping[str, str]:
        return self._coin_ids

    def _cached(self, key: Tuple[str, str]) -> Optional[Dict[str, Any]]:
        with self._lock:
            entry = self._cache.get(key)
            if entry and time.monotonic() - entry[0] < self.cache_seconds:
                return entry[1]
            return None

    def _store(self, key: Tuple[str, str], payload: Dict[str, Any]) -> None:
        now = time.monotonic()
        with self._lock:
            # Drop expired queries so one-off currencies don't accumulate
            expired = [k for k, (at, _) in self._cache.items() if now - at >= self.cache_seconds]
            for k in expired:
                del self._cache[k]
            self._cache[key] = (now, payload)

    def _fetch(self, ids: str, currency: str) -> Dict[str, Any]:
        """Call /simple/price and return the decoded body.

        Raises:
            requests.RequestException: On transport errors or non-2xx status
            ValueError: If the body is not a JSON object
        """
        response = requests.get(
            f"{self.BASE_URL}/simple/price",
            params={"ids": ids, "vs_currencies": currency},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Unexpected CoinGecko response shape")
        return payload

    def get_crypto_quotes(
        self,
        coin_ids: Mapping[str, str],
        currency: str,
    ) -> Dict[str, QuoteResult]:
        """Quote all requested coins with a single request.

        Args:
            coin_ids: Requested symbol -> coin id
            currency: Target currency code (lower-cased on the wire)

        Returns:
            Requested symbol -> QuoteResult (failures on any upstream error)
        """
        if not coin_ids:
            return {}

        currency = currency.lower()
        ids = ",".join(coin_ids.values())
        key = (ids, currency)

        payload = self._cached(key)
        if payload is not None:
            logger.debug(f"Cache hit for CoinGecko {ids} in {currency}")
        else:
            try:
                payload = self._fetch(ids, currency)
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"CoinGecko request failed for {ids}: {e}")
                return {
                    symbol: QuoteResult.failure(symbol, f"coingecko: {e}")
                    for symbol in coin_ids
                }
            self._store(key, payload)

        results: Dict[str, QuoteResult] = {}
        for symbol, coin_id in coin_ids.items():
            by_currency = payload.get(coin_id)
            raw = by_currency.get(currency) if isinstance(by_currency, dict) else None
            price = valid_price(raw)
            if price is None:
                results[symbol] = QuoteResult.failure(
                    symbol, f"coingecko: no usable {currency} price for {coin_id}"
                )
            else:
                results[symbol] = QuoteResult.success(symbol, price)

        logger.debug(
            f"CoinGecko priced {sum(r.ok for r in results.values())}/{len(results)} coins"
        )
        return results


# Singleton instance so the response cache is shared across resolutions
coingecko_provider = CoinGeckoProvider()
