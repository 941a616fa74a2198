"""Finnhub stock/ETF price provider (requires an API key)."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Dict, List, Mapping, Optional

import requests

from src.config import get_settings
from src.data.market.models import QuoteResult, valid_price
from src.data.market.symbols import TICKER_OVERRIDES, provider_ticker
from .base import EquityQuotable

logger = logging.getLogger(__name__)
settings = get_settings()


class FinnhubProvider(EquityQuotable):
    """Per-symbol quotes from the Finnhub /quote endpoint, fetched in parallel."""

    BASE_URL = "https://finnhub.io/api/v1"

    # Shared executor for the per-symbol fan-out (reused across calls)
    _executor: Optional[ThreadPoolExecutor] = None

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        ticker_overrides: Optional[Mapping[str, str]] = None,
    ):
        """Initialize provider.

        Args:
            api_key: Finnhub token. None/empty means equities stay unresolved.
            timeout: Per-request timeout in seconds. Defaults to settings.
            ticker_overrides: Canonical -> listing ticker table. Defaults to TICKER_OVERRIDES.
        """
        self.api_key = (api_key or "").strip() or None
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.ticker_overrides = dict(
            ticker_overrides if ticker_overrides is not None else TICKER_OVERRIDES
        )

    @property
    def name(self) -> str:
        return "finnhub"

    def is_configured(self) -> bool:
        return self.api_key is not None

    @classmethod
    def _get_executor(cls) -> ThreadPoolExecutor:
        """Get or create shared executor."""
        if cls._executor is None:
            cls._executor = ThreadPoolExecutor(
                max_workers=settings.max_quote_workers, thread_name_prefix="finnhub"
            )
        return cls._executor

    def get_quote(self, symbol: str) -> QuoteResult:
        """Quote a single symbol. Never raises.

        Args:
            symbol: Canonical symbol (e.g. 'VFV'); overrides map it to 'VFV.TO'

        Returns:
            QuoteResult with the current price ('c') or the failure reason
        """
        ticker = provider_ticker(symbol, self.ticker_overrides)
        try:
            response = requests.get(
                f"{self.BASE_URL}/quote",
                params={"symbol": ticker, "token": self.api_key},
                timeout=self.timeout,
            )
            if not response.ok:
                return QuoteResult.failure(symbol, f"finnhub: HTTP {response.status_code}")
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Finnhub request failed for {symbol} ({ticker}): {e}")
            return QuoteResult.failure(symbol, f"finnhub: {e}")

        price = valid_price(data.get("c")) if isinstance(data, dict) else None
        if price is None:
            return QuoteResult.failure(symbol, f"finnhub: no usable price for {ticker}")

        logger.debug(f"Fetched {symbol} ({ticker}): {price}")
        return QuoteResult.success(symbol, price)

    def get_equity_quotes(self, symbols: List[str]) -> Dict[str, QuoteResult]:
        """Quote every symbol in parallel, one request each.

        Args:
            symbols: Normalized equity symbols

        Returns:
            Symbol -> QuoteResult. Empty when no API key is configured.
        """
        if not symbols:
            return {}
        if not self.is_configured():
            logger.info(f"No Finnhub API key; leaving {len(symbols)} equities unresolved")
            return {}

        executor = self._get_executor()
        futures = {symbol: executor.submit(self.get_quote, symbol) for symbol in symbols}

        results: Dict[str, QuoteResult] = {}
        for symbol, future in futures.items():
            try:
                # Each request carries its own timeout; this only guards a stuck worker
                results[symbol] = future.result(timeout=self.timeout * 2)
            except FuturesTimeoutError:
                logger.warning(f"Timeout waiting for Finnhub quote for {symbol}")
                results[symbol] = QuoteResult.failure(symbol, "finnhub: timed out")

        failed = [s for s, r in results.items() if not r.ok]
        if failed:
            logger.warning(f"Finnhub could not price: {', '.join(failed)}")
        return results
