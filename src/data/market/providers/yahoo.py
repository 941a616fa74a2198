"""Yahoo Finance stock/ETF price provider via yfinance (no API key)."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Dict, List, Mapping, Optional

import yfinance as yf

from src.config import get_settings
from src.data.market.models import QuoteResult, valid_price
from src.data.market.symbols import TICKER_OVERRIDES, provider_ticker
from .base import EquityQuotable

logger = logging.getLogger(__name__)
settings = get_settings()


class YahooFinanceProvider(EquityQuotable):
    """Equity quotes from Yahoo Finance, one yfinance lookup per symbol."""

    # Shared executor for timeout handling (reused across calls)
    _executor: Optional[ThreadPoolExecutor] = None

    def __init__(
        self,
        timeout: Optional[float] = None,
        ticker_overrides: Optional[Mapping[str, str]] = None,
    ):
        """Initialize provider.

        Args:
            timeout: Timeout for each yfinance lookup in seconds.
            ticker_overrides: Canonical -> listing ticker table.
        """
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.ticker_overrides = dict(
            ticker_overrides if ticker_overrides is not None else TICKER_OVERRIDES
        )

    @property
    def name(self) -> str:
        return "yahoo"

    @classmethod
    def _get_executor(cls) -> ThreadPoolExecutor:
        """Get or create shared executor."""
        if cls._executor is None:
            cls._executor = ThreadPoolExecutor(
                max_workers=settings.max_quote_workers, thread_name_prefix="yahoo"
            )
        return cls._executor

    @staticmethod
    def _lookup_price(ticker: str):
        """Current price, falling back to the last daily close."""
        info = yf.Ticker(ticker).info or {}
        p = info.get("currentPrice") or info.get("regularMarketPrice")
        if p is None:
            hist = yf.Ticker(ticker).history(period="1d")
            if not hist.empty:
                p = float(hist["Close"].iloc[-1])
        return p

    def get_quote(self, symbol: str) -> QuoteResult:
        """Quote one symbol. Never raises."""
        ticker = provider_ticker(symbol, self.ticker_overrides)
        try:
            raw = self._lookup_price(ticker)
        except Exception as e:
            # yfinance surfaces HTTP and parse problems as assorted exception types
            logger.error(f"yfinance error for {symbol} (Yahoo: {ticker}): {e}")
            return QuoteResult.failure(symbol, f"yahoo: {e}")

        price = valid_price(raw)
        if price is None:
            return QuoteResult.failure(symbol, f"yahoo: no usable price for {ticker}")
        return QuoteResult.success(symbol, price)

    def get_equity_quotes(self, symbols: List[str]) -> Dict[str, QuoteResult]:
        """Quote every symbol in parallel.

        Args:
            symbols: Normalized equity symbols

        Returns:
            Symbol -> QuoteResult
        """
        if not symbols:
            return {}

        executor = self._get_executor()
        futures = {symbol: executor.submit(self.get_quote, symbol) for symbol in symbols}

        results: Dict[str, QuoteResult] = {}
        for symbol, future in futures.items():
            try:
                results[symbol] = future.result(timeout=self.timeout)
            except FuturesTimeoutError:
                logger.warning(f"Timeout after {self.timeout}s fetching {symbol} from Yahoo")
                results[symbol] = QuoteResult.failure(symbol, "yahoo: timed out")
        return results
