"""Tests for the price resolver."""

import threading
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
import responses

from src.data.market.models import PriceSource, QuoteResult
from src.data.market.providers import (
    COIN_IDS,
    CryptoQuotable,
    EquityQuotable,
    FinnhubProvider,
    YahooFinanceProvider,
)
from src.data.market.providers.coingecko import CoinGeckoProvider
from src.data.market.resolver import PriceResolver, build_price_resolver

FALLBACK = {"DOL": 130, "BTC": 62000, "XRP": 0.6}


@pytest.fixture
def crypto():
    provider = Mock(spec=CryptoQuotable)
    provider.coin_ids = dict(COIN_IDS)
    provider.get_crypto_quotes.return_value = {}
    return provider


@pytest.fixture
def equity():
    provider = Mock(spec=EquityQuotable)
    provider.get_equity_quotes.return_value = {}
    return provider


class TestPriceResolver:
    """Tests for PriceResolver.resolve."""

    def test_routes_symbols_to_their_provider(self, crypto, equity):
        crypto.get_crypto_quotes.return_value = {"BTC": QuoteResult.success("BTC", 61000)}
        equity.get_equity_quotes.return_value = {"AAPL": QuoteResult.success("AAPL", 190)}
        resolver = PriceResolver(crypto, equity, fallback=FALLBACK)

        price_map = resolver.resolve(["btc", "AAPL"], "cad")

        crypto.get_crypto_quotes.assert_called_once_with({"BTC": "bitcoin"}, "CAD")
        equity.get_equity_quotes.assert_called_once_with(["AAPL"])
        assert price_map.to_prices() == {"BTC": 61000, "AAPL": 190}
        assert price_map.base_currency == "CAD"

    def test_missing_equity_credential_does_not_affect_crypto(self, crypto):
        """AAPL stays unresolved, BTC still resolves."""
        crypto.get_crypto_quotes.return_value = {"BTC": QuoteResult.success("BTC", 61000)}
        resolver = PriceResolver(crypto, FinnhubProvider(api_key=None), fallback={})

        with responses.RequestsMock() as rsps:
            price_map = resolver.resolve(["AAPL", "BTC"], "CAD")
            assert len(rsps.calls) == 0

        assert price_map["BTC"].source == PriceSource.LIVE
        assert price_map["AAPL"].source == PriceSource.UNKNOWN

    def test_partial_equity_failure(self, crypto, equity):
        """A failed symbol falls through; the rest keep their live prices."""
        equity.get_equity_quotes.return_value = {
            "AAPL": QuoteResult.failure("AAPL", "finnhub: HTTP 500"),
            "MSFT": QuoteResult.success("MSFT", 410),
        }
        resolver = PriceResolver(crypto, equity, fallback={"AAPL": 180})

        price_map = resolver.resolve(["AAPL", "MSFT"], "USD")

        assert price_map["MSFT"].price == 410
        assert price_map["AAPL"].price == 180
        assert price_map["AAPL"].source == PriceSource.FALLBACK

    def test_provider_exception_only_empties_its_bucket(self, crypto, equity):
        crypto.get_crypto_quotes.side_effect = RuntimeError("boom")
        equity.get_equity_quotes.return_value = {"AAPL": QuoteResult.success("AAPL", 190)}
        resolver = PriceResolver(crypto, equity, fallback=FALLBACK)

        price_map = resolver.resolve(["BTC", "ETH", "AAPL"], "CAD")

        assert price_map["AAPL"].source == PriceSource.LIVE
        assert price_map["BTC"].source == PriceSource.FALLBACK
        assert price_map["ETH"].source == PriceSource.UNKNOWN

    def test_live_disabled_uses_fallback_only(self, crypto, equity):
        resolver = PriceResolver(crypto, equity, fallback=FALLBACK, use_live=False)

        price_map = resolver.resolve(["DOL", "BTC", "AAPL"], "CAD")

        crypto.get_crypto_quotes.assert_not_called()
        equity.get_equity_quotes.assert_not_called()
        assert price_map.to_prices() == {"DOL": 130, "BTC": 62000, "AAPL": None}

    def test_crypto_never_sent_to_equity_provider(self, equity):
        """With crypto quotes disabled, BTC still is not an equity."""
        resolver = PriceResolver(None, equity, fallback=FALLBACK)

        price_map = resolver.resolve(["BTC", "AAPL"], "CAD")

        equity.get_equity_quotes.assert_called_once_with(["AAPL"])
        assert price_map["BTC"].source == PriceSource.FALLBACK

    def test_no_symbols(self, crypto, equity):
        resolver = PriceResolver(crypto, equity, fallback=FALLBACK)

        assert len(resolver.resolve([], "CAD")) == 0
        crypto.get_crypto_quotes.assert_not_called()

    def test_default_currency(self, crypto, equity):
        resolver = PriceResolver(crypto, equity, fallback=FALLBACK)

        price_map = resolver.resolve(["BTC"], "")

        assert price_map.base_currency == "CAD"

    def test_buckets_run_concurrently(self, crypto, equity):
        """Each bucket waits for the other to start; only a parallel run completes both."""
        crypto_started = threading.Event()
        equity_started = threading.Event()

        def crypto_quotes(coin_ids, currency):
            crypto_started.set()
            if not equity_started.wait(timeout=5):
                return {}
            return {"BTC": QuoteResult.success("BTC", 61000)}

        def equity_quotes(symbols):
            equity_started.set()
            if not crypto_started.wait(timeout=5):
                return {}
            return {"AAPL": QuoteResult.success("AAPL", 190)}

        crypto.get_crypto_quotes.side_effect = crypto_quotes
        equity.get_equity_quotes.side_effect = equity_quotes
        resolver = PriceResolver(crypto, equity, fallback={})

        price_map = resolver.resolve(["BTC", "AAPL"], "CAD")

        assert price_map.to_sources() == {"BTC": "live", "AAPL": "live"}


class TestBuildPriceResolver:
    """Tests for build_price_resolver."""

    def prefs(self, **overrides):
        values = dict(
            use_live_prices=True,
            crypto_provider="coingecko",
            equity_provider="finnhub",
            finnhub_api_key="pref-key",
        )
        values.update(overrides)
        return SimpleNamespace(**values)

    def test_builds_selected_providers(self):
        resolver = build_price_resolver(self.prefs())

        assert isinstance(resolver.crypto_provider, CoinGeckoProvider)
        assert isinstance(resolver.equity_provider, FinnhubProvider)
        assert resolver.equity_provider.api_key == "pref-key"
        assert resolver.use_live is True

    def test_yahoo_selection(self):
        resolver = build_price_resolver(self.prefs(equity_provider="yahoo"))

        assert isinstance(resolver.equity_provider, YahooFinanceProvider)

    def test_none_disables_provider(self):
        resolver = build_price_resolver(self.prefs(crypto_provider="none", equity_provider="none"))

        assert resolver.crypto_provider is None
        assert resolver.equity_provider is None

    def test_settings_key_used_when_preferences_have_none(self):
        with patch("src.data.market.resolver.settings") as mock_settings:
            mock_settings.finnhub_api_key = "env-key"
            mock_settings.fallback_prices = {}
            resolver = build_price_resolver(self.prefs(finnhub_api_key=None))

        assert resolver.equity_provider.api_key == "env-key"
