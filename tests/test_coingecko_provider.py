"""Tests for the CoinGecko crypto provider."""

from unittest.mock import patch

import pytest
import responses
from responses import matchers

from src.data.market.providers.coingecko import CoinGeckoProvider

PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"


@pytest.fixture
def provider():
    return CoinGeckoProvider(cache_seconds=60, timeout=5)


class TestCoinGeckoProvider:
    """Tests for CoinGeckoProvider.get_crypto_quotes."""

    @responses.activate
    def test_single_batched_request(self, provider):
        """All coins are quoted with one request, currency lower-cased."""
        responses.add(
            responses.GET,
            PRICE_URL,
            json={"bitcoin": {"cad": 62000}, "ethereum": {"cad": 2500.5}},
            match=[
                matchers.query_param_matcher({"ids": "bitcoin,ethereum", "vs_currencies": "cad"})
            ],
        )

        results = provider.get_crypto_quotes({"BTC": "bitcoin", "ETH": "ethereum"}, "CAD")

        assert len(responses.calls) == 1
        assert results["BTC"].ok and results["BTC"].price == 62000
        assert results["ETH"].price == 2500.5

    @responses.activate
    def test_missing_coin_is_a_failure(self, provider):
        responses.add(responses.GET, PRICE_URL, json={"bitcoin": {"cad": 62000}})

        results = provider.get_crypto_quotes({"BTC": "bitcoin", "XRP": "ripple"}, "cad")

        assert results["BTC"].ok
        assert not results["XRP"].ok
        assert results["XRP"].price is None
        assert "ripple" in results["XRP"].error

    @responses.activate
    def test_non_positive_and_non_numeric_values_rejected(self, provider):
        responses.add(
            responses.GET,
            PRICE_URL,
            json={
                "bitcoin": {"usd": 0},
                "ethereum": {"usd": -1},
                "ripple": {"usd": "0.6"},
            },
        )

        results = provider.get_crypto_quotes(
            {"BTC": "bitcoin", "ETH": "ethereum", "XRP": "ripple"}, "usd"
        )

        assert not any(r.ok for r in results.values())

    @responses.activate
    def test_http_error_fails_whole_batch(self, provider):
        responses.add(responses.GET, PRICE_URL, status=429)

        results = provider.get_crypto_quotes({"BTC": "bitcoin", "ETH": "ethereum"}, "cad")

        assert set(results) == {"BTC", "ETH"}
        assert all(not r.ok for r in results.values())

    @responses.activate
    def test_non_object_body_fails_whole_batch(self, provider):
        responses.add(responses.GET, PRICE_URL, json=["unexpected"])

        results = provider.get_crypto_quotes({"BTC": "bitcoin"}, "cad")

        assert not results["BTC"].ok

    @responses.activate
    def test_cached_response_reused_within_window(self, provider):
        """Second identical query inside the window issues no request."""
        responses.add(responses.GET, PRICE_URL, json={"bitcoin": {"cad": 62000}})

        first = provider.get_crypto_quotes({"BTC": "bitcoin"}, "cad")
        second = provider.get_crypto_quotes({"BTC": "bitcoin"}, "cad")

        assert len(responses.calls) == 1
        assert first["BTC"].price == second["BTC"].price == 62000

    @responses.activate
    def test_cache_keyed_by_currency(self, provider):
        responses.add(responses.GET, PRICE_URL, json={"bitcoin": {"cad": 62000, "usd": 45000}})

        provider.get_crypto_quotes({"BTC": "bitcoin"}, "cad")
        usd = provider.get_crypto_quotes({"BTC": "bitcoin"}, "usd")

        assert len(responses.calls) == 2
        assert usd["BTC"].price == 45000

    @responses.activate
    def test_stale_cache_refetches(self):
        provider = CoinGeckoProvider(cache_seconds=0, timeout=5)
        responses.add(responses.GET, PRICE_URL, json={"bitcoin": {"cad": 62000}})

        provider.get_crypto_quotes({"BTC": "bitcoin"}, "cad")
        provider.get_crypto_quotes({"BTC": "bitcoin"}, "cad")

        assert len(responses.calls) == 2

    @responses.activate
    def test_expired_entries_dropped_on_store(self, provider):
        """Queries for other currencies don't pile up once they go stale."""
        responses.add(responses.GET, PRICE_URL, json={"bitcoin": {"cad": 1, "usd": 1, "eur": 1}})

        with patch("src.data.market.providers.coingecko.time") as mock_time:
            mock_time.monotonic.return_value = 1000.0
            provider.get_crypto_quotes({"BTC": "bitcoin"}, "cad")
            provider.get_crypto_quotes({"BTC": "bitcoin"}, "usd")
            assert len(provider._cache) == 2

            mock_time.monotonic.return_value = 1000.0 + 61
            provider.get_crypto_quotes({"BTC": "bitcoin"}, "eur")

        assert list(provider._cache) == [("bitcoin", "eur")]

    @responses.activate
    def test_failures_are_not_cached(self, provider):
        responses.add(responses.GET, PRICE_URL, status=500)
        responses.add(responses.GET, PRICE_URL, json={"bitcoin": {"cad": 62000}})

        assert not provider.get_crypto_quotes({"BTC": "bitcoin"}, "cad")["BTC"].ok
        assert provider.get_crypto_quotes({"BTC": "bitcoin"}, "cad")["BTC"].price == 62000

    def test_empty_request_makes_no_call(self, provider):
        with responses.RequestsMock() as rsps:
            assert provider.get_crypto_quotes({}, "cad") == {}
            assert len(rsps.calls) == 0
