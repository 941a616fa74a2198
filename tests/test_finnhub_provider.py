"""Tests for the Finnhub equity provider."""

import time
from unittest.mock import patch

import pytest
import requests
import responses
from responses import matchers

from src.data.market.models import QuoteResult
from src.data.market.providers.finnhub import FinnhubProvider

QUOTE_URL = "https://finnhub.io/api/v1/quote"
API_KEY = "test-api-key-12345"


@pytest.fixture
def provider():
    return FinnhubProvider(api_key=API_KEY, timeout=5)


def add_quote(symbol, body=None, status=200):
    """Register a /quote response for one listing symbol."""
    responses.add(
        responses.GET,
        QUOTE_URL,
        json=body if body is not None else {},
        status=status,
        match=[matchers.query_param_matcher({"symbol": symbol, "token": API_KEY})],
    )


@pytest.fixture
def fh_quote_response():
    """Sample successful quote response."""
    return {
        "c": 605.23,  # Current price
        "d": 2.23,
        "dp": 0.3699,
        "h": 607.50,
        "l": 602.10,
        "o": 603.00,
        "pc": 603.00,
        "t": 1738267200,
    }


class TestGetQuote:
    """Tests for FinnhubProvider.get_quote."""

    @responses.activate
    def test_success_uses_current_price(self, provider, fh_quote_response):
        add_quote("AAPL", fh_quote_response)

        result = provider.get_quote("AAPL")

        assert result.ok
        assert result.price == 605.23

    @responses.activate
    def test_ticker_override_reaches_the_wire(self, provider):
        """VFV is requested from Finnhub as VFV.TO but keyed as VFV."""
        add_quote("VFV.TO", {"c": 115.4})

        result = provider.get_quote("VFV")

        assert result.symbol == "VFV"
        assert result.price == 115.4
        assert "symbol=VFV.TO" in responses.calls[0].request.url

    @responses.activate
    def test_http_error_is_failure(self, provider):
        add_quote("AAPL", {"error": "limit"}, status=429)

        result = provider.get_quote("AAPL")

        assert not result.ok
        assert "429" in result.error

    @responses.activate
    def test_zero_price_is_failure(self, provider):
        """Finnhub answers unknown tickers with c=0."""
        add_quote("ZZZZ", {"c": 0, "d": None, "dp": None})

        assert not provider.get_quote("ZZZZ").ok

    @responses.activate
    def test_missing_price_field_is_failure(self, provider):
        add_quote("AAPL", {"d": 1.0})

        assert not provider.get_quote("AAPL").ok

    @responses.activate
    def test_connection_error_is_failure(self, provider):
        responses.add(
            responses.GET, QUOTE_URL, body=requests.ConnectionError("connection refused")
        )

        result = provider.get_quote("AAPL")

        assert not result.ok
        assert "connection refused" in result.error


class TestGetEquityQuotes:
    """Tests for FinnhubProvider.get_equity_quotes."""

    @responses.activate
    def test_one_request_per_symbol(self, provider):
        add_quote("AAPL", {"c": 190.0})
        add_quote("MSFT", {"c": 410.0})
        add_quote("ENB.TO", {"c": 47.2})

        results = provider.get_equity_quotes(["AAPL", "MSFT", "ENB"])

        assert len(responses.calls) == 3
        assert {s: r.price for s, r in results.items()} == {
            "AAPL": 190.0,
            "MSFT": 410.0,
            "ENB": 47.2,
        }

    @responses.activate
    def test_partial_failure_keeps_successes(self, provider):
        """One failed symbol does not affect the others."""
        add_quote("AAPL", status=500)
        add_quote("MSFT", {"c": 410.0})

        results = provider.get_equity_quotes(["AAPL", "MSFT"])

        assert not results["AAPL"].ok
        assert results["MSFT"].ok
        assert results["MSFT"].price == 410.0

    def test_missing_api_key_makes_no_requests(self):
        provider = FinnhubProvider(api_key="", timeout=5)

        with responses.RequestsMock() as rsps:
            assert provider.get_equity_quotes(["AAPL", "MSFT"]) == {}
            assert len(rsps.calls) == 0

    def test_whitespace_api_key_counts_as_missing(self):
        assert not FinnhubProvider(api_key="   ").is_configured()
        assert FinnhubProvider(api_key=API_KEY).is_configured()

    def test_empty_symbol_list(self, provider):
        assert provider.get_equity_quotes([]) == {}

    def test_slow_symbol_times_out_alone(self):
        """A stuck lookup fails only its own symbol."""
        provider = FinnhubProvider(api_key=API_KEY, timeout=0.2)

        def fake_quote(symbol):
            if symbol == "SLOW":
                time.sleep(1)
            return QuoteResult.success(symbol, 10.0)

        with patch.object(provider, "get_quote", side_effect=fake_quote):
            results = provider.get_equity_quotes(["SLOW", "FAST"])

        assert results["SLOW"].price is None
        assert results["SLOW"].error == "finnhub: timed out"
        assert results["FAST"].price == 10.0
