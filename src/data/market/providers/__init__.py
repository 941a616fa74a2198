"""Upstream price providers, one class per service.

Registries map the provider names stored in preferences to factories.
"""

from typing import Callable, Dict, Optional

from .base import CryptoQuotable, EquityQuotable, PriceProvider
from .coingecko import COIN_IDS, CoinGeckoProvider, coingecko_provider
from .finnhub import FinnhubProvider
from .yahoo import YahooFinanceProvider

# Registry mapping provider names to factories.
# Equity factories receive the (optional) Finnhub credential.
CRYPTO_PROVIDERS: Dict[str, Callable[[], CryptoQuotable]] = {
    "coingecko": lambda: coingecko_provider,
}

EQUITY_PROVIDERS: Dict[str, Callable[[Optional[str]], EquityQuotable]] = {
    "finnhub": lambda api_key: FinnhubProvider(api_key=api_key),
    "yahoo": lambda api_key: YahooFinanceProvider(),
}

# Selecting this name disables a provider bucket
NO_PROVIDER = "none"


def get_crypto_provider(name: str) -> Optional[CryptoQuotable]:
    """Build the crypto provider registered under name (None for 'none'/unknown)."""
    factory = CRYPTO_PROVIDERS.get((name or "").lower())
    return factory() if factory else None


def get_equity_provider(name: str, api_key: Optional[str] = None) -> Optional[EquityQuotable]:
    """Build the equity provider registered under name (None for 'none'/unknown)."""
    factory = EQUITY_PROVIDERS.get((name or "").lower())
    return factory(api_key) if factory else None


__all__ = [
    "PriceProvider",
    "CryptoQuotable",
    "EquityQuotable",
    "COIN_IDS",
    "CoinGeckoProvider",
    "coingecko_provider",
    "FinnhubProvider",
    "YahooFinanceProvider",
    "CRYPTO_PROVIDERS",
    "EQUITY_PROVIDERS",
    "NO_PROVIDER",
    "get_crypto_provider",
    "get_equity_provider",
]
