"""Application configuration using Pydantic Settings."""

import math
from functools import lru_cache
from typing import Dict

from pydantic import field_validator
from pydantic_settings import BaseSettings

# ===========================================
# Product Branding
# ===========================================
PRODUCT_NAME = "Portfolio Tracker"
PRODUCT_TAGLINE = "Track stocks, ETFs, and crypto in your base currency."
PRODUCT_VERSION = "1.0.0"
PRODUCT_DESCRIPTION = "Record holdings, resolve live prices, and see value and P&L."

# Supported base currencies (passed through to the price providers)
SUPPORTED_CURRENCIES = ("CAD", "USD", "EUR", "GBP")

# Demo prices, used when live prices are off or a symbol can't be priced
DEMO_PRICES: Dict[str, float] = {
    "DOL": 130,
    "ENB": 47,
    "VFV": 115,
    "QQC": 150,
    "XEQT": 35,
    "BTC": 62000,
    "ETH": 2500,
    "XRP": 0.6,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///./portfolio_tracker.db"

    # Finnhub (stocks/ETFs); can be overridden per user in preferences
    finnhub_api_key: str = ""

    # Defaults for freshly created preferences
    default_base_currency: str = "CAD"
    default_use_live_prices: bool = False

    # Market Data
    crypto_cache_seconds: int = 10
    request_timeout_seconds: float = 10.0
    max_quote_workers: int = 8
    fallback_prices: Dict[str, float] = dict(DEMO_PRICES)

    # Refresh loop (portfolio watch)
    refresh_interval_seconds: int = 60

    # API
    prices_rate_limit: str = "30/minute"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @field_validator("fallback_prices")
    @classmethod
    def normalize_fallback_prices(cls, v: Dict[str, float]) -> Dict[str, float]:
        # Only positive prices can ever be surfaced
        return {
            symbol.strip().upper(): float(price)
            for symbol, price in v.items()
            if symbol.strip() and math.isfinite(price) and price > 0
        }

    @field_validator("default_base_currency")
    @classmethod
    def currency_uppercase(cls, v: str) -> str:
        return v.strip().upper()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
