"""Preferences repository (single row)."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from src.config import get_settings
from src.db.models import Preferences

settings = get_settings()

PREFERENCES_ID = 1


class PreferencesRepository:
    """Reads and updates the single preferences row."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def get(self) -> Preferences:
        """Get preferences, creating them from settings defaults if missing."""
        prefs = self.db.query(Preferences).filter_by(id=PREFERENCES_ID).first()
        if not prefs:
            prefs = Preferences(
                id=PREFERENCES_ID,
                base_currency=settings.default_base_currency,
                use_live_prices=settings.default_use_live_prices,
                crypto_provider="coingecko",
                equity_provider="finnhub",
            )
            self.db.add(prefs)
            self.db.flush()
        return prefs

    def update(
        self,
        base_currency: Optional[str] = None,
        use_live_prices: Optional[bool] = None,
        crypto_provider: Optional[str] = None,
        equity_provider: Optional[str] = None,
        finnhub_api_key: Optional[str] = None,
    ) -> Preferences:
        """Update preferences.

        Args:
            base_currency: New base currency code
            use_live_prices: Toggle live prices
            crypto_provider: Crypto provider name
            equity_provider: Equity provider name
            finnhub_api_key: New Finnhub key; empty string clears it

        Returns:
            Updated preferences
        """
        prefs = self.get()

        if base_currency is not None:
            prefs.base_currency = base_currency.upper()
        if use_live_prices is not None:
            prefs.use_live_prices = use_live_prices
        if crypto_provider is not None:
            prefs.crypto_provider = crypto_provider
        if equity_provider is not None:
            prefs.equity_provider = equity_provider
        if finnhub_api_key is not None:
            prefs.finnhub_api_key = finnhub_api_key.strip() or None

        self.db.flush()
        return prefs
