"""Pydantic schemas for user preferences."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from src.data.market.providers import CRYPTO_PROVIDERS, EQUITY_PROVIDERS, NO_PROVIDER


def _check_provider(name: str, registry) -> str:
    name = name.strip().lower()
    if name != NO_PROVIDER and name not in registry:
        choices = ", ".join([*registry, NO_PROVIDER])
        raise ValueError(f"Unknown provider {name!r}; choose one of: {choices}")
    return name


class ProviderSelection(BaseModel):
    """Which upstream service prices each instrument bucket."""

    crypto: str = "coingecko"
    equity: str = "finnhub"


class PreferencesUpdate(BaseModel):
    """Schema for updating preferences. Omitted fields are left alone."""

    base_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    use_live_prices: Optional[bool] = None
    crypto_provider: Optional[str] = None
    equity_provider: Optional[str] = None
    finnhub_api_key: Optional[str] = Field(None, description="Empty string clears the key")

    @field_validator("base_currency")
    @classmethod
    def currency_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        if not v.isalpha():
            raise ValueError(f"Currency must be a 3-letter code, got {v!r}")
        return v

    @field_validator("crypto_provider")
    @classmethod
    def known_crypto_provider(cls, v: Optional[str]) -> Optional[str]:
        return _check_provider(v, CRYPTO_PROVIDERS) if v is not None else v

    @field_validator("equity_provider")
    @classmethod
    def known_equity_provider(cls, v: Optional[str]) -> Optional[str]:
        return _check_provider(v, EQUITY_PROVIDERS) if v is not None else v


class PreferencesResponse(BaseModel):
    """Preferences as shown to clients (credentials masked)."""

    base_currency: str
    use_live_prices: bool
    providers: ProviderSelection
    has_finnhub_api_key: bool

    @classmethod
    def from_row(cls, prefs, env_api_key: str = "") -> "PreferencesResponse":
        return cls(
            base_currency=prefs.base_currency,
            use_live_prices=prefs.use_live_prices,
            providers=ProviderSelection(
                crypto=prefs.crypto_provider,
                equity=prefs.equity_provider,
            ),
            has_finnhub_api_key=bool(prefs.finnhub_api_key or env_api_key),
        )
