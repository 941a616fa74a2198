"""Persisted user preferences (base currency, live prices, providers, credentials)."""

from .models import PreferencesResponse, PreferencesUpdate, ProviderSelection
from .repository import PreferencesRepository

__all__ = [
    "PreferencesResponse",
    "PreferencesUpdate",
    "ProviderSelection",
    "PreferencesRepository",
]
