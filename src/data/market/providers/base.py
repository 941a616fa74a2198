"""Base price provider abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping

from src.data.market.models import QuoteResult


class PriceProvider(ABC):
    """Common surface of every upstream price service."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key of the provider (e.g. 'coingecko')."""
        pass

    def is_configured(self) -> bool:
        """Whether the provider has everything it needs to make calls."""
        return True


class CryptoQuotable(PriceProvider):
    """Provider that prices crypto assets in one batched call.

    Implementations own their symbol -> provider id table; the classifier
    uses it to decide which requested symbols are crypto.
    """

    @property
    @abstractmethod
    def coin_ids(self) -> Mapping[str, str]:
        """Symbol -> provider-specific coin id."""
        pass

    @abstractmethod
    def get_crypto_quotes(
        self,
        coin_ids: Mapping[str, str],
        currency: str,
    ) -> Dict[str, QuoteResult]:
        """Quote a batch of coins.

        Must never raise for transport or parse failures.

        Args:
            coin_ids: Requested symbol -> coin id
            currency: Target currency code (any case)

        Returns:
            Requested symbol -> QuoteResult
        """
        pass


class EquityQuotable(PriceProvider):
    """Provider that prices stocks/ETFs one symbol at a time."""

    @abstractmethod
    def get_equity_quotes(self, symbols: List[str]) -> Dict[str, QuoteResult]:
        """Quote each symbol independently.

        One symbol's failure must never affect its siblings, and the call
        must never raise for transport or parse failures.

        Args:
            symbols: Normalized equity symbols

        Returns:
            Symbol -> QuoteResult (may be empty if the provider is unusable)
        """
        pass
