"""
CoinGecko Reference Identity Provider

Exports the REST client and the closed exchange -> CoinGecko slug table.

Structure:
    providers/coingecko/
    ├── __init__.py          # This file (slug table)
    └── api_client.py        # REST API client
"""

from types import MappingProxyType
from typing import Iterable, Mapping

from core.exceptions import UnmappedExchangeError
from core.schemas import ExchangeId
from .api_client import CoinGeckoAPIClient

# CoinGecko names exchanges by its own slugs, not by our ids
REGISTRY_SLUGS: Mapping[ExchangeId, str] = MappingProxyType({
    ExchangeId.BINANCE: "binance",
    ExchangeId.MEXC: "mxc",
    ExchangeId.BYBIT: "bybit_spot",
})


def registry_slug_for(exchange_id: ExchangeId) -> str:
    """
    Return CoinGecko's slug for an exchange.

    Raises:
        UnmappedExchangeError: If the exchange has no slug
    """
    try:
        return REGISTRY_SLUGS[exchange_id]
    except KeyError:
        raise UnmappedExchangeError(
            f"No CoinGecko slug configured for exchange '{exchange_id}'",
            source=str(exchange_id),
        )


def check_registry_slugs(exchange_ids: Iterable[ExchangeId]) -> None:
    """Fail at startup if any configured exchange lacks a slug."""
    for exchange_id in exchange_ids:
        registry_slug_for(exchange_id)


__all__ = ["CoinGeckoAPIClient", "REGISTRY_SLUGS", "registry_slug_for", "check_registry_slugs"]
