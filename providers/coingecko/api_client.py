"""
CoinGecko REST API Client

This module provides an async HTTP client for the CoinGecko API v3.
It handles:
- The full list of active coins (canonical identities)
- Per-exchange symbol -> coin id maps built from exchange tickers
- Stablecoin ids and market data for asset info

Transport (timeouts, 429 retry with backoff) is delegated to HttpClient.
When ``settings.coingecko_api_key`` is set it is sent as the demo API key
header on every request.

API Documentation:
    https://docs.coingecko.com/v3.0.1/reference/introduction

Rate Limits:
    - Public API: roughly 5-15 calls per minute
    - Demo key: 30 calls per minute
    - Paged endpoints make one call per page, so symbol maps for big
      exchanges cost several calls

Usage:
    async with CoinGeckoAPIClient() as client:
        coins = await client.get_coins_list()
        symbol_map = await client.get_symbol_to_id_map("binance")
"""

from typing import Any, Dict, Iterable, List, Optional

from core.config import settings
from core.exceptions import CoinHubError
from core.http_client import HttpClient
from core.logging import get_logger
from core.result import Result
from core.schemas import RegistryAsset, RegistryCoin

MAX_IDS_PER_REQUEST = 250
MAX_TICKERS_PER_REQUEST = 100

SOURCE = "coingecko"


class CoinGeckoAPIClient:
    """
    Async HTTP client for the CoinGecko API v3

    Attributes:
        http: Shared HttpClient bound to settings.coingecko_base_url
        logger: Logger instance for debugging

    Example:
        >>> async with CoinGeckoAPIClient() as client:
        ...     result = await client.get_symbol_to_id_map("mxc")
        ...     print(result.value.get("BTC"))
        bitcoin
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None):
        headers = settings.coingecko_headers
        if api_key:
            headers = {**headers, "x-cg-demo-api-key": api_key}
        self.http = HttpClient(SOURCE, base_url or settings.coingecko_base_url, headers=headers)
        self.logger = get_logger(__name__)

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        await self.http.open()
        self.logger.debug("CoinGeckoAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.http.close()
        self.logger.debug("CoinGeckoAPIClient session closed")

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, failure_message: Optional[str] = None) -> Result[Any]:
        return await self.http.get_json(path, params, failure_message)

    # ============================================
    # Identity Methods
    # ============================================

    async def get_coins_list(self) -> Result[List[RegistryCoin]]:
        """
        Fetch every active coin CoinGecko tracks.

        CoinGecko Endpoint:
            GET /api/v3/coins/list

        Response Format:
            [{"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"}, ...]
        """
        result = await self._get("/api/v3/coins/list", failure_message="Failed to retrieve coins list from CoinGecko")
        if result.is_failure:
            return result

        try:
            coins = [RegistryCoin.model_validate(item) for item in result.value or []]
        except ValueError as e:
            return Result.fail(CoinHubError(f"Malformed coins list from CoinGecko: {e}", source=SOURCE))

        self.logger.debug(f"CoinGecko lists {len(coins)} active coins")
        return Result.ok(coins)

    async def get_symbol_to_id_map(self, exchange_slug: str) -> Result[Dict[str, Optional[str]]]:
        """
        Build a symbol -> coin id map for one exchange from its tickers.

        Pages through the exchange's tickers until a page is short or empty.
        Every ticker contributes its base and target symbols. Symbols are
        keyed upper-case; the value is the first non-empty id seen for the
        symbol, or None when CoinGecko lists the symbol without an id.

        CoinGecko Endpoint:
            GET /api/v3/exchanges/{slug}/tickers?depth=false&order=volume_desc&page={page}

        Response Format:
            {
              "name": "Binance",
              "tickers": [
                {"base": "BTC", "target": "USDT", "coin_id": "bitcoin", "target_coin_id": "tether", ...}
              ]
            }

        Args:
            exchange_slug: CoinGecko's exchange slug (e.g., "binance", "mxc")
        """
        tickers: List[Dict[str, Any]] = []
        page = 1

        while True:
            result = await self._get(
                f"/api/v3/exchanges/{exchange_slug}/tickers",
                {"depth": "false", "order": "volume_desc", "page": page},
                failure_message=f"Failed to retrieve exchange tickers from CoinGecko for exchange: {exchange_slug}, page: {page}",
            )
            if result.is_failure:
                return result

            page_tickers = (result.value or {}).get("tickers") or []
            if not page_tickers:
                break

            tickers.extend(page_tickers)

            if len(page_tickers) < MAX_TICKERS_PER_REQUEST:
                break

            page += 1

        symbol_map: Dict[str, Optional[str]] = {}
        for ticker in tickers:
            for symbol, coin_id in ((ticker.get("base"), ticker.get("coin_id")), (ticker.get("target"), ticker.get("target_coin_id"))):
                if not symbol:
                    continue
                key = symbol.upper()
                if symbol_map.get(key) is None:
                    symbol_map[key] = coin_id or None

        self.logger.debug(f"CoinGecko symbol map for {exchange_slug}: {len(symbol_map)} symbols from {page} page(s)")
        return Result.ok(symbol_map)

    # ============================================
    # Market Data Methods
    # ============================================

    async def get_stablecoin_ids(self) -> Result[List[str]]:
        """
        Fetch the ids of every coin in CoinGecko's stablecoins category.

        CoinGecko Endpoint:
            GET /api/v3/coins/markets?vs_currency=usd&category=stablecoins&per_page=250&page={page}&sparkline=false
        """
        ids: List[str] = []
        page = 1

        while True:
            result = await self._get(
                "/api/v3/coins/markets",
                {
                    "vs_currency": "usd",
                    "category": "stablecoins",
                    "per_page": MAX_IDS_PER_REQUEST,
                    "page": page,
                    "sparkline": "false",
                },
                failure_message="Failed to fetch stablecoins from CoinGecko",
            )
            if result.is_failure:
                return result

            coins = result.value or []
            if not coins:
                break

            ids.extend(coin["id"] for coin in coins if coin.get("id"))

            if len(coins) < MAX_IDS_PER_REQUEST:
                break

            page += 1

        return Result.ok(ids)

    async def get_market_data(self, ids: Iterable[str]) -> Result[List[RegistryAsset]]:
        """
        Fetch USD market data for the given coin ids.

        Ids are requested in chunks of 250, one call per chunk, in order.

        CoinGecko Endpoint:
            GET /api/v3/coins/markets?vs_currency=usd&per_page=250&ids={id1,id2,...}
        """
        ids = list(ids)
        if not ids:
            return Result.fail(CoinHubError("No CoinGecko IDs provided", source=SOURCE))

        assets: List[RegistryAsset] = []
        for start in range(0, len(ids), MAX_IDS_PER_REQUEST):
            chunk = ids[start:start + MAX_IDS_PER_REQUEST]
            result = await self._get(
                "/api/v3/coins/markets",
                {"vs_currency": "usd", "per_page": MAX_IDS_PER_REQUEST, "ids": ",".join(chunk)},
                failure_message=f"Failed to fetch market data for following CoinGecko IDs: {', '.join(chunk)}",
            )
            if result.is_failure:
                return result

            try:
                assets.extend(RegistryAsset.model_validate(item) for item in result.value or [])
            except ValueError as e:
                return Result.fail(CoinHubError(f"Malformed market data from CoinGecko: {e}", source=SOURCE))

        return Result.ok(assets)
