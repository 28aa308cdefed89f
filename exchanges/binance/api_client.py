"""
Binance REST API Client

This module provides an async HTTP client for the Binance Spot REST API.
It handles:
- Spot listing retrieval (exchangeInfo)
- Historical candlesticks (klines)
- Normalization of Binance payloads to our schemas

Transport concerns (session, timeouts, rate-limit retry) are delegated to
the shared HttpClient, so every method returns a Result instead of raising
on HTTP failures.

API Documentation:
    https://developers.binance.com/docs/binance-spot-api-docs/rest-api

Rate Limits:
    - Weight-based system (exchangeInfo weighs 20, klines weighs 2)
    - 429/418 responses are retried by HttpClient with linear backoff

Usage:
    async with BinanceAPIClient() as client:
        coins = await client.get_spot_coins()
        klines = await client.get_klines(request)
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.config import settings
from core.http_client import HttpClient
from core.logging import get_logger
from core.result import Result
from core.schemas import (
    ExchangeId,
    ExchangeKlineRequest,
    Kline,
    KlineInterval,
    RawExchangeCoin,
    TradingPairStatus,
)
from core.exceptions import TransportError
from core.utils.time import to_utc_datetime
from exchanges.common import ListedPair, group_spot_pairs, map_status


STATUS_MAP = {
    "TRADING": TradingPairStatus.AVAILABLE,
    "HALT": TradingPairStatus.CURRENTLY_UNAVAILABLE,
    "BREAK": TradingPairStatus.UNAVAILABLE,
}

INTERVAL_CODES = {
    KlineInterval.ONE_MINUTE: "1m",
    KlineInterval.FIVE_MINUTES: "5m",
    KlineInterval.FIFTEEN_MINUTES: "15m",
    KlineInterval.THIRTY_MINUTES: "30m",
    KlineInterval.ONE_HOUR: "1h",
    KlineInterval.FOUR_HOURS: "4h",
    KlineInterval.ONE_DAY: "1d",
    KlineInterval.ONE_WEEK: "1w",
    KlineInterval.ONE_MONTH: "1M",
}


class BinanceAPIClient:
    """
    Async HTTP client for the Binance Spot REST API

    All methods return normalized data using our Pydantic schemas, wrapped in
    a Result.

    Attributes:
        http: Shared HttpClient bound to settings.binance_base_url
        logger: Logger instance for debugging

    Example:
        >>> async with BinanceAPIClient() as client:
        ...     result = await client.get_spot_coins()
        ...     print(f"Fetched {len(result.value)} coins")

    Notes:
        - Uses context manager for automatic session cleanup
        - No API key needed for public endpoints
        - Prices are kept as Decimal, exactly as Binance sends them
    """

    def __init__(self, base_url: Optional[str] = None):
        """
        Initialize the Binance API client.

        Args:
            base_url: Override for settings.binance_base_url (tests, testnet)
        """
        self.http = HttpClient(ExchangeId.BINANCE.value, base_url or settings.binance_base_url)
        self.logger = get_logger(__name__)

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        await self.http.open()
        self.logger.debug("BinanceAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.http.close()
        self.logger.debug("BinanceAPIClient session closed")

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, failure_message: Optional[str] = None) -> Result[Any]:
        """GET a Binance endpoint through the shared transport."""
        return await self.http.get_json(path, params, failure_message)

    # ============================================
    # API Methods
    # ============================================

    async def get_spot_coins(self) -> Result[List[RawExchangeCoin]]:
        """
        Fetch every spot symbol and group it by base asset.

        Binance Endpoint:
            GET /api/v3/exchangeInfo?showPermissionSets=false

        Response Format:
            {
              "symbols": [
                {"symbol": "BTCUSDT", "status": "TRADING", "baseAsset": "BTC", "quoteAsset": "USDT", ...}
              ]
            }

        Returns:
            Result[List[RawExchangeCoin]]: Coins with every pair and its status

        Raises:
            UnmappedStatusError: If Binance reports a status other than TRADING, HALT or BREAK
        """
        result = await self._get(
            "/api/v3/exchangeInfo",
            {"showPermissionSets": "false"},
            failure_message="Failed to fetch spot coins from Binance",
        )
        if result.is_failure:
            return result

        try:
            pairs = [
                ListedPair(
                    base=item["baseAsset"],
                    quote=item["quoteAsset"],
                    status=map_status(ExchangeId.BINANCE, item["status"], STATUS_MAP),
                )
                for item in result.value.get("symbols") or []
            ]
        except (AttributeError, KeyError, TypeError) as e:
            self.logger.error(f"Unexpected exchangeInfo payload from Binance: {e}")
            return Result.fail(TransportError(
                "Malformed exchangeInfo payload from Binance",
                source=ExchangeId.BINANCE.value,
            ))

        coins = group_spot_pairs(ExchangeId.BINANCE, pairs)
        self.logger.debug(f"Binance listed {len(pairs)} spot pairs across {len(coins)} base coins")
        return Result.ok(coins)

    async def get_klines(self, request: ExchangeKlineRequest) -> Result[List[Kline]]:
        """
        Fetch historical candlesticks for one symbol pair.

        Binance Endpoint:
            GET /api/v3/klines?symbol={symbol}&interval={interval}&limit={limit}&startTime={start}&endTime={end}

        Response Format:
            [
              [
                1499040000000,      // Open time
                "0.01634000",       // Open
                "0.80000000",       // High
                "0.01575800",       // Low
                "0.01577100",       // Close
                "148976.11427815",  // Volume
                1499644799999,      // Close time
                ...
              ]
            ]

        Returns:
            Result[List[Kline]]: Candles sorted oldest first (Binance order)
        """
        params = {
            "symbol": request.symbol,
            "interval": INTERVAL_CODES[request.interval],
            "limit": request.limit,
            "startTime": request.start_time_ms,
            "endTime": request.end_time_ms,
        }

        self.logger.debug(
            f"Fetching klines: {request.symbol} {request.interval.value} "
            f"({to_utc_datetime(request.start_time_ms)} -> {to_utc_datetime(request.end_time_ms)}, limit={request.limit})"
        )

        result = await self._get(
            "/api/v3/klines",
            params,
            failure_message=f"Failed to fetch klines for {request.symbol} from Binance",
        )
        if result.is_failure:
            return result

        try:
            klines = [
                Kline(
                    open_time=int(row[0]),
                    open_price=Decimal(row[1]),
                    high_price=Decimal(row[2]),
                    low_price=Decimal(row[3]),
                    close_price=Decimal(row[4]),
                    volume=Decimal(row[5]),
                    close_time=int(row[6]),
                )
                for row in result.value or []
            ]
        except (IndexError, TypeError, ValueError, ArithmeticError) as e:
            self.logger.error(f"Unexpected kline payload from Binance for {request.symbol}: {e}")
            return Result.fail(TransportError(
                f"Malformed kline payload for {request.symbol}",
                source=ExchangeId.BINANCE.value,
            ))

        return Result.ok(klines)
