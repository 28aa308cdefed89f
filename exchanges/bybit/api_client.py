"""
Bybit REST API Client

This module provides an async HTTP client for the Bybit V5 REST API (spot
category). It handles:
- Unwrapping the V5 response envelope ({retCode, retMsg, result})
- Spot instrument listing
- Historical candlesticks
- Data normalization to our schemas

API Documentation:
    https://bybit-exchange.github.io/docs/v5/intro

Usage:
    async with BybitAPIClient() as client:
        coins = await client.get_spot_coins()
        klines = await client.get_klines(request)
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.config import settings
from core.exceptions import TransportError
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
from exchanges.common import ListedPair, group_spot_pairs, map_status


STATUS_MAP = {
    "Trading": TradingPairStatus.AVAILABLE,
    "PreLaunch": TradingPairStatus.CURRENTLY_UNAVAILABLE,
    "Settling": TradingPairStatus.CURRENTLY_UNAVAILABLE,
    "Delivering": TradingPairStatus.CURRENTLY_UNAVAILABLE,
    "Closed": TradingPairStatus.UNAVAILABLE,
}

# Bybit uses minute counts plus D/W/M
INTERVAL_CODES = {
    KlineInterval.ONE_MINUTE: "1",
    KlineInterval.FIVE_MINUTES: "5",
    KlineInterval.FIFTEEN_MINUTES: "15",
    KlineInterval.THIRTY_MINUTES: "30",
    KlineInterval.ONE_HOUR: "60",
    KlineInterval.FOUR_HOURS: "240",
    KlineInterval.ONE_DAY: "D",
    KlineInterval.ONE_WEEK: "W",
    KlineInterval.ONE_MONTH: "M",
}


class BybitAPIClient:
    """
    Async HTTP client for the Bybit V5 REST API

    Attributes:
        http: Shared HttpClient bound to settings.bybit_base_url
        logger: Logger instance for debugging

    Notes:
        - Uses context manager for automatic session cleanup
        - Uses GET requests with query parameters (Bybit API standard)
        - Every request is made with category=spot
    """

    def __init__(self, base_url: Optional[str] = None):
        self.http = HttpClient(ExchangeId.BYBIT.value, base_url or settings.bybit_base_url)
        self.logger = get_logger(__name__)

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        await self.http.open()
        self.logger.debug("BybitAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.http.close()
        self.logger.debug("BybitAPIClient session closed")

    # ============================================
    # HTTP Request Handler
    # ============================================

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, failure_message: Optional[str] = None) -> Result[Dict[str, Any]]:
        """
        GET a Bybit V5 endpoint and unwrap its envelope.

        Args:
            path: API endpoint (e.g., "/v5/market/kline")
            params: Query parameters

        Returns:
            Result with the envelope's ``result`` object. A response with
            ``retCode != 0`` is a failed Result carrying ``retMsg``.
        """
        result = await self.http.get_json(path, params, failure_message)
        if result.is_failure:
            return result

        data = result.value or {}
        if data.get("retCode") != 0:
            error_msg = data.get("retMsg", "Unknown error")
            self.logger.error(f"Bybit API error on {path}: retCode={data.get('retCode')} retMsg={error_msg}")
            return Result.fail(TransportError(
                f"{failure_message or 'Bybit request failed'}: {error_msg}",
                source=ExchangeId.BYBIT.value,
                response_body=str(data)[:500],
            ))

        return Result.ok(data.get("result") or {})

    # ============================================
    # Market Data Methods
    # ============================================

    async def get_spot_coins(self) -> Result[List[RawExchangeCoin]]:
        """
        Fetch every spot instrument and group it by base coin.

        Bybit Endpoint:
            GET /v5/market/instruments-info?category=spot

        Response Format:
            {
              "retCode": 0,
              "retMsg": "OK",
              "result": {
                "category": "spot",
                "list": [{"symbol": "BTCUSDT", "baseCoin": "BTC", "quoteCoin": "USDT", "status": "Trading", ...}]
              }
            }

        Raises:
            UnmappedStatusError: If Bybit reports a status outside STATUS_MAP
        """
        result = await self._get(
            "/v5/market/instruments-info",
            {"category": "spot"},
            failure_message="Failed to fetch spot coins from Bybit",
        )
        if result.is_failure:
            return result

        try:
            pairs = [
                ListedPair(
                    base=item["baseCoin"],
                    quote=item["quoteCoin"],
                    status=map_status(ExchangeId.BYBIT, item["status"], STATUS_MAP),
                )
                for item in result.value.get("list") or []
            ]
        except (AttributeError, KeyError, TypeError) as e:
            self.logger.error(f"Unexpected instruments-info payload from Bybit: {e}")
            return Result.fail(TransportError(
                "Malformed instruments-info payload from Bybit",
                source=ExchangeId.BYBIT.value,
            ))

        coins = group_spot_pairs(ExchangeId.BYBIT, pairs)
        self.logger.debug(f"Bybit listed {len(pairs)} spot pairs across {len(coins)} base coins")
        return Result.ok(coins)

    async def get_klines(self, request: ExchangeKlineRequest) -> Result[List[Kline]]:
        """
        Fetch historical candlesticks for one symbol pair.

        Bybit Endpoint:
            GET /v5/market/kline?category=spot&symbol={symbol}&interval={interval}&start={start}&end={end}&limit={limit}

        Response Format:
            result.list: [[startTime, open, high, low, close, volume, turnover], ...]

        Notes:
            - Bybit returns candles newest first; they are reversed to oldest first
            - Bybit sends no close time, so it is derived as
              open time + interval length in milliseconds
        """
        params = {
            "category": "spot",
            "symbol": request.symbol,
            "interval": INTERVAL_CODES[request.interval],
            "start": request.start_time_ms,
            "end": request.end_time_ms,
            "limit": request.limit,
        }

        self.logger.debug(f"Fetching klines: {request.symbol} {request.interval.value} (limit={request.limit})")

        result = await self._get(
            "/v5/market/kline",
            params,
            failure_message=f"Failed to fetch klines for {request.symbol} from Bybit",
        )
        if result.is_failure:
            return result

        interval_ms = request.interval.minutes * 60_000
        try:
            klines = [
                Kline(
                    open_time=int(row[0]),
                    open_price=Decimal(row[1]),
                    high_price=Decimal(row[2]),
                    low_price=Decimal(row[3]),
                    close_price=Decimal(row[4]),
                    volume=Decimal(row[5]),
                    close_time=int(row[0]) + interval_ms,
                )
                for row in reversed(result.value.get("list") or [])
            ]
        except (AttributeError, IndexError, TypeError, ValueError, ArithmeticError) as e:
            self.logger.error(f"Unexpected kline payload from Bybit for {request.symbol}: {e}")
            return Result.fail(TransportError(
                f"Malformed kline payload for {request.symbol}",
                source=ExchangeId.BYBIT.value,
            ))

        return Result.ok(klines)
