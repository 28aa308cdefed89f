"""
Mexc REST API Client

Async HTTP client for the Mexc Spot V3 REST API. The V3 API mirrors
Binance's layout (exchangeInfo, klines) with its own status codes and
interval spellings, and additionally reports each base asset's full name.

API Documentation:
    https://mexcdevelop.github.io/apidocs/spot_v3_en/

Usage:
    async with MexcAPIClient() as client:
        coins = await client.get_spot_coins()
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


# Mexc reports status as a numeric string
STATUS_MAP = {
    "1": TradingPairStatus.AVAILABLE,
    "2": TradingPairStatus.CURRENTLY_UNAVAILABLE,
    "3": TradingPairStatus.UNAVAILABLE,
}

INTERVAL_CODES = {
    KlineInterval.ONE_MINUTE: "1m",
    KlineInterval.FIVE_MINUTES: "5m",
    KlineInterval.FIFTEEN_MINUTES: "15m",
    KlineInterval.THIRTY_MINUTES: "30m",
    KlineInterval.ONE_HOUR: "60m",
    KlineInterval.FOUR_HOURS: "4h",
    KlineInterval.ONE_DAY: "1d",
    KlineInterval.ONE_WEEK: "1W",
    KlineInterval.ONE_MONTH: "1M",
}


class MexcAPIClient:
    """
    Async HTTP client for the Mexc Spot V3 REST API

    Attributes:
        http: Shared HttpClient bound to settings.mexc_base_url
        logger: Logger instance for debugging
    """

    def __init__(self, base_url: Optional[str] = None):
        self.http = HttpClient(ExchangeId.MEXC.value, base_url or settings.mexc_base_url)
        self.logger = get_logger(__name__)

    async def __aenter__(self):
        await self.http.open()
        self.logger.debug("MexcAPIClient session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.http.close()
        self.logger.debug("MexcAPIClient session closed")

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, failure_message: Optional[str] = None) -> Result[Any]:
        return await self.http.get_json(path, params, failure_message)

    # ============================================
    # API Methods
    # ============================================

    async def get_spot_coins(self) -> Result[List[RawExchangeCoin]]:
        """
        Fetch every spot symbol and group it by base asset.

        Mexc Endpoint:
            GET /api/v3/exchangeInfo

        Response Format:
            {
              "symbols": [
                {"symbol": "BTCUSDT", "status": "1", "baseAsset": "BTC", "quoteAsset": "USDT", "fullName": "Bitcoin", ...}
              ]
            }

        Notes:
            ``fullName`` is kept as the raw coin name. It is informational
            only; the canonical name always comes from identity resolution.

        Raises:
            UnmappedStatusError: If Mexc reports a status other than "1", "2" or "3"
        """
        result = await self._get("/api/v3/exchangeInfo", failure_message="Failed to fetch spot coins from Mexc")
        if result.is_failure:
            return result

        try:
            pairs = [
                ListedPair(
                    base=item["baseAsset"],
                    quote=item["quoteAsset"],
                    status=map_status(ExchangeId.MEXC, str(item["status"]), STATUS_MAP),
                    base_name=item.get("fullName"),
                )
                for item in result.value.get("symbols") or []
            ]
        except (AttributeError, KeyError, TypeError) as e:
            self.logger.error(f"Unexpected exchangeInfo payload from Mexc: {e}")
            return Result.fail(TransportError(
                "Malformed exchangeInfo payload from Mexc",
                source=ExchangeId.MEXC.value,
            ))

        coins = group_spot_pairs(ExchangeId.MEXC, pairs)
        self.logger.debug(f"Mexc listed {len(pairs)} spot pairs across {len(coins)} base coins")
        return Result.ok(coins)

    async def get_klines(self, request: ExchangeKlineRequest) -> Result[List[Kline]]:
        """
        Fetch historical candlesticks for one symbol pair.

        Mexc Endpoint:
            GET /api/v3/klines?symbol={symbol}&interval={interval}&limit={limit}&startTime={start}&endTime={end}

        Response Format:
            [[openTime, open, high, low, close, volume, closeTime, quoteVolume], ...]
        """
        params = {
            "symbol": request.symbol,
            "interval": INTERVAL_CODES[request.interval],
            "limit": request.limit,
            "startTime": request.start_time_ms,
            "endTime": request.end_time_ms,
        }

        result = await self._get(
            "/api/v3/klines",
            params,
            failure_message=f"Failed to fetch klines for {request.symbol} from Mexc",
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
            self.logger.error(f"Unexpected kline payload from Mexc for {request.symbol}: {e}")
            return Result.fail(TransportError(
                f"Malformed kline payload for {request.symbol}",
                source=ExchangeId.MEXC.value,
            ))

        return Result.ok(klines)
