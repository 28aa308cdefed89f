"""
Binance Exchange Connector

This module implements the ExchangeInterface for the Binance Spot market.

API Documentation:
    https://developers.binance.com/docs/binance-spot-api-docs/rest-api

Endpoints Used:
    REST:
        - GET /api/v3/exchangeInfo - Spot symbols with trading status
        - GET /api/v3/klines - Historical candlestick data

Status Mapping:
    TRADING -> available
    HALT    -> currently_unavailable
    BREAK   -> unavailable

Structure:
    exchanges/binance/
    ├── __init__.py          # This file (BinanceExchange class)
    └── api_client.py        # REST API client and normalization
"""

from typing import List, Optional
from core.exchange_interface import ExchangeInterface
from core.logging import logger
from core.result import Result
from core.schemas import ExchangeId, ExchangeKlineRequest, Kline, RawExchangeCoin
from .api_client import BinanceAPIClient


class BinanceExchange(ExchangeInterface):
    """
    Binance Spot Exchange Connector

    Attributes:
        exchange_id: ExchangeId.BINANCE
        client: BinanceAPIClient (session opened in initialize())

    Example:
        >>> exchange = BinanceExchange()
        >>> await exchange.initialize()
        >>> coins = await exchange.list_spot_coins()
        >>> await exchange.shutdown()
    """

    exchange_id = ExchangeId.BINANCE

    def __init__(self, client: Optional[BinanceAPIClient] = None):
        """
        Initialize the Binance exchange connector.

        Actual network connections are established in initialize().
        """
        self.client = client or BinanceAPIClient()
        logger.debug(f"BinanceExchange created (base_url={self.client.http.base_url})")

    async def initialize(self) -> None:
        logger.info("Initializing Binance exchange connector...")
        await self.client.__aenter__()
        logger.info("✓ Binance exchange connector initialized")

    async def shutdown(self) -> None:
        logger.info("Shutting down Binance exchange connector...")
        await self.client.__aexit__(None, None, None)
        logger.info("✓ Binance exchange connector shut down")

    # ============================================
    # REST API Methods
    # ============================================

    async def list_spot_coins(self) -> Result[List[RawExchangeCoin]]:
        """
        Fetch every Binance spot coin with its pairs.

        Binance Endpoint:
            GET /api/v3/exchangeInfo?showPermissionSets=false
        """
        return await self.client.get_spot_coins()

    async def get_klines(self, request: ExchangeKlineRequest) -> Result[List[Kline]]:
        """
        Fetch historical klines from Binance.

        Binance Endpoint:
            GET /api/v3/klines?symbol={symbol}&interval={interval}&limit={limit}&startTime={start}&endTime={end}

        Example:
            >>> result = await exchange.get_klines(request)
            >>> print(f"Latest close: {result.value[-1].close_price}")
        """
        return await self.client.get_klines(request)


__all__ = ["BinanceExchange", "BinanceAPIClient"]
