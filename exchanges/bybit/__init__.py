"""
Bybit Exchange Connector

This module implements the ExchangeInterface for the Bybit Spot market
(V5 API, category=spot).

API Documentation:
    https://bybit-exchange.github.io/docs/v5/intro

Endpoints Used:
    REST:
        - GET /v5/market/instruments-info - Spot instruments with status
        - GET /v5/market/kline - Historical candlestick data

Status Mapping:
    Trading                         -> available
    PreLaunch, Settling, Delivering -> currently_unavailable
    Closed                          -> unavailable
"""

from typing import List, Optional
from core.exchange_interface import ExchangeInterface
from core.logging import logger
from core.result import Result
from core.schemas import ExchangeId, ExchangeKlineRequest, Kline, RawExchangeCoin
from .api_client import BybitAPIClient


class BybitExchange(ExchangeInterface):
    """
    Bybit Spot Exchange Connector

    Attributes:
        exchange_id: ExchangeId.BYBIT
        client: BybitAPIClient (session opened in initialize())
    """

    exchange_id = ExchangeId.BYBIT

    def __init__(self, client: Optional[BybitAPIClient] = None):
        self.client = client or BybitAPIClient()
        logger.debug(f"BybitExchange created (base_url={self.client.http.base_url})")

    async def initialize(self) -> None:
        """Initialize Bybit exchange connector."""
        logger.info("Initializing Bybit exchange connector...")
        await self.client.__aenter__()
        logger.info("✓ Bybit exchange connector initialized")

    async def shutdown(self) -> None:
        """Shutdown Bybit exchange connector."""
        logger.info("Shutting down Bybit exchange connector...")
        await self.client.__aexit__(None, None, None)
        logger.info("✓ Bybit exchange connector shut down")

    # ============================================
    # REST API Methods
    # ============================================

    async def list_spot_coins(self) -> Result[List[RawExchangeCoin]]:
        return await self.client.get_spot_coins()

    async def get_klines(self, request: ExchangeKlineRequest) -> Result[List[Kline]]:
        """
        Fetch historical klines from Bybit, oldest first.

        Bybit Endpoint:
            GET /v5/market/kline?category=spot&symbol={symbol}&interval={interval}&start={start}&end={end}&limit={limit}
        """
        return await self.client.get_klines(request)


__all__ = ["BybitExchange", "BybitAPIClient"]
