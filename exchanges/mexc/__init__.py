"""
Mexc Exchange Connector

This module implements the ExchangeInterface for the Mexc Spot market.

API Documentation:
    https://mexcdevelop.github.io/apidocs/spot_v3_en/

Endpoints Used:
    REST:
        - GET /api/v3/exchangeInfo - Spot symbols with status and full names
        - GET /api/v3/klines - Historical candlestick data

Status Mapping:
    "1" -> available
    "2" -> currently_unavailable
    "3" -> unavailable
"""

from typing import List, Optional
from core.exchange_interface import ExchangeInterface
from core.logging import logger
from core.result import Result
from core.schemas import ExchangeId, ExchangeKlineRequest, Kline, RawExchangeCoin
from .api_client import MexcAPIClient


class MexcExchange(ExchangeInterface):
    """Mexc Spot Exchange Connector"""

    exchange_id = ExchangeId.MEXC

    def __init__(self, client: Optional[MexcAPIClient] = None):
        self.client = client or MexcAPIClient()
        logger.debug(f"MexcExchange created (base_url={self.client.http.base_url})")

    async def initialize(self) -> None:
        logger.info("Initializing Mexc exchange connector...")
        await self.client.__aenter__()
        logger.info("✓ Mexc exchange connector initialized")

    async def shutdown(self) -> None:
        logger.info("Shutting down Mexc exchange connector...")
        await self.client.__aexit__(None, None, None)
        logger.info("✓ Mexc exchange connector shut down")

    async def list_spot_coins(self) -> Result[List[RawExchangeCoin]]:
        return await self.client.get_spot_coins()

    async def get_klines(self, request: ExchangeKlineRequest) -> Result[List[Kline]]:
        return await self.client.get_klines(request)


__all__ = ["MexcExchange", "MexcAPIClient"]
