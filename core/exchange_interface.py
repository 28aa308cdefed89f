"""
Exchange Interface — Abstract Contract for All Exchanges

This module defines the abstract base class that all exchange connectors must implement.
By enforcing a consistent interface, we ensure:
- All exchanges expose the same two capabilities (spot listing, klines)
- Easy to add new exchanges without modifying the aggregation engine
- Expected failures are returned as Result values, never raised

Design Philosophy:
    "Program to an interface, not an implementation"

    The coin aggregator and the kline waterfall work with ExchangeInterface,
    not specific exchange implementations.

Example:
    class BinanceExchange(ExchangeInterface):
        exchange_id = ExchangeId.BINANCE

        async def list_spot_coins(self):
            ...

        async def get_klines(self, request):
            ...

Failure Contract:
    - Non-2xx responses, network errors and upstream error envelopes
      -> failed Result carrying a TransportError
    - An empty but valid response -> successful Result with an empty list
    - An unrecognized trading status -> UnmappedStatusError is RAISED; the
      status domain is closed and a new value means the mapping is outdated
"""

from abc import ABC, abstractmethod
from typing import List
from core.result import Result
from core.schemas import ExchangeId, ExchangeKlineRequest, Kline, RawExchangeCoin


class ExchangeInterface(ABC):
    """
    Abstract Base Class for Exchange Connectors

    All exchange implementations (Binance, Bybit, Mexc) must inherit from this
    class and implement all abstract methods.

    Class Attributes:
        exchange_id: Fixed identifier of the exchange

    Abstract Methods (MUST be implemented by all exchanges):
        - list_spot_coins: All spot coins and their pairs, with statuses
        - get_klines: Historical candlesticks for one symbol pair

    Optional Methods (can be overridden):
        - initialize: Setup HTTP sessions
        - shutdown: Cleanup sessions
    """

    exchange_id: ExchangeId
    """Unique exchange identifier. Example: ExchangeId.BINANCE"""

    @property
    def name(self) -> str:
        return self.exchange_id.value

    # ============================================
    # REST API Methods
    # ============================================

    @abstractmethod
    async def list_spot_coins(self) -> Result[List[RawExchangeCoin]]:
        """
        Fetch every coin listed on the exchange's spot market.

        Calls the exchange's listing endpoint once and groups pairs by base
        coin. Every pair carries a single ExchangeStatusEntry for this exchange,
        with the native status mapped onto TradingPairStatus.

        Returns:
            Result[List[RawExchangeCoin]]: coins with all of their pairs, in
            any status (inactive pairs are filtered by the aggregator)

        Raises:
            UnmappedStatusError: If the exchange reports an unknown status

        Example:
            >>> result = await exchange.list_spot_coins()
            >>> btc = next(c for c in result.value if c.symbol == "BTC")
            >>> [p.coin_quote.symbol for p in btc.trading_pairs]
            ['USDT', 'USDC', 'EUR']
        """
        ...

    @abstractmethod
    async def get_klines(self, request: ExchangeKlineRequest) -> Result[List[Kline]]:
        """
        Fetch historical candlesticks for one symbol pair.

        Args:
            request: Base/quote symbols, interval, time range (unix ms) and limit

        Returns:
            Result[List[Kline]]: Candles sorted oldest first. An empty list is
            a success (the pair exists but has no bars in the range).
            Transport failures are returned, not raised, so the kline
            waterfall can try the next exchange.

        Example:
            >>> request = ExchangeKlineRequest(
            ...     base_symbol="BTC", quote_symbol="USDT", interval=KlineInterval.ONE_HOUR,
            ...     start_time_ms=1704067200000, end_time_ms=1704153600000, limit=24,
            ... )
            >>> result = await exchange.get_klines(request)
        """
        ...

    # ============================================
    # Optional Lifecycle Methods
    # ============================================

    async def initialize(self) -> None:
        """
        Initialize the exchange connector (open HTTP sessions).

        Notes:
            - This is optional; default implementation does nothing
            - Called automatically by ExchangeManager
            - Should be idempotent (safe to call multiple times)
        """
        pass

    async def shutdown(self) -> None:
        """
        Shutdown the exchange connector and cleanup resources.

        Notes:
            - This is optional; default implementation does nothing
            - Called automatically by ExchangeManager during shutdown
        """
        pass

    def __repr__(self) -> str:
        """String representation of the exchange."""
        return f"<{self.__class__.__name__}(exchange_id='{self.name}')>"
