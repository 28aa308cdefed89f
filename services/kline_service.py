"""
Kline Service - Waterfall Fetcher

Retrieves candlesticks for a trading pair by trying the exchanges that list
it, one after another, in the pair's recorded priority order. The first
exchange that answers with a non-empty series wins, and its series is
returned untouched; bars from different exchanges are never mixed.

Single query:
    fetch_one(KlineQuery) -> Result[KlineSeries]
    Fails with KlineNotFoundError once every exchange failed or was empty.

Batch query:
    fetch_batch(KlineBatchRequest) -> List[KlineSeries]
    Coins are processed concurrently. For each coin its trading pairs are
    tried in order, and for each pair its exchanges in order. Coins with no
    data are left out of the result; the batch itself never fails.
"""

from typing import List, Optional, Tuple

from core.exceptions import CoinHubError, KlineNotFoundError
from core.exchange_interface import ExchangeInterface
from core.exchange_manager import ExchangeManager
from core.logging import get_logger
from core.result import Result
from core.schemas import (
    ExchangeKlineRequest,
    Kline,
    KlineBatchCoin,
    KlineBatchRequest,
    KlineCoin,
    KlineQuery,
    KlineSeries,
    KlineTradingPair,
)
from core.utils.tasks import gather_or_cancel


class KlineService:
    """
    Waterfall kline fetcher over the registered exchanges.

    Attributes:
        exchange_manager: Source of exchange connectors by id

    Example:
        >>> service = KlineService(manager)
        >>> result = await service.fetch_one(query)
        >>> if result.is_success:
        ...     print(len(result.value.klines))
    """

    def __init__(self, exchange_manager: ExchangeManager):
        self.exchange_manager = exchange_manager
        self._logger = get_logger(__name__)

    # ============================================
    # Public API
    # ============================================

    async def fetch_one(self, query: KlineQuery) -> Result[KlineSeries]:
        """
        Fetch bars for one trading pair.

        Raises:
            UnmappedExchangeError: If the pair names an exchange that is not configured
        """
        request = query.to_exchange_request(query.coin_main.symbol, query.trading_pair.coin_quote.symbol)
        klines, errors = await self._waterfall(query.trading_pair, request)

        if not klines:
            self._log_not_found(query.coin_main)
            return Result.fail(KlineNotFoundError(
                f"No kline data found for trading pair with ID: {query.trading_pair.id}",
                reasons=errors,
            ))

        return Result.ok(KlineSeries(trading_pair_id=query.trading_pair.id, klines=klines))

    async def fetch_batch(self, request: KlineBatchRequest) -> List[KlineSeries]:
        """
        Fetch bars for many coins, best effort.

        Returns:
            One KlineSeries per coin that yielded data, in request order.
        """
        results = await gather_or_cancel(*(self._fetch_for_coin(request, coin) for coin in request.coins))
        series = [result for result in results if result is not None]

        self._logger.info(f"Kline batch: {len(series)}/{len(request.coins)} coins returned data")
        return series

    # ============================================
    # Waterfall
    # ============================================

    async def _fetch_for_coin(self, request: KlineBatchRequest, coin: KlineBatchCoin) -> Optional[KlineSeries]:
        for trading_pair in coin.trading_pairs:
            exchange_request = request.to_exchange_request(coin.symbol, trading_pair.coin_quote.symbol)
            klines, _ = await self._waterfall(trading_pair, exchange_request)
            if klines:
                return KlineSeries(trading_pair_id=trading_pair.id, klines=klines)

        self._log_not_found(coin)
        return None

    async def _waterfall(
        self,
        trading_pair: KlineTradingPair,
        request: ExchangeKlineRequest,
    ) -> Tuple[List[Kline], List[CoinHubError]]:
        """
        Try the pair's exchanges in order, one at a time.

        Returns:
            The first non-empty series (or an empty list) and the errors met on the way.
        """
        exchanges: List[ExchangeInterface] = [
            self.exchange_manager.get_exchange(exchange_id) for exchange_id in trading_pair.exchanges
        ]
        errors: List[CoinHubError] = []

        for exchange in exchanges:
            result = await exchange.get_klines(request)
            if result.is_failure:
                self._logger.debug(f"{exchange.name} failed klines for {request.symbol}: {result.error_message}")
                errors.extend(result.errors)
                continue
            if result.value:
                self._logger.debug(f"{exchange.name} returned {len(result.value)} klines for {request.symbol}")
                return result.value, errors
            self._logger.debug(f"{exchange.name} returned no klines for {request.symbol}")

        return [], errors

    def _log_not_found(self, coin: KlineCoin) -> None:
        self._logger.warning(f"No kline data was found for coin with id {coin.id} - {coin.symbol} ({coin.name}).")
