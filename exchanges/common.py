"""
Helpers shared by the exchange connectors.
"""

from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional

from core.exceptions import UnmappedStatusError
from core.schemas import (
    CoinRef,
    ExchangeId,
    ExchangeStatusEntry,
    RawExchangeCoin,
    RawTradingPair,
    TradingPairStatus,
)


class ListedPair(NamedTuple):
    """One row of an exchange's spot listing, before grouping."""

    base: str
    quote: str
    status: TradingPairStatus
    base_name: Optional[str] = None


def map_status(
    exchange_id: ExchangeId,
    native_status: str,
    status_map: Mapping[str, TradingPairStatus],
) -> TradingPairStatus:
    """
    Translate an exchange-native trading status.

    Raises:
        UnmappedStatusError: If the status is not in the exchange's table
    """
    try:
        return status_map[native_status]
    except KeyError:
        raise UnmappedStatusError(
            f"Unknown {exchange_id.value} trading status '{native_status}'",
            source=exchange_id.value,
        )


def group_spot_pairs(exchange_id: ExchangeId, pairs: Iterable[ListedPair]) -> List[RawExchangeCoin]:
    """
    Group listing rows by base symbol, keeping first-seen order.

    Every pair gets one ExchangeStatusEntry for ``exchange_id``. The first
    non-empty base name seen for a symbol is kept as the raw coin name.
    """
    coins: Dict[str, RawExchangeCoin] = {}

    for pair in pairs:
        coin = coins.get(pair.base)
        if coin is None:
            coin = RawExchangeCoin(symbol=pair.base, name=pair.base_name or None)
            coins[pair.base] = coin
        elif coin.name is None and pair.base_name:
            coin.name = pair.base_name

        coin.trading_pairs.append(RawTradingPair(
            coin_quote=CoinRef(symbol=pair.quote),
            exchange_infos=[ExchangeStatusEntry(exchange=exchange_id, status=pair.status)],
        ))

    return list(coins.values())
