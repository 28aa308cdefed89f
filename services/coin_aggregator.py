"""
Coin Aggregator

Builds the canonical snapshot of every actively traded spot coin across all
configured exchanges.

One pass of ``collect()``:
    1. Fetch every exchange's spot listing and CoinGecko's coin list
       concurrently. Any failure aborts the pass.
    2. Drop pairs with no available exchange, then coins with no pairs.
    3. Fetch each exchange's CoinGecko symbol map (concurrently) and name
       every base and quote coin from the registry, falling back to the
       ISO-4217 table for fiat currencies.
    4. Merge coins across exchanges by (symbol, name), and their pairs by
       quote (symbol, name), concatenating exchange status entries.

Nothing is cached here; see services.coins_service for the cached snapshot.
"""

from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from core.exceptions import AggregationError, CoinHubError, IdentityResolutionError
from core.exchange_manager import ExchangeManager
from core.fiat import resolve_fiat
from core.logging import get_logger
from core.result import Result
from core.schemas import (
    CanonicalCoin,
    CanonicalTradingPair,
    CoinCategory,
    ExchangeId,
    QuoteCoin,
    RawExchangeCoin,
    RegistryCoin,
)
from core.utils.tasks import gather_or_cancel
from providers.coingecko import CoinGeckoAPIClient, check_registry_slugs, registry_slug_for


class CoinIdentity(NamedTuple):
    name: Optional[str] = None
    registry_id: Optional[str] = None
    category: Optional[CoinCategory] = None


UNRESOLVED = CoinIdentity()


# ============================================
# Active-Pair Filter
# ============================================

def filter_active_coins(coins: Iterable[RawExchangeCoin]) -> List[RawExchangeCoin]:
    """Keep only available pairs, and only coins that still have one."""
    active = []
    for coin in coins:
        pairs = [pair for pair in coin.trading_pairs if pair.is_available]
        if pairs:
            active.append(coin.model_copy(update={"trading_pairs": pairs}))
    return active


# ============================================
# Identity Resolution
# ============================================

class IdentityResolver:
    """
    Names the coins seen on one exchange.

    A symbol is resolved from the exchange's CoinGecko symbol map when the
    mapped id is in CoinGecko's active coin list. A mapped id missing from
    that list marks the coin inactive: it stays unnamed and is not offered to
    the fiat table. Symbols absent from the map, or mapped to no id, are
    looked up in the ISO-4217 table.

    Unresolved and inactive symbols are collected per role ("base"/"quote")
    so they can be logged once per exchange.
    """

    def __init__(self, symbol_map: Dict[str, Optional[str]], registry_by_id: Dict[str, RegistryCoin]):
        self.symbol_map = {symbol.upper(): coin_id for symbol, coin_id in symbol_map.items()}
        self.registry_by_id = registry_by_id
        self.unnamed: Dict[str, Dict[str, None]] = {"base": {}, "quote": {}}
        self.inactive: Dict[str, Dict[str, str]] = {"base": {}, "quote": {}}

    def resolve(self, symbol: str, role: str) -> CoinIdentity:
        coin_id = self.symbol_map.get(symbol.upper())

        if coin_id is not None:
            registry_coin = self.registry_by_id.get(coin_id)
            if registry_coin is None:
                self.inactive[role].setdefault(symbol, coin_id)
                return UNRESOLVED
            return CoinIdentity(name=registry_coin.name, registry_id=registry_coin.id)

        fiat = resolve_fiat(symbol)
        if fiat is not None:
            return CoinIdentity(name=fiat.name, category=CoinCategory.FIAT)

        self.unnamed[role].setdefault(symbol, None)
        return UNRESOLVED


# ============================================
# Cross-Exchange Merge
# ============================================

def _group_key(symbol: str, name: Optional[str]) -> Tuple[str, Optional[str]]:
    return symbol.lower(), name.lower() if name is not None else None


def _first(values: Iterable):
    return next((value for value in values if value is not None), None)


def merge_trading_pairs(pairs: Iterable[CanonicalTradingPair]) -> Tuple[CanonicalTradingPair, ...]:
    """Group pairs by quote (symbol, name) and concatenate their exchange entries."""
    groups: Dict[Tuple[str, Optional[str]], List[CanonicalTradingPair]] = {}
    for pair in pairs:
        groups.setdefault(_group_key(pair.coin_quote.symbol, pair.coin_quote.name), []).append(pair)

    merged = []
    for group in groups.values():
        quote = group[0].coin_quote
        merged.append(CanonicalTradingPair(
            coin_quote=QuoteCoin(
                symbol=quote.symbol,
                name=quote.name,
                registry_id=_first(pair.coin_quote.registry_id for pair in group),
                category=_first(pair.coin_quote.category for pair in group),
            ),
            exchange_infos=tuple(info for pair in group for info in pair.exchange_infos),
        ))
    return tuple(merged)


def merge_coins(coins: Iterable[CanonicalCoin]) -> List[CanonicalCoin]:
    """
    Merge per-exchange coins into canonical coins.

    Coins are grouped by case-insensitive (symbol, name); the first member of
    each group supplies the displayed symbol and name. Output keeps
    first-seen order, so the same input always gives the same output.
    """
    groups: Dict[Tuple[str, Optional[str]], List[CanonicalCoin]] = {}
    for coin in coins:
        groups.setdefault(_group_key(coin.symbol, coin.name), []).append(coin)

    return [
        CanonicalCoin(
            symbol=group[0].symbol,
            name=group[0].name,
            registry_id=_first(coin.registry_id for coin in group),
            category=_first(coin.category for coin in group),
            trading_pairs=merge_trading_pairs(pair for coin in group for pair in coin.trading_pairs),
        )
        for group in groups.values()
    ]


# ============================================
# Orchestrator
# ============================================

class CoinAggregator:
    """
    Aggregation orchestrator over every configured exchange and CoinGecko.

    Attributes:
        exchange_manager: Registered exchange connectors
        registry: CoinGecko client (coin list and symbol maps)

    Raises:
        UnmappedExchangeError: At construction, if an exchange has no CoinGecko slug
    """

    def __init__(self, exchange_manager: ExchangeManager, registry: CoinGeckoAPIClient):
        check_registry_slugs(exchange_manager.exchanges.keys())
        self.exchange_manager = exchange_manager
        self.registry = registry
        self._logger = get_logger(__name__)

    async def collect(self) -> Result[List[CanonicalCoin]]:
        """
        Produce a fresh canonical snapshot.

        Returns:
            Result[List[CanonicalCoin]]: every coin with at least one available
            pair, or a failed Result holding an AggregationError whose reasons
            name each failing source. Never a partial snapshot.
        """
        exchanges = self.exchange_manager.all_exchanges()

        *listings, registry_result = await gather_or_cancel(
            *(exchange.list_spot_coins() for exchange in exchanges),
            self.registry.get_coins_list(),
        )

        failures: List[CoinHubError] = [
            CoinHubError(f"No coins found for exchange: {exchange.name}.", source=exchange.name, reasons=result.errors)
            for exchange, result in zip(exchanges, listings)
            if result.is_failure
        ]
        if registry_result.is_failure:
            failures.append(IdentityResolutionError(
                "Failed to retrieve a coins list from CoinGecko.",
                source="coingecko",
                reasons=registry_result.errors,
            ))
        if failures:
            return self._fail("No coins found for one or more sources. See reasons for more information.", failures)

        active_coins = [filter_active_coins(result.value) for result in listings]

        symbol_maps = await gather_or_cancel(
            *(self.registry.get_symbol_to_id_map(registry_slug_for(exchange.exchange_id)) for exchange in exchanges)
        )
        failures = [
            IdentityResolutionError(
                f"Failed to retrieve a symbol to ID map for exchange: {registry_slug_for(exchange.exchange_id)}.",
                source=exchange.name,
                reasons=result.errors,
            )
            for exchange, result in zip(exchanges, symbol_maps)
            if result.is_failure
        ]
        if failures:
            return self._fail("Failed to process exchange coins.", failures)

        registry_by_id = {coin.id: coin for coin in registry_result.value}
        enriched: List[CanonicalCoin] = []
        for exchange, coins, symbol_map in zip(exchanges, active_coins, symbol_maps):
            enriched.extend(self.enrich(exchange.exchange_id, coins, symbol_map.value, registry_by_id))

        snapshot = merge_coins(enriched)
        self._logger.info(f"Aggregated {len(snapshot)} active spot coins from {len(exchanges)} exchange(s)")
        return Result.ok(snapshot)

    def enrich(
        self,
        exchange_id: ExchangeId,
        coins: List[RawExchangeCoin],
        symbol_map: Dict[str, Optional[str]],
        registry_by_id: Dict[str, RegistryCoin],
    ) -> List[CanonicalCoin]:
        """Name one exchange's base and quote coins and log what stayed unnamed."""
        resolver = IdentityResolver(symbol_map, registry_by_id)
        enriched = []

        for coin in coins:
            identity = resolver.resolve(coin.symbol, "base")
            pairs = [
                CanonicalTradingPair(
                    coin_quote=QuoteCoin(
                        symbol=pair.coin_quote.symbol,
                        **resolver.resolve(pair.coin_quote.symbol, "quote")._asdict(),
                    ),
                    exchange_infos=tuple(pair.exchange_infos),
                )
                for pair in coin.trading_pairs
            ]
            enriched.append(CanonicalCoin(
                symbol=coin.symbol,
                **identity._asdict(),
                trading_pairs=merge_trading_pairs(pairs),
            ))

        self._log_resolution_gaps(exchange_id, resolver)
        return enriched

    def _log_resolution_gaps(self, exchange_id: ExchangeId, resolver: IdentityResolver) -> None:
        exchange = exchange_id.value

        for role in ("base", "quote"):
            if resolver.inactive[role]:
                listed = ", ".join(f"{symbol} (coinGeckoId:{coin_id})" for symbol, coin_id in resolver.inactive[role].items())
                self._logger.warning(f"The following coins from {exchange} are inactive on CoinGecko: {listed}")

        if resolver.unnamed["base"]:
            self._logger.warning(
                f"Could not find names for the following symbols in {exchange}: {', '.join(resolver.unnamed['base'])}"
            )
        if resolver.unnamed["quote"]:
            self._logger.warning(
                f"Could not find names for the following quote symbols in {exchange}: {', '.join(resolver.unnamed['quote'])}"
            )

    def _fail(self, message: str, reasons: List[CoinHubError]) -> Result[List[CanonicalCoin]]:
        error = AggregationError(message, reasons=reasons)
        self._logger.error(f"Coin aggregation failed: {error}")
        return Result.fail(error)
