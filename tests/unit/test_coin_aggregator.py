"""
Unit Tests for the Coin Aggregator

Stub exchanges and a stub registry drive CoinAggregator.collect() through:
- Fail-fast aggregation across exchanges and CoinGecko
- Active-pair filtering
- Registry / fiat identity resolution and its log lines
- Cross-exchange merge by (symbol, name)

Run with:
    pytest tests/unit/test_coin_aggregator.py -v
"""

import asyncio
import logging

import pytest

from core.exceptions import AggregationError, UnmappedExchangeError, UnmappedStatusError
from core.exchange_manager import ExchangeManager
from core.result import Result
from core.schemas import CanonicalCoin, CoinCategory, ExchangeId, RegistryCoin, TradingPairStatus
from services.coin_aggregator import CoinAggregator, filter_active_coins, merge_coins
from stubs import Rendezvous, StubExchange, StubRegistry, raw_coin, transport_failure

A = TradingPairStatus.AVAILABLE
CU = TradingPairStatus.CURRENTLY_UNAVAILABLE
U = TradingPairStatus.UNAVAILABLE

REGISTRY_COINS = [
    RegistryCoin(id="bitcoin", symbol="btc", name="Bitcoin"),
    RegistryCoin(id="ethereum", symbol="eth", name="Ethereum"),
    RegistryCoin(id="tether", symbol="usdt", name="Tether"),
]


def build_aggregator(listings, symbol_maps=None, registry_coins=REGISTRY_COINS, coins_result=None):
    exchanges = [StubExchange(exchange_id, coins=result) for exchange_id, result in listings.items()]
    registry = StubRegistry(registry_coins, symbol_maps=symbol_maps, coins_result=coins_result)
    return CoinAggregator(ExchangeManager(exchanges), registry), registry


class BlockingRegistry(StubRegistry):
    """Registry whose coin list never arrives; records when it is cancelled."""

    def __init__(self, coins):
        super().__init__(coins)
        self.started = asyncio.Event()
        self.cancelled = False

    async def get_coins_list(self):
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise


def ok_maps(**maps):
    return {slug: Result.ok(symbol_map) for slug, symbol_map in maps.items()}


def find(coins, symbol, name):
    matches = [coin for coin in coins if coin.symbol == symbol and coin.name == name]
    assert len(matches) == 1, f"expected one {symbol}/{name}, got {matches}"
    return matches[0]


# ============================================
# Fail-Fast Aggregation
# ============================================

class TestFailFast:

    @pytest.mark.asyncio
    async def test_one_failing_exchange_fails_the_pass(self):
        aggregator, registry = build_aggregator({
            ExchangeId.BINANCE: Result.ok([raw_coin(ExchangeId.BINANCE, "BTC", {"USDT": A})]),
            ExchangeId.BYBIT: transport_failure("bybit"),
            ExchangeId.MEXC: Result.ok([raw_coin(ExchangeId.MEXC, "BTC", {"USDT": A})]),
        })

        result = await aggregator.collect()

        assert result.is_failure
        error = result.errors[0]
        assert isinstance(error, AggregationError)
        assert error.failed_sources == ["bybit"]
        assert result.value is None
        # Nothing past the fan-out runs
        assert registry.requested_slugs == []

    @pytest.mark.asyncio
    async def test_every_failing_source_is_named(self):
        aggregator, _ = build_aggregator(
            {
                ExchangeId.BINANCE: transport_failure("binance"),
                ExchangeId.MEXC: transport_failure("mexc"),
            },
            coins_result=transport_failure("coingecko", "rate limited"),
        )

        result = await aggregator.collect()

        assert result.is_failure
        assert result.errors[0].failed_sources == ["binance", "mexc", "coingecko"]

    @pytest.mark.asyncio
    async def test_symbol_map_failure_fails_the_pass(self):
        aggregator, _ = build_aggregator(
            {
                ExchangeId.BINANCE: Result.ok([raw_coin(ExchangeId.BINANCE, "BTC", {"USDT": A})]),
                ExchangeId.MEXC: Result.ok([raw_coin(ExchangeId.MEXC, "BTC", {"USDT": A})]),
            },
            symbol_maps={"binance": Result.ok({}), "mxc": transport_failure("coingecko")},
        )

        result = await aggregator.collect()

        assert result.is_failure
        assert result.errors[0].failed_sources == ["mexc"]
        assert "mxc" in result.error_message

    @pytest.mark.asyncio
    async def test_listings_and_registry_list_are_fetched_together(self):
        rendezvous = Rendezvous(parties=4)
        exchanges = [
            StubExchange(exchange_id, coins=Result.ok([raw_coin(exchange_id, "BTC", {"USDT": A})]), rendezvous=rendezvous)
            for exchange_id in (ExchangeId.BINANCE, ExchangeId.BYBIT, ExchangeId.MEXC)
        ]
        registry = StubRegistry(REGISTRY_COINS, rendezvous=rendezvous)
        aggregator = CoinAggregator(ExchangeManager(exchanges), registry)

        result = await asyncio.wait_for(aggregator.collect(), timeout=1)

        assert result.is_success
        assert rendezvous.arrived == 4

    @pytest.mark.asyncio
    async def test_status_error_cancels_the_remaining_fetches(self):
        registry = BlockingRegistry(REGISTRY_COINS)

        class UnknownStatusExchange(StubExchange):
            async def list_spot_coins(self):
                await registry.started.wait()
                raise UnmappedStatusError("Unknown status 'AUCTION'", source="binance")

        aggregator = CoinAggregator(ExchangeManager([UnknownStatusExchange(ExchangeId.BINANCE)]), registry)

        with pytest.raises(UnmappedStatusError):
            await asyncio.wait_for(aggregator.collect(), timeout=1)
        await asyncio.sleep(0)

        assert registry.cancelled

    def test_exchange_without_registry_slug_is_rejected_at_construction(self):
        manager = ExchangeManager([])
        manager.exchanges["kraken"] = StubExchange(ExchangeId.BINANCE)

        with pytest.raises(UnmappedExchangeError):
            CoinAggregator(manager, StubRegistry())


# ============================================
# Active-Pair Filter
# ============================================

class TestActiveFilter:

    def test_drops_inactive_pairs_and_empty_coins(self):
        coins = [
            raw_coin(ExchangeId.BINANCE, "BTC", {"USDT": A, "EUR": U}),
            raw_coin(ExchangeId.BINANCE, "LUNA", {"USDT": CU, "BUSD": U}),
        ]

        active = filter_active_coins(coins)

        assert [coin.symbol for coin in active] == ["BTC"]
        assert [pair.coin_quote.symbol for pair in active[0].trading_pairs] == ["USDT"]
        # Input is not mutated
        assert len(coins[0].trading_pairs) == 2

    @pytest.mark.asyncio
    async def test_every_returned_pair_has_an_available_entry(self):
        aggregator, _ = build_aggregator(
            {
                ExchangeId.BINANCE: Result.ok([
                    raw_coin(ExchangeId.BINANCE, "BTC", {"USDT": A, "EUR": CU}),
                    raw_coin(ExchangeId.BINANCE, "ETH", {"USDT": U}),
                ]),
                ExchangeId.BYBIT: Result.ok([raw_coin(ExchangeId.BYBIT, "BTC", {"USDT": CU, "EUR": U})]),
            },
            symbol_maps=ok_maps(
                binance={"BTC": "bitcoin", "USDT": "tether", "ETH": "ethereum"},
                bybit_spot={"BTC": "bitcoin", "USDT": "tether"},
            ),
        )

        result = await aggregator.collect()

        assert result.is_success
        for coin in result.value:
            for pair in coin.trading_pairs:
                assert any(info.status == A for info in pair.exchange_infos)
        assert [coin.symbol for coin in result.value] == ["BTC"]


# ============================================
# Identity Resolution
# ============================================

class TestIdentityResolution:

    @pytest.mark.asyncio
    async def test_registry_names_base_and_quote(self):
        aggregator, registry = build_aggregator(
            {ExchangeId.MEXC: Result.ok([raw_coin(ExchangeId.MEXC, "btc", {"usdt": A})])},
            symbol_maps=ok_maps(mxc={"BTC": "bitcoin", "USDT": "tether"}),
        )

        result = await aggregator.collect()

        coin = result.value[0]
        assert (coin.name, coin.registry_id, coin.category) == ("Bitcoin", "bitcoin", None)
        quote = coin.trading_pairs[0].coin_quote
        assert (quote.name, quote.registry_id) == ("Tether", "tether")
        assert registry.requested_slugs == ["mxc"]

    @pytest.mark.asyncio
    async def test_fiat_fallback_for_symbol_missing_from_map(self):
        aggregator, _ = build_aggregator(
            {ExchangeId.BINANCE: Result.ok([raw_coin(ExchangeId.BINANCE, "BTC", {"EUR": A})])},
            symbol_maps=ok_maps(binance={"BTC": "bitcoin"}),
        )

        result = await aggregator.collect()

        quote = result.value[0].trading_pairs[0].coin_quote
        assert quote.symbol == "EUR"
        assert quote.name == "Euro"
        assert quote.category == CoinCategory.FIAT
        assert quote.registry_id is None

    @pytest.mark.asyncio
    async def test_fiat_fallback_for_null_map_id(self):
        aggregator, _ = build_aggregator(
            {ExchangeId.BINANCE: Result.ok([raw_coin(ExchangeId.BINANCE, "BTC", {"TRY": A})])},
            symbol_maps=ok_maps(binance={"BTC": "bitcoin", "TRY": None}),
        )

        result = await aggregator.collect()

        quote = result.value[0].trading_pairs[0].coin_quote
        assert (quote.name, quote.category) == ("Turkish Lira", CoinCategory.FIAT)

    @pytest.mark.asyncio
    async def test_unresolved_coin_keeps_no_name_even_with_exchange_name(self, caplog):
        aggregator, _ = build_aggregator(
            {ExchangeId.MEXC: Result.ok([raw_coin(ExchangeId.MEXC, "ZZZ", {"USDT": A, "QQQ": A}, name="Zed Token")])},
            symbol_maps=ok_maps(mxc={"USDT": "tether"}),
        )

        with caplog.at_level(logging.WARNING):
            result = await aggregator.collect()

        coin = result.value[0]
        assert coin.name is None
        assert coin.registry_id is None
        assert "Could not find names for the following symbols in mexc: ZZZ" in caplog.text
        assert "Could not find names for the following quote symbols in mexc: QQQ" in caplog.text

    @pytest.mark.asyncio
    async def test_inactive_registry_coin_is_logged_and_not_fiat(self, caplog):
        aggregator, _ = build_aggregator(
            {ExchangeId.BYBIT: Result.ok([raw_coin(ExchangeId.BYBIT, "EUR", {"USDT": A})])},
            symbol_maps=ok_maps(bybit_spot={"EUR": "stasis-eurs", "USDT": "tether"}),
        )

        with caplog.at_level(logging.WARNING):
            result = await aggregator.collect()

        coin = result.value[0]
        assert coin.name is None
        assert coin.category is None
        assert "The following coins from bybit are inactive on CoinGecko: EUR (coinGeckoId:stasis-eurs)" in caplog.text
        assert "Could not find names" not in caplog.text

    @pytest.mark.asyncio
    async def test_registry_id_never_invented(self):
        aggregator, _ = build_aggregator(
            {
                ExchangeId.BINANCE: Result.ok([
                    raw_coin(ExchangeId.BINANCE, "BTC", {"USDT": A}),
                    raw_coin(ExchangeId.BINANCE, "NEW", {"USDT": A}),
                ]),
                ExchangeId.MEXC: Result.ok([raw_coin(ExchangeId.MEXC, "OLD", {"USDT": A})]),
            },
            symbol_maps=ok_maps(
                binance={"BTC": "bitcoin", "USDT": "tether", "NEW": None},
                mxc={"OLD": "old-delisted", "USDT": "tether"},
            ),
        )

        result = await aggregator.collect()

        registry_ids = {coin.id for coin in REGISTRY_COINS}
        for coin in result.value:
            if coin.registry_id is None:
                assert coin.symbol in {"NEW", "OLD"}
            else:
                assert coin.registry_id in registry_ids


# ============================================
# Cross-Exchange Merge
# ============================================

class TestMerge:

    @pytest.mark.asyncio
    async def test_same_coin_merges_exchange_entries(self):
        aggregator, _ = build_aggregator(
            {
                ExchangeId.BINANCE: Result.ok([raw_coin(ExchangeId.BINANCE, "BTC", {"USDT": A, "EUR": A})]),
                ExchangeId.BYBIT: Result.ok([raw_coin(ExchangeId.BYBIT, "BTC", {"USDT": A, "USDC": CU})]),
                ExchangeId.MEXC: Result.ok([raw_coin(ExchangeId.MEXC, "btc", {"usdt": A})]),
            },
            symbol_maps=ok_maps(
                binance={"BTC": "bitcoin", "USDT": "tether"},
                bybit_spot={"BTC": "bitcoin", "USDT": "tether"},
                mxc={"BTC": "bitcoin", "USDT": "tether"},
            ),
        )

        result = await aggregator.collect()

        assert len(result.value) == 1
        btc = result.value[0]
        assert btc.symbol == "BTC"
        assert btc.registry_id == "bitcoin"

        usdt, eur = btc.trading_pairs
        assert usdt.coin_quote.symbol == "USDT"
        assert [(info.exchange, info.status) for info in usdt.exchange_infos] == [
            (ExchangeId.BINANCE, A),
            (ExchangeId.BYBIT, A),
            (ExchangeId.MEXC, A),
        ]
        assert eur.coin_quote.category == CoinCategory.FIAT

    @pytest.mark.asyncio
    async def test_same_symbol_different_names_stay_apart(self):
        aggregator, _ = build_aggregator(
            {
                ExchangeId.BINANCE: Result.ok([raw_coin(ExchangeId.BINANCE, "BTC", {"USDT": A})]),
                ExchangeId.BYBIT: Result.ok([raw_coin(ExchangeId.BYBIT, "BTC", {"USDT": A})]),
            },
            symbol_maps=ok_maps(
                binance={"USDT": "tether"},
                bybit_spot={"BTC": "bitcoin", "USDT": "tether"},
            ),
        )

        result = await aggregator.collect()

        assert len(result.value) == 2
        unnamed = find(result.value, "BTC", None)
        named = find(result.value, "BTC", "Bitcoin")
        assert unnamed.registry_id is None
        assert named.registry_id == "bitcoin"
        assert unnamed.trading_pairs[0].exchange_infos[0].exchange == ExchangeId.BINANCE
        assert named.trading_pairs[0].exchange_infos[0].exchange == ExchangeId.BYBIT

    @pytest.mark.asyncio
    async def test_merge_is_deterministic(self):
        listings = {
            ExchangeId.BINANCE: Result.ok([
                raw_coin(ExchangeId.BINANCE, "ETH", {"BTC": A, "USDT": A}),
                raw_coin(ExchangeId.BINANCE, "BTC", {"USDT": A}),
            ]),
            ExchangeId.MEXC: Result.ok([raw_coin(ExchangeId.MEXC, "eth", {"USDT": A})]),
        }
        maps = ok_maps(
            binance={"BTC": "bitcoin", "ETH": "ethereum", "USDT": "tether"},
            mxc={"ETH": "ethereum", "USDT": "tether"},
        )

        first = await build_aggregator(listings, maps)[0].collect()
        second = await build_aggregator(listings, maps)[0].collect()

        assert first.value == second.value
        assert merge_coins(first.value) == first.value

    def test_merge_keeps_first_seen_display_and_first_registry_id(self):
        coins = [
            CanonicalCoin(symbol="Usdc", name="USD Coin"),
            CanonicalCoin(symbol="USDC", name="usd coin", registry_id="usd-coin"),
        ]

        merged = merge_coins(coins)

        assert len(merged) == 1
        assert merged[0].symbol == "Usdc"
        assert merged[0].registry_id == "usd-coin"
