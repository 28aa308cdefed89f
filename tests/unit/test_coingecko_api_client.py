"""
Unit Tests for CoinGecko API Client

Covers the coin list, ticker paging for symbol maps, stablecoin paging,
chunked market data and the exchange slug table.

Run with:
    pytest tests/unit/test_coingecko_api_client.py -v
"""

import pytest
import pytest_asyncio

from core.exceptions import TransportError, UnmappedExchangeError
from core.result import Result
from core.schemas import ExchangeId
from providers.coingecko import REGISTRY_SLUGS, check_registry_slugs, registry_slug_for
from providers.coingecko.api_client import CoinGeckoAPIClient


@pytest_asyncio.fixture
async def api_client():
    async with CoinGeckoAPIClient() as client:
        yield client


def ticker(base, target, coin_id=None, target_coin_id=None):
    return {"base": base, "target": target, "coin_id": coin_id, "target_coin_id": target_coin_id}


class TestCoinsList:

    @pytest.mark.asyncio
    async def test_parses_registry_coins(self, api_client, monkeypatch):
        async def mock_get(path, params=None, failure_message=None):
            assert path == "/api/v3/coins/list"
            return Result.ok([
                {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"},
                {"id": "tether", "symbol": "usdt", "name": "Tether"},
            ])

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.get_coins_list()

        assert [coin.id for coin in result.value] == ["bitcoin", "tether"]
        assert result.value[0].name == "Bitcoin"


class TestSymbolToIdMap:

    @pytest.mark.asyncio
    async def test_pages_until_short_page(self, api_client, monkeypatch):
        pages = {
            1: [ticker("BTC", "USDT", "bitcoin", "tether")] * 100,
            2: [ticker("eth", "usdt", "ethereum", "tether"), ticker("XYZ", "EUR", None, "")],
        }
        requested = []

        async def mock_get(path, params=None, failure_message=None):
            assert path == "/api/v3/exchanges/mxc/tickers"
            assert params["depth"] == "false"
            assert params["order"] == "volume_desc"
            requested.append(params["page"])
            return Result.ok({"name": "MEXC", "tickers": pages[params["page"]]})

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.get_symbol_to_id_map("mxc")

        assert requested == [1, 2]
        assert result.value == {
            "BTC": "bitcoin",
            "USDT": "tether",
            "ETH": "ethereum",
            "XYZ": None,
            "EUR": None,
        }

    @pytest.mark.asyncio
    async def test_first_non_empty_id_wins(self, api_client, monkeypatch):
        async def mock_get(path, params=None, failure_message=None):
            return Result.ok({"tickers": [
                ticker("PEPE", "USDT", None, "tether"),
                ticker("pepe", "USDC", "pepe", "usd-coin"),
                ticker("PEPE", "EUR", "pepe-old", None),
            ]})

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.get_symbol_to_id_map("binance")

        assert result.value["PEPE"] == "pepe"

    @pytest.mark.asyncio
    async def test_stops_on_empty_page(self, api_client, monkeypatch):
        requested = []

        async def mock_get(path, params=None, failure_message=None):
            requested.append(params["page"])
            if params["page"] == 1:
                return Result.ok({"tickers": [ticker("BTC", "USDT", "bitcoin", "tether")] * 100})
            return Result.ok({"tickers": []})

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.get_symbol_to_id_map("binance")

        assert requested == [1, 2]
        assert result.value["BTC"] == "bitcoin"

    @pytest.mark.asyncio
    async def test_page_failure_fails_the_map(self, api_client, monkeypatch):
        async def mock_get(path, params=None, failure_message=None):
            if params["page"] == 1:
                return Result.ok({"tickers": [ticker("BTC", "USDT", "bitcoin", "tether")] * 100})
            return Result.fail(TransportError(failure_message, source="coingecko", status_code=429))

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.get_symbol_to_id_map("bybit_spot")

        assert result.is_failure
        assert "bybit_spot" in result.error_message


class TestMarketData:

    @pytest.mark.asyncio
    async def test_empty_ids_is_failure(self, api_client):
        result = await api_client.get_market_data([])

        assert result.is_failure

    @pytest.mark.asyncio
    async def test_chunks_ids_by_250(self, api_client, monkeypatch):
        ids = [f"coin-{i}" for i in range(300)]
        chunks = []

        async def mock_get(path, params=None, failure_message=None):
            requested = params["ids"].split(",")
            chunks.append(len(requested))
            return Result.ok([{"id": coin_id, "market_cap": 1, "current_price": 2} for coin_id in requested])

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.get_market_data(ids)

        assert chunks == [250, 50]
        assert len(result.value) == 300

    @pytest.mark.asyncio
    async def test_stablecoin_ids(self, api_client, monkeypatch):
        async def mock_get(path, params=None, failure_message=None):
            assert params["category"] == "stablecoins"
            return Result.ok([{"id": "tether"}, {"id": "usd-coin"}])

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.get_stablecoin_ids()

        assert result.value == ["tether", "usd-coin"]


class TestRegistrySlugs:

    def test_known_slugs(self):
        assert registry_slug_for(ExchangeId.BINANCE) == "binance"
        assert registry_slug_for(ExchangeId.MEXC) == "mxc"
        assert registry_slug_for(ExchangeId.BYBIT) == "bybit_spot"

    def test_every_exchange_has_a_slug(self):
        check_registry_slugs(list(ExchangeId))
        assert set(REGISTRY_SLUGS) == set(ExchangeId)

    def test_unknown_exchange_raises(self):
        with pytest.raises(UnmappedExchangeError):
            registry_slug_for("kraken")
