"""
Normalized Data Schemas

This module defines Pydantic models for all coin-listing and kline data types.
These schemas provide a unified, exchange-agnostic data format.

Key Principle:
    Regardless of which exchange the data comes from (Binance, Bybit, Mexc),
    it gets normalized into these standardized schemas. The aggregation engine
    and API consumers only ever see these structures.

Models:
    Enums:
        - ExchangeId: The closed set of supported exchanges
        - TradingPairStatus: Three-value trading status shared by all exchanges
        - CoinCategory: Fiat / Stablecoin classification
        - KlineInterval: Fixed candlestick intervals

    Per-exchange (raw, produced by adapters):
        - RawExchangeCoin, RawTradingPair, CoinRef, ExchangeStatusEntry

    Registry:
        - RegistryCoin, RegistryAsset, AssetInfo

    Canonical snapshot (immutable once produced):
        - CanonicalCoin, CanonicalTradingPair, QuoteCoin

    Klines:
        - Kline, ExchangeKlineRequest, KlineQuery, KlineBatchRequest, KlineSeries
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.utils.time import datetime_to_timestamp


# ============================================
# Enumerations
# ============================================

class ExchangeId(str, Enum):
    """Exchanges this system aggregates. The set is closed."""

    BINANCE = "binance"
    BYBIT = "bybit"
    MEXC = "mexc"


class TradingPairStatus(str, Enum):
    """Exchange-agnostic trading status of a pair on one exchange."""

    AVAILABLE = "available"
    CURRENTLY_UNAVAILABLE = "currently_unavailable"
    UNAVAILABLE = "unavailable"


class CoinCategory(str, Enum):
    FIAT = "fiat"
    STABLECOIN = "stablecoin"


class KlineInterval(str, Enum):
    """
    Fixed candlestick intervals.

    Each exchange adapter translates these into its own wire codes
    (e.g. ONE_HOUR is "1h" on Binance, "60" on Bybit and "60m" on Mexc).
    """

    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"
    ONE_DAY = "1d"
    ONE_WEEK = "1w"
    ONE_MONTH = "1M"

    @property
    def minutes(self) -> int:
        return _INTERVAL_MINUTES[self]


_INTERVAL_MINUTES = {
    KlineInterval.ONE_MINUTE: 1,
    KlineInterval.FIVE_MINUTES: 5,
    KlineInterval.FIFTEEN_MINUTES: 15,
    KlineInterval.THIRTY_MINUTES: 30,
    KlineInterval.ONE_HOUR: 60,
    KlineInterval.FOUR_HOURS: 240,
    KlineInterval.ONE_DAY: 1440,
    KlineInterval.ONE_WEEK: 10080,
    KlineInterval.ONE_MONTH: 43200,
}


# ============================================
# Per-Exchange (Raw) Schemas
# ============================================

class ExchangeStatusEntry(BaseModel):
    """
    Trading status of a pair on one exchange.

    A canonical trading pair carries one entry per exchange that lists it.
    """

    model_config = ConfigDict(frozen=True)

    exchange: ExchangeId = Field(..., description="Exchange listing the pair")
    status: TradingPairStatus = Field(..., description="Normalized trading status")


class CoinRef(BaseModel):
    """A coin reference as seen by one exchange: a symbol and, rarely, a name."""

    symbol: str = Field(..., min_length=1, examples=["BTC", "USDT"])
    name: Optional[str] = Field(None, examples=["Bitcoin"])


class RawTradingPair(BaseModel):
    """A (base, quote) pair listed on one exchange."""

    coin_quote: CoinRef
    exchange_infos: List[ExchangeStatusEntry] = Field(..., min_length=1)

    @property
    def is_available(self) -> bool:
        return any(info.status == TradingPairStatus.AVAILABLE for info in self.exchange_infos)


class RawExchangeCoin(BaseModel):
    """
    A base coin with all of its spot pairs on one exchange.

    Produced by an exchange adapter and discarded after one aggregation pass.

    Example:
        >>> RawExchangeCoin(
        ...     symbol="BTC",
        ...     trading_pairs=[
        ...         RawTradingPair(
        ...             coin_quote=CoinRef(symbol="USDT"),
        ...             exchange_infos=[ExchangeStatusEntry(exchange="binance", status="available")],
        ...         )
        ...     ],
        ... )
    """

    symbol: str = Field(..., min_length=1)
    name: Optional[str] = None
    trading_pairs: List[RawTradingPair] = Field(default_factory=list)


# ============================================
# Registry Schemas
# ============================================

class RegistryCoin(BaseModel):
    """An entry of the registry's (CoinGecko's) full active coin list."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Registry id", examples=["bitcoin"])
    symbol: str = Field(..., examples=["btc"])
    name: str = Field(..., examples=["Bitcoin"])


class RegistryAsset(BaseModel):
    """Market data for one registry asset."""

    model_config = ConfigDict(extra="ignore")

    id: str
    market_cap: Optional[Decimal] = None
    current_price: Optional[Decimal] = None
    price_change_percentage_24h: Optional[Decimal] = None


class AssetInfo(BaseModel):
    """Registry market data enriched with the stablecoin flag."""

    id: str
    market_cap_usd: Optional[int] = None
    price_usd: Optional[Decimal] = None
    price_change_percentage_24h: Optional[Decimal] = None
    is_stablecoin: bool = False


# ============================================
# Canonical Snapshot Schemas
# ============================================

class QuoteCoin(BaseModel):
    """Resolved identity of a trading pair's quote coin."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: Optional[str] = None
    registry_id: Optional[str] = None
    category: Optional[CoinCategory] = None


class CanonicalTradingPair(BaseModel):
    """A (base, quote) pair merged across every exchange that lists it."""

    model_config = ConfigDict(frozen=True)

    coin_quote: QuoteCoin
    exchange_infos: Tuple[ExchangeStatusEntry, ...]


class CanonicalCoin(BaseModel):
    """
    One coin of the canonical snapshot.

    Coins are keyed by (symbol, name): two coins sharing a symbol but resolved
    to different names are different canonical coins. ``name`` stays None when
    neither the registry nor the fiat table knows the symbol.

    Example:
        {
            "symbol": "BTC",
            "name": "Bitcoin",
            "registry_id": "bitcoin",
            "category": null,
            "trading_pairs": [
                {
                    "coin_quote": {"symbol": "USDT", "name": "Tether", "registry_id": "tether", "category": null},
                    "exchange_infos": [
                        {"exchange": "binance", "status": "available"},
                        {"exchange": "bybit", "status": "available"}
                    ]
                }
            ]
        }
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: Optional[str] = None
    registry_id: Optional[str] = None
    category: Optional[CoinCategory] = None
    trading_pairs: Tuple[CanonicalTradingPair, ...] = ()


# ============================================
# Kline Schemas
# ============================================

class Kline(BaseModel):
    """
    One fixed-interval OHLCV candle.

    Times are unix milliseconds. Prices and volume keep the exchange's
    decimal strings exactly (Decimal), so a series is passed through unmodified.
    """

    model_config = ConfigDict(frozen=True)

    open_time: int = Field(..., ge=0, description="Candle open time (unix ms)")
    open_price: Decimal
    high_price: Decimal
    low_price: Decimal
    close_price: Decimal
    volume: Decimal
    close_time: int = Field(..., ge=0, description="Candle close time (unix ms)")


class ExchangeKlineRequest(BaseModel):
    """Kline request for one symbol pair on one exchange."""

    model_config = ConfigDict(frozen=True)

    base_symbol: str
    quote_symbol: str
    interval: KlineInterval
    start_time_ms: int
    end_time_ms: int
    limit: int

    @property
    def symbol(self) -> str:
        """Concatenated exchange symbol, e.g. "BTCUSDT"."""
        return f"{self.base_symbol}{self.quote_symbol}".upper()


class KlineCoin(BaseModel):
    """The main coin of a kline request, as stored by the caller."""

    id: int
    symbol: str
    name: Optional[str] = None


class KlineTradingPair(BaseModel):
    """A stored trading pair with its exchanges in priority order."""

    id: int
    coin_quote: CoinRef
    exchanges: List[ExchangeId] = Field(default_factory=list)


class _KlineWindow(BaseModel):
    interval: KlineInterval = KlineInterval.ONE_HOUR
    start_time: datetime
    end_time: datetime
    limit: int = Field(default=100, ge=1, le=1000)

    @model_validator(mode="after")
    def check_time_range(self):
        if self.start_time > self.end_time:
            raise ValueError("start_time must not be after end_time")
        return self

    def to_exchange_request(self, base_symbol: str, quote_symbol: str) -> ExchangeKlineRequest:
        return ExchangeKlineRequest(
            base_symbol=base_symbol,
            quote_symbol=quote_symbol,
            interval=self.interval,
            start_time_ms=datetime_to_timestamp(self.start_time, milliseconds=True),
            end_time_ms=datetime_to_timestamp(self.end_time, milliseconds=True),
            limit=self.limit,
        )


class KlineQuery(_KlineWindow):
    """Bars for one trading pair, tried across its exchanges in order."""

    coin_main: KlineCoin
    trading_pair: KlineTradingPair


class KlineBatchCoin(KlineCoin):
    """A main coin with its trading pairs in the order they should be tried."""

    trading_pairs: List[KlineTradingPair] = Field(default_factory=list)


class KlineBatchRequest(_KlineWindow):
    """Bars for many coins sharing one interval and time range."""

    coins: List[KlineBatchCoin] = Field(default_factory=list)


class KlineSeries(BaseModel):
    """The bars returned for one trading pair."""

    trading_pair_id: int
    klines: List[Kline]

    @field_validator("klines")
    @classmethod
    def validate_klines(cls, v: List[Kline]) -> List[Kline]:
        """A series is only produced from a non-empty exchange response"""
        if not v:
            raise ValueError("klines must not be empty")
        return v


class AssetInfoRequest(BaseModel):
    """CoinGecko ids to fetch market data for."""

    ids: List[str] = Field(..., min_length=1, examples=[["bitcoin", "tether"]])
