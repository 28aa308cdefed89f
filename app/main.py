"""
FastAPI Application - Cross-Exchange Coin Aggregation API

Exposes the canonical spot-coin snapshot, waterfall kline retrieval and
CoinGecko asset info over REST.

Supported Exchanges:
    - Binance Spot
    - Bybit Spot
    - Mexc Spot

Usage:
    uvicorn app.main:app --reload --host 0.0.0.0 --port 8000

Docs:
    - Swagger: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
"""

from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings, validate_configuration
from core.exchange_manager import ExchangeManager
from core.logging import logger
from core.result import Result
from core.schemas import (
    AssetInfo,
    AssetInfoRequest,
    CanonicalCoin,
    KlineBatchRequest,
    KlineQuery,
    KlineSeries,
)
from providers.coingecko import CoinGeckoAPIClient
from services.coin_aggregator import CoinAggregator
from services.coins_service import CoinsService
from services.kline_service import KlineService
from services.market_data_service import MarketDataService


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("=== Application Starting ===")
    try:
        validate_configuration()
        await manager.initialize_all()
        await registry.__aenter__()
        logger.info("=== Started Successfully ===")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    logger.info("=== Shutting Down ===")
    try:
        await registry.__aexit__(None, None, None)
        await manager.shutdown_all()
        logger.info("=== Shutdown Complete ===")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="CoinHub Cross-Exchange Aggregation API",
    description=(
        "Canonical view of spot coins across exchanges, plus historical klines.\n\n"
        "**Supported Exchanges:** Binance, Bybit, Mexc (spot)\n\n"
        "## REST Endpoints\n"
        "- `GET /exchanges/coins/spot` - Every actively traded spot coin, merged across exchanges\n"
        "- `POST /exchanges/kline/query` - Klines for one trading pair (exchange waterfall)\n"
        "- `POST /exchanges/kline/query/bulk` - Klines for many coins, best effort\n"
        "- `POST /market-data/assets` - CoinGecko market data with stablecoin flag\n"
        "- `GET /exchanges` - List supported exchanges\n"
        "- `GET /health` - Health check"
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

manager = ExchangeManager()  # Global exchange manager
registry = CoinGeckoAPIClient()
coins_service = CoinsService(CoinAggregator(manager, registry))
kline_service = KlineService(manager)
market_data_service = MarketDataService(registry)


def _failure_response(result: Result) -> JSONResponse:
    """Map a failed Result to a 500 response listing its errors."""
    logger.error(f"Request failed: {result.error_message}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": result.error_message,
            "errors": [error.to_dict() for error in result.errors],
        },
    )


# ============================================
# System Endpoints
# ============================================

@app.get("/", tags=["System"])
async def root():
    """API information and available exchanges."""
    return {
        "name": "CoinHub Cross-Exchange Aggregation API",
        "version": "1.0.0",
        "status": "operational",
        "docs": "/docs",
        "exchanges": manager.list_exchanges()
    }


@app.get("/health", tags=["System"])
async def health_check():
    return {"status": "healthy", "environment": settings.environment, "exchanges": manager.list_exchanges()}


@app.get("/exchanges", tags=["System"])
async def list_exchanges():
    """List all supported exchanges."""
    return {"exchanges": manager.list_exchanges()}


# ============================================
# Coin Endpoints
# ============================================

@app.get("/exchanges/coins/spot", response_model=List[CanonicalCoin], tags=["Coins"])
async def get_spot_coins():
    """
    Every coin with at least one available spot pair on a supported exchange.

    Served from the cache while fresh. A failure on any exchange or on
    CoinGecko fails the whole request (500) instead of returning a partial list.
    """
    result = await coins_service.get_snapshot()
    if result.is_failure:
        return _failure_response(result)
    return result.value


# ============================================
# Kline Endpoints
# ============================================

@app.post("/exchanges/kline/query", response_model=KlineSeries, tags=["Klines"])
async def query_klines(query: KlineQuery):
    """
    Klines for one trading pair.

    The pair's exchanges are tried in order; the first non-empty series is returned.
    """
    result = await kline_service.fetch_one(query)
    if result.is_failure:
        return _failure_response(result)
    return result.value


@app.post("/exchanges/kline/query/bulk", response_model=List[KlineSeries], tags=["Klines"])
async def query_klines_bulk(request: KlineBatchRequest):
    """
    Klines for many coins. Coins without data are omitted; this never fails as a whole.
    """
    return await kline_service.fetch_batch(request)


# ============================================
# Market Data Endpoints
# ============================================

@app.post("/market-data/assets", response_model=List[AssetInfo], tags=["Market Data"])
async def get_assets_info(request: AssetInfoRequest):
    """CoinGecko USD market data for the given ids, with a stablecoin flag."""
    result = await market_data_service.get_assets_info(request.ids)
    if result.is_failure:
        return _failure_response(result)
    return result.value


# ============================================
# Error Handlers
# ============================================

@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Handle 404 errors."""
    return JSONResponse(status_code=404, content={"detail": "Not found", "path": str(request.url)})


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Handle 500 errors."""
    logger.error(f"Internal error: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
