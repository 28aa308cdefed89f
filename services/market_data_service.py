"""
Market Data Service

USD market data for CoinGecko assets, flagged with whether each asset is a
stablecoin. Market data and the stablecoin id list are fetched concurrently.
"""

from typing import Iterable, List

from core.exceptions import AggregationError, CoinHubError
from core.logging import get_logger
from core.result import Result
from core.schemas import AssetInfo, RegistryAsset
from core.utils.tasks import gather_or_cancel
from providers.coingecko import CoinGeckoAPIClient


class MarketDataService:
    def __init__(self, registry: CoinGeckoAPIClient):
        self.registry = registry
        self._logger = get_logger(__name__)

    async def get_assets_info(self, ids: Iterable[str]) -> Result[List[AssetInfo]]:
        """
        Fetch market data for the given CoinGecko ids.

        Returns:
            Result[List[AssetInfo]], or a failed Result if either the market
            data or the stablecoin list could not be fetched.
        """
        market_data, stablecoin_ids = await gather_or_cancel(
            self.registry.get_market_data(list(ids)),
            self.registry.get_stablecoin_ids(),
        )

        failures = []
        if market_data.is_failure:
            failures.append(CoinHubError("Failed to retrieve asset market data.", source="coingecko", reasons=market_data.errors))
        if stablecoin_ids.is_failure:
            failures.append(CoinHubError("Failed to retrieve stablecoin IDs.", source="coingecko", reasons=stablecoin_ids.errors))
        if failures:
            error = AggregationError("Failed to retrieve assets info from CoinGecko.", reasons=failures)
            self._logger.error(str(error))
            return Result.fail(error)

        stablecoins = set(stablecoin_ids.value)
        return Result.ok([self._to_asset_info(asset, stablecoins) for asset in market_data.value])

    @staticmethod
    def _to_asset_info(asset: RegistryAsset, stablecoins: set) -> AssetInfo:
        return AssetInfo(
            id=asset.id,
            market_cap_usd=int(asset.market_cap) if asset.market_cap is not None else None,
            price_usd=asset.current_price,
            price_change_percentage_24h=asset.price_change_percentage_24h,
            is_stablecoin=asset.id in stablecoins,
        )
