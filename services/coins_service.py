"""
Coins Service

Cached access to the canonical spot-coin snapshot. The snapshot is rebuilt
by CoinAggregator on a cache miss; concurrent callers share one rebuild and
failed rebuilds are never cached.
"""

from typing import List, Optional

from core.config import settings
from core.result import Result
from core.schemas import CanonicalCoin
from services.coin_aggregator import CoinAggregator
from storage.cache import SingleFlightCache

SNAPSHOT_CACHE_KEY = "all_current_active_spot_coins"


class CoinsService:
    def __init__(self, aggregator: CoinAggregator, cache: Optional[SingleFlightCache] = None):
        self.aggregator = aggregator
        self.cache = cache or SingleFlightCache(ttl=settings.cache_ttl)

    async def get_snapshot(self) -> Result[List[CanonicalCoin]]:
        """Return the current full coin universe, from cache when fresh."""
        return await self.cache.get_or_create(SNAPSHOT_CACHE_KEY, self.aggregator.collect)

    def invalidate(self) -> None:
        self.cache.invalidate(SNAPSHOT_CACHE_KEY)
