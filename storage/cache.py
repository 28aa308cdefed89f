"""
Single-Flight Keyed Cache

In-memory get-or-create store for expensive async computations that return
a Result. On a miss, concurrent callers for the same key share one in-flight
computation. Only successful Results are stored; a failed Result (or an
exception) is handed to the callers waiting on that miss and then forgotten,
so the next call computes again.

Usage:
    cache = SingleFlightCache(ttl=600)
    result = await cache.get_or_create("all_current_active_spot_coins", aggregator.collect)
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from core.logging import get_logger
from core.result import Result


class SingleFlightCache:
    """
    Async keyed cache with single-flight misses and a per-entry TTL.

    - Entries expire ``ttl`` seconds after they were stored.
    - The shared computation runs under ``asyncio.shield``: a cancelled caller
      stops waiting while the other callers still get the result. When the
      last waiter is cancelled the computation itself is cancelled and
      nothing is stored.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Result[Any]]] = {}
        self._in_flight: Dict[str, asyncio.Future] = {}
        self._waiters: Dict[asyncio.Future, int] = {}
        self._logger = get_logger(__name__)

    async def get_or_create(self, key: str, factory: Callable[[], Awaitable[Result[Any]]]) -> Result[Any]:
        """
        Return the cached Result for ``key``, computing it with ``factory`` on a miss.
        """
        cached = self._get_fresh(key)
        if cached is not None:
            self._logger.debug(f"Cache hit for '{key}'")
            return cached

        future = self._in_flight.get(key)
        if future is None:
            self._logger.debug(f"Cache miss for '{key}', computing")
            future = asyncio.ensure_future(self._compute(key, factory))
            self._in_flight[key] = future
        else:
            self._logger.debug(f"Cache miss for '{key}', joining in-flight computation")

        self._waiters[future] = self._waiters.get(future, 0) + 1
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            if self._waiters[future] == 1 and not future.done():
                self._logger.debug(f"Last waiter for '{key}' cancelled, aborting computation")
                future.cancel()
                if self._in_flight.get(key) is future:
                    del self._in_flight[key]
            raise
        finally:
            self._waiters[future] -= 1
            if not self._waiters[future]:
                del self._waiters[future]

    async def _compute(self, key: str, factory: Callable[[], Awaitable[Result[Any]]]) -> Result[Any]:
        try:
            result = await factory()
            if result.is_success:
                self._entries[key] = (self._clock() + self._ttl, result)
            else:
                self._logger.warning(f"Not caching failed result for '{key}': {result.error_message}")
            return result
        finally:
            # A cancelled computation may already have been replaced by a newer one
            if self._in_flight.get(key) is asyncio.current_task():
                del self._in_flight[key]

    def _get_fresh(self, key: str) -> Optional[Result[Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, result = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return result

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or every key when ``key`` is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self._get_fresh(key) is not None
