"""
Task Fan-Out Helpers

asyncio.gather leaves its sibling tasks running when one of them raises.
gather_or_cancel cancels the ones still pending before re-raising, so a
fan-out that fails (or is cancelled) leaves nothing behind.

Usage:
    listings = await gather_or_cancel(*(exchange.list_spot_coins() for exchange in exchanges))
"""

import asyncio
from typing import Any, Awaitable, List


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    Raises:
        The first exception raised by any awaitable, after cancelling the
        awaitables that have not finished yet.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
