"""
Storage Package

Handles caching strategies.

Current implementation:
- In-memory single-flight cache for the aggregated coin snapshot

The modular design allows upgrading storage (e.g. Redis) without breaking
the services that use it.
"""

from storage.cache import SingleFlightCache

__all__ = ["SingleFlightCache"]
