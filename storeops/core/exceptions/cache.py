"""
Cache-Related Exceptions

Raised inside the cache client only. The client converts every one of them
into a failure result (None / False / 0); none reach a query service.
"""

from storeops.core.exceptions.base import StoreOpsError


class CacheError(StoreOpsError):
    """Base exception for cache-related errors."""

    default_code = "CACHE_ERROR"


class CacheUnavailableError(CacheError):
    """
    Raised when the cache cannot be reached.

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    - Authentication failure
    """

    default_code = "CACHE_UNAVAILABLE"
