"""
Core Interfaces Module

Protocols for the pluggable seams of the data-access layer.

Components:
-----------
- **cache.py**: CacheBackend protocol for the cache transport
- **database.py**: BackendConnection / BackendPool / StoreDriver protocols
"""

from storeops.core.interfaces.cache import CacheBackend
from storeops.core.interfaces.database import BackendConnection, BackendPool, StoreDriver

__all__ = [
    "BackendConnection",
    "BackendPool",
    "CacheBackend",
    "StoreDriver",
]
