"""
Cache Infrastructure Module

- **redis_client.py**: best-effort redis.asyncio client (reconnect policy, liveness)
- **cache_manager.py**: cache-aside orchestrator (get_or_compute, invalidate)
"""

from storeops.infrastructure.cache.cache_manager import CacheManager
from storeops.infrastructure.cache.redis_client import RedisClient, default_redis_factory

__all__ = [
    "CacheManager",
    "RedisClient",
    "default_redis_factory",
]
