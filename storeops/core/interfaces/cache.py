"""
Cache Backend Protocol

Abstract protocol for the cache transport used by the cache-aside orchestrator.

Architectural Decision: Protocol-based abstraction
- The orchestrator depends on this shape, not on redis.asyncio
- Tests substitute a fakeredis-backed client or a plain stub
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """
    Protocol for a best-effort key-value cache.

    Every operation absorbs transport failures and reports them as a
    failure result instead of raising:
    - get → None
    - set → False
    - delete → 0

    Implementations:
    - RedisClient: production Redis-backed cache
    """

    async def connect(self) -> bool:
        """Attempt a bounded connect cycle; True when live."""
        ...

    async def disconnect(self) -> None:
        """Close the connection."""
        ...

    def is_live(self) -> bool:
        """Current liveness flag."""
        ...

    async def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None on miss / unavailability."""
        ...

    async def set(self, key: str, value: bytes, ttl: float | None = None) -> bool:
        """Store bytes with an optional TTL in seconds."""
        ...

    async def delete(self, key_or_pattern: str) -> int:
        """Delete one key, or every key matching a pattern containing '*'."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Report liveness and latency."""
        ...
