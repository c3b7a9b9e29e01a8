"""
Cache-Aside Orchestrator

Architecture:
    CacheManager (Public API: get_or_compute / invalidate / drain)
        ├── CacheObserver (hit / miss / write-failure metrics and logging)
        ├── WriteScheduler (fire-and-forget writes with an error sink)
        └── SingleFlight (optional: concurrent misses share one compute)

Contract:
    get_or_compute(key, ttl, compute)
    1. GET key; decodable bytes → return (hit, compute not called)
    2. miss / undecodable / cache unavailable → await compute()
    3. result not None → orjson-serialize, schedule SET as a detached task
    4. return the computed result

    The call never fails because of the cache. Compute failures propagate
    unchanged and nothing is written.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

import orjson

from storeops.core.config.constants import Stage
from storeops.core.config.settings import CacheTtlSettings, get_settings
from storeops.core.interfaces.cache import CacheBackend
from storeops.core.logging import get_logger, log_stage

logger = get_logger(__name__)

T = TypeVar("T")

ErrorSink = Callable[[str, BaseException], None]


# =============================================================================
# LAYER 1: OBSERVABILITY
# =============================================================================


class CacheObserver:
    """
    Tracks cache-aside metrics and logs operations.

    Metrics Tracked:
    - hits, misses, decode errors
    - write failures (SET returned False or the write task raised)
    """

    def __init__(self, logger_instance=None):
        self._logger = logger_instance or logger
        self.hits = 0
        self.misses = 0
        self.decode_errors = 0
        self.write_failures = 0
        self.writes = 0

    def record_hit(self, key: str) -> None:
        self.hits += 1
        log_stage(self._logger, Stage.CACHE_LOOKUP, "Cache hit", level="debug", cache_key=key)

    def record_miss(self, key: str) -> None:
        self.misses += 1
        log_stage(self._logger, Stage.CACHE_LOOKUP, "Cache miss", level="debug", cache_key=key)

    def record_decode_error(self, key: str, error: Exception) -> None:
        self.decode_errors += 1
        log_stage(
            self._logger,
            Stage.CACHE_LOOKUP,
            "Undecodable cache entry treated as miss",
            level="warning",
            cache_key=key,
            error=str(error),
        )

    def record_write(self, key: str, ok: bool) -> None:
        if ok:
            self.writes += 1
            log_stage(self._logger, Stage.CACHE_WRITE, "Cache set", level="debug", cache_key=key)
        else:
            self.write_failures += 1

    def record_write_error(self, key: str, error: BaseException) -> None:
        self.write_failures += 1
        log_stage(
            self._logger,
            Stage.CACHE_WRITE,
            "Background cache write failed",
            level="warning",
            cache_key=key,
            error=str(error),
            error_type=type(error).__name__,
        )

    def get_stats(self) -> dict[str, Any]:
        total = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "total_requests": total,
            "hit_rate": round(self.hits / total, 3) if total > 0 else 0.0,
            "decode_errors": self.decode_errors,
            "writes": self.writes,
            "write_failures": self.write_failures,
        }


# =============================================================================
# LAYER 2: FIRE-AND-FORGET WRITES
# =============================================================================


class WriteScheduler:
    """
    Runs cache writes as detached tasks.

    The caller never awaits a write. Strong references are kept until each
    task finishes; a task's exception goes to the error sink, never to the
    caller.
    """

    def __init__(self, cache: CacheBackend, observer: CacheObserver, error_sink: ErrorSink | None = None):
        self._cache = cache
        self._observer = observer
        self._error_sink = error_sink or observer.record_write_error
        self._pending: set[asyncio.Task] = set()

    def schedule(self, key: str, payload: bytes, ttl: float | None) -> asyncio.Task:
        task = asyncio.create_task(self._write(key, payload, ttl), name=f"cache-write:{key}")
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_done(key, t))
        return task

    async def _write(self, key: str, payload: bytes, ttl: float | None) -> None:
        ok = await self._cache.set(key, payload, ttl)
        self._observer.record_write(key, ok)

    def _on_done(self, key: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._error_sink(key, error)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled write (shutdown, tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


# =============================================================================
# LAYER 3: SINGLE-FLIGHT (optional)
# =============================================================================


_LEADER_CANCELLED = object()


class SingleFlight:
    """
    Key → in-flight future map.

    The first miss for a key runs compute; concurrent misses for the same
    key await its outcome (value or exception) instead of computing again.
    If the computing task is cancelled, a waiting caller takes over the
    compute; waiters are never cancelled on its behalf.
    """

    def __init__(self):
        self._inflight: dict[str, asyncio.Future] = {}

    async def run(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        pending = self._inflight.get(key)
        while pending is not None:
            value = await asyncio.shield(pending)
            if value is not _LEADER_CANCELLED:
                return value
            pending = self._inflight.get(key)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        # Followers may be gone; keep an unobserved failure from being reported
        future.add_done_callback(lambda f: f.cancelled() or f.exception())
        self._inflight[key] = future
        try:
            value = await fn()
        except asyncio.CancelledError:
            future.set_result(_LEADER_CANCELLED)
            raise
        except Exception as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(value)
            return value
        finally:
            self._inflight.pop(key, None)

    def __len__(self) -> int:
        return len(self._inflight)


# =============================================================================
# LAYER 4: PUBLIC API
# =============================================================================


class CacheManager:
    """
    Read-through-with-TTL orchestrator.

    Usage:
        manager = CacheManager(redis_client)
        rows = await manager.get_or_compute("uom:items", 3600, load_uom_items)
        await manager.invalidate("po:*")
    """

    def __init__(
        self,
        cache: CacheBackend,
        settings: CacheTtlSettings | None = None,
        *,
        error_sink: ErrorSink | None = None,
    ):
        settings = settings or get_settings().cache
        self._cache = cache
        self._enabled = settings.ENABLE_CACHING
        self._observer = CacheObserver()
        self._writes = WriteScheduler(cache, self._observer, error_sink)
        self._single_flight = SingleFlight() if settings.CACHE_SINGLE_FLIGHT else None

        logger.info(
            "Cache manager initialized",
            stage=Stage.CACHE_LOOKUP.value,
            caching_enabled=self._enabled,
            single_flight=self._single_flight is not None,
        )

    @property
    def cache(self) -> CacheBackend:
        return self._cache

    async def get_or_compute(
        self,
        key: str,
        ttl: float | None,
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Serve ``key`` from cache or compute, return and cache the result.

        Args:
            key: Cache key ("<domain>:<qualifier>")
            ttl: Seconds until expiry; None = until invalidated
            compute: Async zero-argument loader

        Returns:
            Cached value (hit) or compute's result (miss)
        """
        if not self._enabled:
            return await compute()

        raw = await self._cache.get(key)
        if raw is not None:
            try:
                value = orjson.loads(raw)
            except orjson.JSONDecodeError as e:
                self._observer.record_decode_error(key, e)
            else:
                self._observer.record_hit(key)
                return value

        self._observer.record_miss(key)

        if self._single_flight is not None:
            return await self._single_flight.run(key, lambda: self._compute_and_store(key, ttl, compute))
        return await self._compute_and_store(key, ttl, compute)

    async def _compute_and_store(
        self,
        key: str,
        ttl: float | None,
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        started = time.perf_counter()
        value = await compute()
        log_stage(
            logger,
            Stage.CACHE_COMPUTE,
            "Computed value for cache miss",
            level="debug",
            cache_key=key,
            compute_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        if value is None:
            return value

        try:
            payload = orjson.dumps(value)
        except orjson.JSONEncodeError as e:
            self._observer.record_write_error(key, e)
            return value

        self._writes.schedule(key, payload, ttl)
        return value

    async def invalidate(self, key_or_pattern: str) -> int:
        """
        Delete one key or every key matching a ``*`` pattern.

        STAGE-CACHE.4: Invalidation

        Returns:
            Number of keys removed (0 when the cache is unavailable)
        """
        removed = await self._cache.delete(key_or_pattern)
        log_stage(logger, Stage.CACHE_INVALIDATE, "Cache invalidated", cache_key=key_or_pattern, removed=removed)
        return removed

    async def drain(self) -> None:
        """Await every pending background write."""
        await self._writes.drain()

    def stats(self) -> dict[str, Any]:
        """
        Cache-aside statistics.

        Returns:
            Dict with hit/miss counters, pending writes and liveness
        """
        return {
            **self._observer.get_stats(),
            "pending_writes": self._writes.pending,
            "in_flight": len(self._single_flight) if self._single_flight is not None else 0,
            "live": self._cache.is_live(),
            "caching_enabled": self._enabled,
            "single_flight": self._single_flight is not None,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Health of the cache layer.

        Returns:
            Dict with status (healthy / degraded), caching flag and transport health
        """
        backend = await self._cache.health_check()
        status = "healthy" if backend.get("status") == "healthy" else "degraded"
        return {
            "status": status,
            "caching_enabled": self._enabled,
            "backend": backend,
            "stats": self._observer.get_stats(),
        }
