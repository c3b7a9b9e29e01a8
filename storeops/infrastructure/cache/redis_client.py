"""
Redis Client with Capped Reconnection and Liveness Tracking

Architecture:
    RedisClient (Public API)
        ├── ConnectionManager (Connection lifecycle, reconnect policy, liveness)
        ├── OperationExecutor (GET / SET / DEL / SCAN with failure absorption)
        └── HealthMonitor (Ping latency and status)

Failure model:
    The cache is an accelerator, never a dependency. Every transport error
    (RedisError, OSError, timeouts) is converted into a failure result:
    get → None, set → False, delete → 0. Nothing escapes this module.
    A command Redis rejects (ResponseError) fails only that call; it does
    not mark the cache down.

Reconnect policy:
    - One connect cycle = REDIS_CONNECT_ATTEMPTS pings, exponential backoff
      from REDIS_BACKOFF_INITIAL capped at REDIS_BACKOFF_MAX (tenacity)
    - A failed cycle silences reconnects for REDIS_RECONNECT_COOLDOWN seconds
    - Concurrent reconnects are serialized by a lock
    - Errors are logged once per failure streak
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import RedisError, ResponseError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from storeops.core.config.constants import CACHE_SCAN_COUNT, CACHE_WILDCARD, Stage
from storeops.core.config.settings import RedisSettings, get_settings
from storeops.core.exceptions import CacheUnavailableError
from storeops.core.logging import get_logger, mask_secrets

logger = get_logger(__name__)

TRANSPORT_ERRORS = (RedisError, OSError, asyncio.TimeoutError, CacheUnavailableError)

# Raised while building the client from a bad URL or option set
CLIENT_BUILD_ERRORS = (ValueError, RedisError)

CONNECT_ERRORS = (*TRANSPORT_ERRORS, *CLIENT_BUILD_ERRORS)

RedisFactory = Callable[[RedisSettings], redis.Redis]


def default_redis_factory(settings: RedisSettings) -> redis.Redis:
    """
    Build the redis.asyncio client from settings.

    Values are raw bytes (decode_responses=False); serialization is the
    orchestrator's concern. The client itself never retries; reconnects
    belong to ConnectionManager.
    """
    options: dict[str, Any] = {
        "retry": Retry(NoBackoff(), 0),
        "socket_connect_timeout": settings.REDIS_CONNECT_TIMEOUT,
        "socket_timeout": settings.REDIS_SOCKET_TIMEOUT,
        "decode_responses": False,
    }
    if settings.REDIS_PASSWORD:
        options["password"] = settings.REDIS_PASSWORD
    return redis.Redis.from_url(settings.url, **options)


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# Connection lifecycle, reconnect policy and the liveness flag
# =============================================================================


class ConnectionManager:
    """
    Owns the single shared Redis connection and its liveness flag.

    Liveness is false on any connect or operation failure and true after a
    successful connect. Operations call ``live_client()`` which reconnects
    on demand, subject to the cooldown after a failed cycle.
    """

    def __init__(
        self,
        settings: RedisSettings,
        factory: RedisFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._settings = settings
        self._factory = factory or default_redis_factory
        self._clock = clock
        self._client: redis.Redis | None = None
        self._live = False
        self._cooldown_until = 0.0
        self._lock = asyncio.Lock()
        self._failure_streak = False
        self.connect_cycles = 0

    def is_live(self) -> bool:
        return self._live

    def in_cooldown(self) -> bool:
        return self._clock() < self._cooldown_until

    async def connect(self) -> bool:
        """
        Run one bounded connect cycle unless live or cooling down.

        STAGE-REDIS.1: Connection establishment

        Returns:
            bool: True when live afterwards
        """
        if self._live:
            return True
        if self.in_cooldown():
            return False

        async with self._lock:
            if self._live:
                return True
            if self.in_cooldown():
                return False

            self.connect_cycles += 1
            try:
                self._ensure_client()
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self._settings.REDIS_CONNECT_ATTEMPTS),
                    wait=wait_exponential(
                        multiplier=self._settings.REDIS_BACKOFF_INITIAL,
                        max=self._settings.REDIS_BACKOFF_MAX,
                    ),
                    retry=retry_if_exception_type(TRANSPORT_ERRORS),
                    reraise=True,
                ):
                    with attempt:
                        await self._ping()
            except CONNECT_ERRORS as e:
                self._live = False
                self._cooldown_until = self._clock() + self._settings.REDIS_RECONNECT_COOLDOWN
                self.report_failure(
                    "CONNECT",
                    e,
                    attempts=self._settings.REDIS_CONNECT_ATTEMPTS,
                    cooldown_seconds=self._settings.REDIS_RECONNECT_COOLDOWN,
                )
                return False

            self._live = True
            self._cooldown_until = 0.0
            self.report_success()
            logger.info(
                "Redis connected successfully",
                stage=Stage.REDIS_CONNECT.value,
                url=mask_secrets(self._settings.url),
            )
            return True

    def _ensure_client(self) -> None:
        if self._client is None:
            self._client = self._factory(self._settings)

    async def _ping(self) -> None:
        pong = await asyncio.wait_for(self._client.ping(), timeout=self._settings.REDIS_CONNECT_TIMEOUT)
        if not pong:
            raise CacheUnavailableError("Redis PING returned no reply", details={"url": mask_secrets(self._settings.url)})

    async def live_client(self) -> redis.Redis | None:
        """Client if live (reconnecting when allowed), else None."""
        if not self._live and not await self.connect():
            return None
        return self._client

    def report_failure(self, operation: str, error: BaseException, **context: Any) -> None:
        """Mark not-live; log only the first failure of a streak."""
        self._live = False
        if self._failure_streak:
            return
        self._failure_streak = True
        logger.warning(
            f"Redis {operation} failed; cache degraded",
            stage=Stage.REDIS_OPERATION.value if operation != "CONNECT" else Stage.REDIS_CONNECT.value,
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **context,
        )

    def report_command_error(self, operation: str, error: ResponseError, **context: Any) -> None:
        """A rejected command; the connection itself is fine, liveness is kept."""
        logger.warning(
            f"Redis {operation} rejected",
            stage=Stage.REDIS_OPERATION.value,
            operation=operation,
            error=str(error),
            **context,
        )

    def report_success(self) -> None:
        if self._failure_streak:
            self._failure_streak = False
            logger.info("Redis recovered", stage=Stage.REDIS_OPERATION.value)

    async def disconnect(self) -> None:
        """
        Close the client.

        STAGE-REDIS.3: Connection cleanup
        """
        client, self._client = self._client, None
        self._live = False
        if client is not None:
            try:
                await client.aclose()
            except TRANSPORT_ERRORS as e:
                logger.debug("Error while closing Redis client", stage=Stage.REDIS_DISCONNECT.value, error=str(e))
        logger.info("Redis disconnected", stage=Stage.REDIS_DISCONNECT.value)


# =============================================================================
# LAYER 2: OPERATION EXECUTOR
# Executes commands; converts every transport error into a failure result
# =============================================================================


class OperationExecutor:
    """
    Executes Redis operations with consistent failure absorption.

    While the connection is not live, every operation short-circuits.
    """

    def __init__(self, connection_manager: ConnectionManager):
        self._conn = connection_manager

    async def get(self, key: str) -> bytes | None:
        """
        STAGE-REDIS.GET: Redis GET operation

        Returns:
            Stored bytes, or None on miss / unavailability
        """
        client = await self._conn.live_client()
        if client is None:
            return None
        try:
            value = await client.get(key)
        except ResponseError as e:
            self._conn.report_command_error("GET", e, key=key)
            return None
        except TRANSPORT_ERRORS as e:
            self._conn.report_failure("GET", e, key=key)
            return None
        self._conn.report_success()
        return value

    async def set(self, key: str, value: bytes, ttl: float | None = None) -> bool:
        """
        STAGE-REDIS.SET: Redis SET operation

        Whole-second TTLs are sent as EX, fractional ones as PX. A missing,
        zero or negative TTL stores the value without expiry.
        """
        client = await self._conn.live_client()
        if client is None:
            return False
        options: dict[str, int] = {}
        if ttl is not None and ttl > 0:
            if float(ttl).is_integer():
                options["ex"] = int(ttl)
            else:
                options["px"] = max(1, int(round(ttl * 1000)))
        try:
            result = await client.set(key, value, **options)
        except ResponseError as e:
            self._conn.report_command_error("SET", e, key=key)
            return False
        except TRANSPORT_ERRORS as e:
            self._conn.report_failure("SET", e, key=key)
            return False
        self._conn.report_success()
        return bool(result)

    async def delete(self, key_or_pattern: str) -> int:
        """
        STAGE-REDIS.DEL: Redis DEL, or SCAN then DEL for patterns

        The pattern form is two-phase and non-atomic: keys written between
        the scan and the delete survive.
        """
        client = await self._conn.live_client()
        if client is None:
            return 0
        try:
            if CACHE_WILDCARD in key_or_pattern:
                keys = [
                    key
                    async for key in client.scan_iter(match=key_or_pattern, count=CACHE_SCAN_COUNT)
                ]
                removed = await client.delete(*keys) if keys else 0
            else:
                removed = await client.delete(key_or_pattern)
        except ResponseError as e:
            self._conn.report_command_error("DEL", e, key=key_or_pattern)
            return 0
        except TRANSPORT_ERRORS as e:
            self._conn.report_failure("DEL", e, key=key_or_pattern)
            return 0
        self._conn.report_success()
        return int(removed)


# =============================================================================
# LAYER 3: HEALTH MONITORING
# =============================================================================


class HealthMonitor:
    """Ping latency and liveness for the health endpoint."""

    def __init__(self, connection_manager: ConnectionManager, settings: RedisSettings):
        self._conn_mgr = connection_manager
        self._settings = settings

    async def health_check(self) -> dict[str, Any]:
        """
        STAGE-REDIS.HEALTH: Redis health check

        Returns:
            Dict with status, live flag, masked url and ping latency
        """
        health: dict[str, Any] = {
            "status": "unavailable",
            "live": False,
            "url": mask_secrets(self._settings.url),
            "ping_latency_ms": None,
            "in_cooldown": self._conn_mgr.in_cooldown(),
        }

        client = await self._conn_mgr.live_client()
        if client is None:
            return health

        try:
            start = time.perf_counter()
            await asyncio.wait_for(client.ping(), timeout=self._settings.REDIS_SOCKET_TIMEOUT)
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except TRANSPORT_ERRORS as e:
            self._conn_mgr.report_failure("PING", e)
            health["error"] = str(e)
            return health

        health["status"] = "healthy"
        health["live"] = True
        health["in_cooldown"] = False
        return health


# =============================================================================
# LAYER 4: PUBLIC API
# =============================================================================


class RedisClient:
    """
    Best-effort async Redis client.

    Usage:
        client = RedisClient(settings.redis)
        await client.connect()          # non-fatal; False when Redis is down

        await client.set("uom:items", b"[...]", ttl=3600)
        value = await client.get("uom:items")
        removed = await client.delete("po:*")
    """

    def __init__(
        self,
        settings: RedisSettings | None = None,
        factory: RedisFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._settings = settings or get_settings().redis
        self._conn_mgr = ConnectionManager(self._settings, factory=factory, clock=clock)
        self._executor = OperationExecutor(self._conn_mgr)
        self._health = HealthMonitor(self._conn_mgr, self._settings)

    async def connect(self) -> bool:
        return await self._conn_mgr.connect()

    async def disconnect(self) -> None:
        await self._conn_mgr.disconnect()

    def is_live(self) -> bool:
        return self._conn_mgr.is_live()

    async def get(self, key: str) -> bytes | None:
        return await self._executor.get(key)

    async def set(self, key: str, value: bytes, ttl: float | None = None) -> bool:
        return await self._executor.set(key, value, ttl)

    async def delete(self, key_or_pattern: str) -> int:
        return await self._executor.delete(key_or_pattern)

    async def health_check(self) -> dict[str, Any]:
        return await self._health.health_check()

    @property
    def connect_cycles(self) -> int:
        """Number of connect cycles attempted so far."""
        return self._conn_mgr.connect_cycles
