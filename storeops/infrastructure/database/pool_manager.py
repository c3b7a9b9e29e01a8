"""
Connection Pool Manager for the relational backend stores.

This module provides centralized pool management with:
- One lazily created pool per backend store
- Idempotent, concurrency-safe initialization
- Per-store "unconfigured" decision made once
- Borrow/return contract via an async context manager
- Slow-acquisition warnings
- Comprehensive stage-based logging

STAGE-POOL: Connection Pool Management
--------------------------------------
POOL.0: Native client bootstrap (driver-specific)
POOL.1: Store initialization
POOL.2: Connection acquisition
POOL.3: Connection release
POOL.4: Shutdown
"""

import asyncio
import time
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from storeops.core.config.constants import Stage, StoreId
from storeops.core.config.settings import Settings
from storeops.core.exceptions import (
    ClientBootstrapError,
    DatabaseError,
    NotConfiguredError,
)
from storeops.core.interfaces.database import BackendConnection, BackendPool, StoreDriver
from storeops.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConfiguredStore:
    """A store with a live pool."""

    store_id: StoreId
    pool: BackendPool
    acquire_timeout: float


@dataclass(frozen=True)
class UnconfiguredStore:
    """A store without credentials; remembered and never retried."""

    store_id: StoreId
    reason: str


Store = ConfiguredStore | UnconfiguredStore


class PoolManager:
    """
    Owner of every backend pool in the process.

    STAGE-POOL.1: Pool Manager Initialization

    Invariants:
    - At most one pool per store; concurrent initializers share one
      in-flight creation and get the same pool (or the same failure)
    - A failed creation is forgotten so a later call may retry
    - Every borrowed connection is released on every exit path
    """

    def __init__(self, settings: Settings, drivers: Mapping[StoreId, StoreDriver]):
        self._settings = settings
        self._drivers = dict(drivers)
        self._stores: dict[StoreId, Store] = {}
        self._inflight: dict[StoreId, asyncio.Task] = {}
        self._lock = asyncio.Lock()
        self._warn_ms = settings.pool.POOL_ACQUIRE_WARN_MS

        logger.info(
            "Pool manager initialized",
            stage=Stage.POOL_INIT.value,
            stores=[store_id.value for store_id in self._drivers],
            acquire_warn_ms=self._warn_ms,
        )

    # =========================================================================
    # Initialization
    # =========================================================================

    async def initialize(self, store_id: StoreId) -> Store:
        """
        Resolve a store, creating its pool on first call.

        STAGE-POOL.1: Store initialization

        Returns:
            ConfiguredStore or UnconfiguredStore (never raises for missing
            credentials)

        Raises:
            ClientBootstrapError: Native client could not be loaded
            ConnectionUnavailableError: Pool creation failed
        """
        store = self._stores.get(store_id)
        if store is not None:
            return store

        async with self._lock:
            store = self._stores.get(store_id)
            if store is not None:
                return store

            task = self._inflight.get(store_id)
            if task is None:
                task = asyncio.create_task(self._create_store(store_id))
                self._inflight[store_id] = task
                task.add_done_callback(lambda t, sid=store_id: self._forget_inflight(sid, t))

        # Shielded so one cancelled caller does not cancel the shared creation
        return await asyncio.shield(task)

    async def initialize_all(self) -> dict[StoreId, Store]:
        """
        Initialize every registered store (application startup).

        Bootstrap failures propagate; other creation failures are logged and
        left for the first request to retry.
        """
        resolved: dict[StoreId, Store] = {}
        for store_id in self._drivers:
            try:
                resolved[store_id] = await self.initialize(store_id)
            except ClientBootstrapError:
                raise
            except DatabaseError as e:
                logger.error(
                    "Store initialization failed at startup",
                    stage=Stage.POOL_INIT.value,
                    store_id=store_id.value,
                    error=e.message,
                )
        return resolved

    def _forget_inflight(self, store_id: StoreId, task: asyncio.Task) -> None:
        self._inflight.pop(store_id, None)
        if not task.cancelled():
            # Mark the exception retrieved; awaiting callers re-raise it
            task.exception()

    async def _create_store(self, store_id: StoreId) -> Store:
        driver = self._drivers.get(store_id)
        if driver is None:
            store: Store = UnconfiguredStore(store_id, "no driver registered")
        elif not driver.is_configured(self._settings):
            store = UnconfiguredStore(store_id, driver.missing_reason(self._settings))
        else:
            await driver.bootstrap(self._settings)

            started = time.perf_counter()
            pool = await driver.create_pool(self._settings)
            store = ConfiguredStore(
                store_id=store_id,
                pool=pool,
                acquire_timeout=driver.acquire_timeout(self._settings),
            )
            logger.info(
                "Connection pool created",
                stage=Stage.POOL_INIT.value,
                store_id=store_id.value,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                **pool.stats(),
            )

        if isinstance(store, UnconfiguredStore):
            logger.warning(
                "Store not configured; requests for it will be rejected",
                stage=Stage.POOL_INIT.value,
                store_id=store_id.value,
                reason=store.reason,
            )

        self._stores[store_id] = store
        return store

    # =========================================================================
    # Borrow / return
    # =========================================================================

    @asynccontextmanager
    async def connection(
        self, store_id: StoreId, timeout: float | None = None
    ) -> AsyncIterator[BackendConnection]:
        """
        Borrow a connection for one logical operation.

        STAGE-POOL.2 / POOL.3: Acquire, yield, always release

        Args:
            store_id: Which backend
            timeout: Override of the store's acquisition timeout (seconds)

        Raises:
            NotConfiguredError: Store has no credentials
            ConnectionUnavailableError: Pool exhausted or timed out
        """
        store = await self.initialize(store_id)
        if isinstance(store, UnconfiguredStore):
            raise NotConfiguredError(
                f"Store '{store_id.value}' is not configured",
                details={"store_id": store_id.value, "reason": store.reason},
            )

        wait = store.acquire_timeout if timeout is None else timeout
        started = time.perf_counter()
        conn = await store.pool.acquire(wait)
        elapsed_ms = (time.perf_counter() - started) * 1000

        if elapsed_ms > self._warn_ms:
            logger.warning(
                "Slow connection acquisition",
                stage=Stage.POOL_ACQUIRE.value,
                store_id=store_id.value,
                acquire_ms=round(elapsed_ms, 2),
                threshold_ms=self._warn_ms,
            )
        else:
            logger.debug(
                "Connection acquired",
                stage=Stage.POOL_ACQUIRE.value,
                store_id=store_id.value,
                acquire_ms=round(elapsed_ms, 2),
            )

        try:
            yield conn
        finally:
            try:
                await store.pool.release(conn)
            except Exception as e:
                logger.error(
                    f"Error releasing connection: {str(e)}",
                    stage=Stage.POOL_RELEASE.value,
                    store_id=store_id.value,
                    error=str(e),
                )

    # =========================================================================
    # Introspection / shutdown
    # =========================================================================

    def get_store(self, store_id: StoreId) -> Store | None:
        """Resolved store, or None if not yet initialized."""
        return self._stores.get(store_id)

    def stats(self) -> dict[str, Any]:
        """
        Per-store pool statistics.

        Returns:
            dict: store id -> {"status", plus size / in_use / max when configured}
        """
        result: dict[str, Any] = {}
        for store_id in self._drivers:
            store = self._stores.get(store_id)
            if store is None:
                result[store_id.value] = {"status": "uninitialized"}
            elif isinstance(store, UnconfiguredStore):
                result[store_id.value] = {"status": "not_configured", "reason": store.reason}
            else:
                result[store_id.value] = {"status": "configured", **store.pool.stats()}
        return result

    async def close(self) -> None:
        """
        Close every pool.

        STAGE-POOL.4: Shutdown
        """
        for store_id, store in list(self._stores.items()):
            if not isinstance(store, ConfiguredStore):
                continue
            try:
                await store.pool.close()
                logger.info("Connection pool closed", stage=Stage.POOL_CLOSE.value, store_id=store_id.value)
            except Exception as e:
                logger.error(
                    f"Error closing pool: {str(e)}",
                    stage=Stage.POOL_CLOSE.value,
                    store_id=store_id.value,
                    error=str(e),
                )
        self._stores.clear()
