#!/usr/bin/env python3
"""
Health Checker Module

Health checks for every runtime dependency:
- Analytical store (Oracle) pool
- Transactional store (PostgreSQL) pool
- Redis cache

A configured store that cannot lend a connection makes the service
unhealthy; a cache outage only degrades it.
"""

from datetime import datetime, timezone
from typing import Any

from storeops.core.config.constants import HealthStatus, Stage, StoreId
from storeops.core.config.settings import Settings, get_settings
from storeops.core.exceptions import DatabaseError
from storeops.core.logging import get_logger
from storeops.infrastructure.cache.cache_manager import CacheManager
from storeops.infrastructure.database.pool_manager import PoolManager, UnconfiguredStore

logger = get_logger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class HealthChecker:
    """
    Health checker for the reporting backend.

    STAGE-HEALTH: Health check orchestration

    Usage:
        checker = HealthChecker(pools, cache_manager, settings)
        status = await checker.check_health()
        report = await checker.detailed_health_report()
    """

    def __init__(self, pools: PoolManager, cache: CacheManager, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._pools = pools
        self._cache = cache

    async def check_store(self, store_id: StoreId) -> dict[str, Any]:
        """
        Borrow and return one connection.

        Returns:
            {"status": healthy | unhealthy | not_configured, ...}
        """
        try:
            store = await self._pools.initialize(store_id)
            if isinstance(store, UnconfiguredStore):
                return {"status": HealthStatus.NOT_CONFIGURED.value, "reason": store.reason}
            async with self._pools.connection(store_id):
                pass
        except DatabaseError as e:
            logger.warning(
                "Store health check failed",
                stage=Stage.HEALTH.value,
                store_id=store_id.value,
                error=e.message,
            )
            return {"status": HealthStatus.UNHEALTHY.value, "error": e.message, "code": e.code}
        return {"status": HealthStatus.HEALTHY.value}

    async def check_cache(self) -> dict[str, Any]:
        backend = await self._cache.cache.health_check()
        if backend.get("status") == "healthy":
            return {"status": HealthStatus.HEALTHY.value, "ping_latency_ms": backend.get("ping_latency_ms")}
        return {"status": HealthStatus.UNAVAILABLE.value}

    async def check_health(self) -> dict[str, Any]:
        """
        Quick health check.

        STAGE-HEALTH.1: Quick health status

        Returns:
            Dict with status, timestamp, version and per-component status
        """
        components = {
            StoreId.ANALYTICAL.value: await self.check_store(StoreId.ANALYTICAL),
            StoreId.TRANSACTIONAL.value: await self.check_store(StoreId.TRANSACTIONAL),
            "cache": await self.check_cache(),
        }

        stores_failing = any(
            components[store_id.value]["status"] == HealthStatus.UNHEALTHY.value for store_id in StoreId
        )
        if stores_failing:
            status = HealthStatus.UNHEALTHY
        elif components["cache"]["status"] != HealthStatus.HEALTHY.value:
            status = HealthStatus.DEGRADED
        else:
            status = HealthStatus.HEALTHY

        logger.info("Health check completed", stage=Stage.HEALTH.value, status=status.value)

        return {
            "status": status.value,
            "timestamp": _utc_now(),
            "version": self.settings.app.APP_VERSION,
            "components": components,
        }

    async def detailed_health_report(self) -> dict[str, Any]:
        """
        Health plus pool and cache statistics.

        STAGE-HEALTH.2: Detailed health report
        """
        report = await self.check_health()
        report["pools"] = self._pools.stats()
        report["cache_stats"] = self._cache.stats()
        report["environment"] = self.settings.app.ENVIRONMENT
        return report
