"""
Reporting Context

One explicit object owns the pool registry, the cache client, the
cache-aside orchestrator and every query service. It is built at startup,
handed to whoever needs it and closed at shutdown; nothing in the
data-access layer is a process-wide singleton.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from storeops.application.services import (
    CacheInvalidator,
    CostLocationService,
    IndentDashboardService,
    PurchaseOrderService,
    RepairGatePassService,
    StoreIndentService,
    UomService,
)
from storeops.core.config.constants import Stage, StoreId
from storeops.core.config.settings import Settings, get_settings
from storeops.core.interfaces.database import StoreDriver
from storeops.core.logging import get_logger
from storeops.infrastructure.cache.cache_manager import CacheManager
from storeops.infrastructure.cache.redis_client import RedisClient, RedisFactory
from storeops.infrastructure.database import PoolManager, default_drivers
from storeops.infrastructure.monitoring.health_checker import HealthChecker

logger = get_logger(__name__)


@dataclass
class ReportingContext:
    """Everything a request needs, wired once."""

    settings: Settings
    pools: PoolManager
    redis: RedisClient
    cache: CacheManager
    invalidator: CacheInvalidator = field(init=False)
    health: HealthChecker = field(init=False)
    purchase_orders: PurchaseOrderService = field(init=False)
    store_indents: StoreIndentService = field(init=False)
    dashboard: IndentDashboardService = field(init=False)
    gate_passes: RepairGatePassService = field(init=False)
    uom: UomService = field(init=False)
    cost_locations: CostLocationService = field(init=False)

    def __post_init__(self):
        self.invalidator = CacheInvalidator(self.cache)
        self.health = HealthChecker(self.pools, self.cache, self.settings)
        self.purchase_orders = PurchaseOrderService(self)
        self.store_indents = StoreIndentService(self)
        self.dashboard = IndentDashboardService(self)
        self.gate_passes = RepairGatePassService(self)
        self.uom = UomService(self)
        self.cost_locations = CostLocationService(self)

    async def close(self) -> None:
        """
        Drain pending cache writes, close pools, disconnect the cache.

        STAGE-APP.9: Shutdown
        """
        await self.cache.drain()
        await self.pools.close()
        await self.redis.disconnect()
        logger.info("Reporting context closed", stage=Stage.APP_SHUTDOWN.value)


def build_context(
    settings: Settings | None = None,
    *,
    drivers: Mapping[StoreId, StoreDriver] | None = None,
    redis_factory: RedisFactory | None = None,
) -> ReportingContext:
    """Wire a context without touching the network."""
    settings = settings or get_settings()
    redis_client = RedisClient(settings.redis, factory=redis_factory)
    return ReportingContext(
        settings=settings,
        pools=PoolManager(settings, drivers if drivers is not None else default_drivers()),
        redis=redis_client,
        cache=CacheManager(redis_client, settings.cache),
    )


async def create_context(
    settings: Settings | None = None,
    *,
    drivers: Mapping[StoreId, StoreDriver] | None = None,
    redis_factory: RedisFactory | None = None,
) -> ReportingContext:
    """
    Build and start a context.

    STAGE-APP.0: Startup

    - Cache connect is attempted once and is never fatal
    - Every store with credentials gets its pool now

    Raises:
        ClientBootstrapError: Native Oracle client could not be loaded
    """
    context = build_context(settings, drivers=drivers, redis_factory=redis_factory)

    cache_live = await context.redis.connect()
    try:
        stores = await context.pools.initialize_all()
    except BaseException:
        await context.pools.close()
        await context.redis.disconnect()
        raise

    logger.info(
        "Reporting context ready",
        stage=Stage.APP_STARTUP.value,
        cache_live=cache_live,
        stores={store_id.value: type(store).__name__ for store_id, store in stores.items()},
    )
    return context
