"""
Query Service Base

Every reporting domain follows the same read path:

    operation → cached(qualifier, compute)
              → CacheManager.get_or_compute("<domain>:<qualifier>", ttl, compute)
              → compute borrows a connection, runs parameterized SQL,
                shapes rows into JSON-native dicts, releases the connection

Row shaping makes a cache hit indistinguishable from a miss: whatever
compute returns is exactly what orjson stores and loads back.
"""

import math
import time
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, TypeVar

from storeops.application.services import cache_keys
from storeops.core.config.constants import Stage, StoreId, TtlClass
from storeops.core.logging import get_logger

if TYPE_CHECKING:
    from storeops.application.context import ReportingContext

logger = get_logger(__name__)

T = TypeVar("T")

Row = dict[str, Any]


# ============================================================================
# Value normalization
# ============================================================================


def to_json_native(value: Any) -> Any:
    """
    Convert a driver value into a JSON-native one.

    Decimal → int when integral, float otherwise (non-finite → None);
    datetime / date → ISO-8601 string; everything else unchanged.
    """
    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def shape_row(row: Row) -> Row:
    return {key: to_json_native(value) for key, value in row.items()}


def to_number(value: Any) -> int | float:
    """
    Coerce an aggregate to a number.

    None, non-numeric and non-finite values become 0.
    """
    if value is None or isinstance(value, bool):
        return int(bool(value))
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def round_percent(part: int | float, total: int | float) -> float:
    """part / total as a percentage, rounded half-up to one decimal; 0.0 when total is 0."""
    if not total:
        return 0.0
    return math.floor(part / total * 100 * 10 + 0.5) / 10


def list_result(rows: list[Row]) -> dict[str, Any]:
    return {"rows": rows, "total": len(rows)}


# ============================================================================
# Query Service
# ============================================================================


class QueryService:
    """
    Base class for one reporting domain.

    Subclasses set ``domain``, ``ttl_class`` and ``store_id`` and implement
    operations that call ``self.cached(qualifier, compute)``.
    """

    domain: str = ""
    ttl_class: TtlClass
    store_id: StoreId = StoreId.ANALYTICAL

    def __init__(self, context: "ReportingContext"):
        self.context = context
        self.pools = context.pools
        self.cache = context.cache
        self.settings = context.settings

    def key(self, qualifier: str) -> str:
        return cache_keys.build_key(self.domain, qualifier)

    @property
    def ttl(self) -> int | None:
        return self.settings.ttl_seconds(self.ttl_class)

    @property
    def filters(self) -> dict[str, str]:
        """Entity / financial-year binds shared by most queries."""
        reporting = self.settings.reporting
        return {
            "entity_code": reporting.REPORT_ENTITY_CODE,
            "from_date": reporting.REPORT_FROM_DATE,
        }

    async def cached(self, qualifier: str, compute: Callable[[], Awaitable[T]]) -> T:
        return await self.cache.get_or_compute(self.key(qualifier), self.ttl, compute)

    async def fetch_rows(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        store_id: StoreId | None = None,
    ) -> list[Row]:
        """
        Run one query on a borrowed connection and shape its rows.

        STAGE-QUERY.1: Query execution

        Raises:
            NotConfiguredError / ConnectionUnavailableError / QueryFailedError
        """
        store = store_id or self.store_id
        started = time.perf_counter()
        async with self.pools.connection(store) as conn:
            rows = await conn.fetch_all(sql, params)
        logger.debug(
            "Query executed",
            stage=Stage.QUERY.value,
            service=type(self).__name__,
            store_id=store.value,
            rows=len(rows),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return [shape_row(row) for row in rows]

    async def fetch_first(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        store_id: StoreId | None = None,
    ) -> Row:
        """First row of a query, or an empty dict."""
        rows = await self.fetch_rows(sql, params, store_id)
        return rows[0] if rows else {}
