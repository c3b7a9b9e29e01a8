"""
Unit Tests for the Reporting Query Services

Services run against a fake analytical pool (responses keyed by SQL text)
and a fakeredis-backed cache.
"""

from datetime import date, datetime
from decimal import Decimal

import orjson
import pytest

from storeops.application.context import build_context
from storeops.application.services import cache_keys, cost_locations, gate_passes, purchase_orders, store_indents, uom
from storeops.core.config.constants import StoreId
from storeops.core.exceptions import NotConfiguredError
from tests.test_fixtures.backend_factory import rows_by_sql
from tests.test_fixtures.settings_factory import make_settings

PO_ROW = {
    "planned_timestamp": datetime(2025, 5, 3, 20, 0),
    "indenter": None,
    "indent_no": None,
    "vrno": "U3/25/0001",
    "vrdate": date(2025, 5, 2),
    "vendor_name": "ACME STEELS",
    "item_name": "BEARING 6205",
    "qtyorder": Decimal("10"),
    "um": "NOS",
    "qtyexecute": Decimal("4"),
}


@pytest.mark.unit
class TestPurchaseOrderService:
    """po:pending / po:history."""

    @pytest.mark.asyncio
    async def test_pending_shapes_rows(self, context, analytical_pool):
        """Test null indent fields, balance quantity and JSON-native values."""
        analytical_pool.responder = rows_by_sql({purchase_orders.PENDING_SQL: [PO_ROW]})

        result = await context.purchase_orders.pending()

        assert result["total"] == 1
        row = result["rows"][0]
        assert row["indenter"] == ""
        assert row["indent_no"] == ""
        assert row["balance_qty"] == 6
        assert row["vrdate"] == "2025-05-02"
        assert row["planned_timestamp"] == "2025-05-03T20:00:00"

    @pytest.mark.asyncio
    async def test_binds_reporting_filters(self, context, analytical_pool):
        await context.purchase_orders.history()

        sql, params = analytical_pool.queries[0]
        assert sql == purchase_orders.HISTORY_SQL
        assert params == {"entity_code": "SR", "from_date": "2025-04-01", "series": "U3"}

    @pytest.mark.asyncio
    async def test_history_has_no_balance(self, context, analytical_pool):
        analytical_pool.responder = rows_by_sql({purchase_orders.HISTORY_SQL: [PO_ROW]})

        result = await context.purchase_orders.history()

        assert "balance_qty" not in result["rows"][0]

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, context, analytical_pool, raw_redis):
        """Test that a hit returns the same value without touching the pool."""
        analytical_pool.responder = rows_by_sql({purchase_orders.PENDING_SQL: [PO_ROW]})

        first = await context.purchase_orders.pending()
        await context.cache.drain()
        second = await context.purchase_orders.pending()

        assert first == second
        assert len(analytical_pool.queries) == 1
        assert orjson.loads(await raw_redis.get("po:pending")) == first
        assert 170 <= await raw_redis.ttl("po:pending") <= 180


@pytest.mark.unit
class TestStoreIndentService:
    @pytest.mark.asyncio
    async def test_pending_and_history(self, context, analytical_pool):
        analytical_pool.responder = rows_by_sql(
            {
                store_indents.PENDING_SQL: [{"indent_number": "I1", "required_qty": Decimal("2.5")}],
                store_indents.HISTORY_SQL: [{"indent_number": "I0", "po_no": "U3/1"}, {"indent_number": "I2", "po_no": "U3/2"}],
            }
        )

        pending = await context.store_indents.pending()
        history = await context.store_indents.history()

        assert pending == {"rows": [{"indent_number": "I1", "required_qty": 2.5}], "total": 1}
        assert history["total"] == 2
        assert analytical_pool.queries[0][1] == {"entity_code": "SR", "from_date": "2025-04-01"}

    @pytest.mark.asyncio
    async def test_empty_result(self, context):
        assert await context.store_indents.pending() == {"rows": [], "total": 0}


@pytest.mark.unit
class TestRepairGatePassService:
    @pytest.mark.asyncio
    async def test_counts(self, context, analytical_pool):
        """Test that both counts run and come back as numbers."""
        analytical_pool.responder = rows_by_sql(
            {
                gate_passes.PENDING_COUNT_SQL: [{"count": Decimal("3")}],
                gate_passes.RECEIVED_COUNT_SQL: [{"count": Decimal("41")}],
            }
        )

        assert await context.gate_passes.counts() == {"pending": 3, "history": 41}
        assert len(analytical_pool.queries) == 2
        assert analytical_pool.in_use == 0

    @pytest.mark.asyncio
    async def test_counts_default_to_zero(self, context):
        assert await context.gate_passes.counts() == {"pending": 0, "history": 0}

    @pytest.mark.asyncio
    async def test_pending_and_received(self, context, analytical_pool):
        analytical_pool.responder = rows_by_sql(
            {
                gate_passes.PENDING_SQL: [{"vrno": "P3/1"}],
                gate_passes.RECEIVED_SQL: [{"repair_gate_pass": "P3/0", "receive_gate_pass": "A3/9"}],
            }
        )

        assert (await context.gate_passes.pending())["rows"] == [{"vrno": "P3/1"}]
        assert (await context.gate_passes.received())["total"] == 1
        assert analytical_pool.queries[0][1] == {"entity_code": "SR"}


@pytest.mark.unit
class TestReferenceData:
    """UOM items and cost locations."""

    @pytest.mark.asyncio
    async def test_uom_items(self, context, analytical_pool, raw_redis):
        analytical_pool.responder = rows_by_sql({uom.ITEMS_SQL: [{"item_code": "A1", "item_name": "BOLT", "um": "NOS"}]})

        result = await context.uom.items()
        await context.cache.drain()

        assert result["total"] == 1
        assert analytical_pool.queries[0][1] is None
        assert 3590 <= await raw_redis.ttl("uom:items") <= 3600

    @pytest.mark.asyncio
    async def test_cost_location_default_division(self, context, analytical_pool, raw_redis):
        """Test that no division means the configured default (SM)."""
        await context.cost_locations.locations()
        await context.cache.drain()

        sql, params = analytical_pool.queries[0]
        assert sql == cost_locations.DIVISION_SQL
        assert params == {"entity_code": "SR", "div_code": "SM"}
        assert await raw_redis.exists("costlocation:SM") == 1

    @pytest.mark.asyncio
    async def test_cost_location_corporate(self, context, analytical_pool, raw_redis):
        """Test that CO only sees locations without a division."""
        analytical_pool.responder = rows_by_sql({cost_locations.CORPORATE_SQL: [{"cost_name": "HEAD OFFICE"}]})

        result = await context.cost_locations.locations(" co ")
        await context.cache.drain()

        assert result == {"rows": [{"cost_name": "HEAD OFFICE"}], "total": 1}
        assert analytical_pool.queries[0] == (cost_locations.CORPORATE_SQL, {"entity_code": "SR"})
        assert await raw_redis.exists("costlocation:CO") == 1

    @pytest.mark.asyncio
    async def test_overridden_default_division_shares_key_with_invalidation(
        self, drivers, redis_factory, analytical_pool, raw_redis
    ):
        """Test that the read key follows DEFAULT_DIVISION, so its invalidation key matches."""
        context = build_context(make_settings(DEFAULT_DIVISION="rp"), drivers=drivers, redis_factory=redis_factory)
        service = context.cost_locations

        await service.locations()
        await context.cache.drain()

        key = cache_keys.cost_location(service.resolve_division(None))
        assert key == "costlocation:RP"
        assert analytical_pool.queries[0][1]["div_code"] == "RP"
        assert await raw_redis.exists(key) == 1

        assert await context.cache.invalidate(key) == 1
        await context.close()

    @pytest.mark.asyncio
    async def test_divisions_cached_separately(self, context, analytical_pool):
        await context.cost_locations.locations("RP")
        await context.cost_locations.locations("PM")
        await context.cache.drain()
        await context.cost_locations.locations("rp")

        assert [params["div_code"] for _, params in analytical_pool.queries] == ["RP", "PM"]


@pytest.mark.unit
class TestUnconfiguredStore:
    @pytest.mark.asyncio
    async def test_service_raises_not_configured(self, context, drivers):
        drivers[StoreId.ANALYTICAL].configured = False

        with pytest.raises(NotConfiguredError):
            await context.uom.items()
