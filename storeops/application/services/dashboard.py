"""
Indent Dashboard Aggregator

STAGE-DASH: Dashboard aggregation
---------------------------------
Six sub-queries run concurrently, each on its own pooled connection:

    status counts       (primary)
    purchase totals     (primary)
    issuance totals     (secondary, best-effort)
    out-of-stock count  (secondary, best-effort)
    top purchased items (primary)
    top vendors         (primary)

A primary failure fails the whole call. A secondary failure folds to 0
with a warning; the aggregate still succeeds and is cached.
"""

import asyncio
from collections.abc import Awaitable
from typing import Any

from storeops.application.services.base import QueryService, Row, round_percent, to_number
from storeops.core.config.constants import CACHE_DOMAIN_INDENT, DASHBOARD_TOP_N, Stage, TtlClass
from storeops.core.exceptions import DatabaseError
from storeops.core.logging import get_logger

logger = get_logger(__name__)

_INDENT_WHERE = """
    t.entity_code = :entity_code
    AND t.vrdate >= TO_DATE(:from_date, 'YYYY-MM-DD')
"""

_PURCHASE_WHERE = """
    t.entity_code = :entity_code
    AND t.series = :series
    AND t.qtycancelled IS NULL
    AND t.vrdate >= TO_DATE(:from_date, 'YYYY-MM-DD')
    AND (
      (t.qtyorder - t.qtyexecute) = 0
      OR (t.qtyorder - t.qtyexecute) > t.qtyorder
    )
"""

STATUS_SQL = f"""
    SELECT
        COUNT(*) AS total_indents,
        COUNT(CASE WHEN t.po_no IS NOT NULL THEN 1 END) AS completed_indents,
        COUNT(CASE WHEN t.po_no IS NULL AND t.cancelleddate IS NULL THEN 1 END) AS pending_indents,
        COUNT(CASE WHEN t.po_no IS NULL AND t.cancelleddate IS NULL
                    AND t.vrdate >= SYSDATE - 7 THEN 1 END) AS upcoming_indents,
        COUNT(CASE WHEN t.po_no IS NULL AND t.cancelleddate IS NULL
                    AND t.vrdate < SYSDATE - 30 THEN 1 END) AS overdue_indents,
        NVL(SUM(NVL(t.qtyindent, 0)), 0) AS total_indented_qty
    FROM view_indent_engine t
    WHERE {_INDENT_WHERE}
"""

PURCHASE_SQL = f"""
    SELECT
        COUNT(*) AS total_purchase_orders,
        NVL(SUM(NVL(t.qtyorder, 0)), 0) AS total_purchased_qty
    FROM view_order_engine t
    WHERE {_PURCHASE_WHERE}
"""

ISSUED_SQL = """
    SELECT NVL(SUM(NVL(t.qtyissue, 0)), 0) AS total_issued_qty
    FROM view_issue_engine t
    WHERE t.entity_code = :entity_code
      AND t.vrdate >= TO_DATE(:from_date, 'YYYY-MM-DD')
"""

OUT_OF_STOCK_SQL = """
    SELECT COUNT(*) AS out_of_stock_count
    FROM view_item_stock_engine t
    WHERE t.entity_code = :entity_code
      AND NVL(t.yrclqty_engine, 0) <= 0
      AND NVL(t.yropaqty, 0) > 0
      AND t.item_nature IN ('SI')
"""

TOP_ITEMS_SQL = f"""
    SELECT *
    FROM (
        SELECT
            UPPER(t.item_name) AS item_name,
            COUNT(*) AS order_count,
            NVL(SUM(NVL(t.qtyorder, 0)), 0) AS total_order_qty
        FROM view_order_engine t
        WHERE {_PURCHASE_WHERE}
        GROUP BY UPPER(t.item_name)
        ORDER BY total_order_qty DESC
    )
    WHERE ROWNUM <= :top_n
"""

TOP_VENDORS_SQL = f"""
    SELECT *
    FROM (
        SELECT
            lhs_utility.get_name('acc_code', t.acc_code) AS vendor_name,
            COUNT(DISTINCT t.vrno) AS unique_po_count,
            NVL(SUM(NVL(t.qtyorder, 0)), 0) AS total_items
        FROM view_order_engine t
        WHERE {_PURCHASE_WHERE}
        GROUP BY lhs_utility.get_name('acc_code', t.acc_code)
        ORDER BY unique_po_count DESC, total_items DESC
    )
    WHERE ROWNUM <= :top_n
"""


class IndentDashboardService(QueryService):
    """Indent dashboard metrics, cached under indent:dashboard."""

    domain = CACHE_DOMAIN_INDENT
    ttl_class = TtlClass.DASHBOARD

    @property
    def purchase_params(self) -> dict[str, Any]:
        return {**self.filters, "series": self.settings.reporting.REPORT_PO_SERIES}

    async def _best_effort(self, name: str, query: Awaitable[Row], column: str) -> int | float:
        try:
            row = await query
        except DatabaseError as e:
            logger.warning(
                "Dashboard sub-query failed; defaulting to 0",
                stage=Stage.DASHBOARD.value,
                sub_query=name,
                error=e.message,
                error_type=type(e).__name__,
            )
            return 0
        return to_number(row.get(column))

    async def metrics(self) -> dict[str, Any]:
        return await self.cached("dashboard", self._aggregate)

    async def _aggregate(self) -> dict[str, Any]:
        top_params = {**self.purchase_params, "top_n": DASHBOARD_TOP_N}

        status, purchase, issued, out_of_stock, top_items, top_vendors = await asyncio.gather(
            self.fetch_first(STATUS_SQL, self.filters),
            self.fetch_first(PURCHASE_SQL, self.purchase_params),
            self._best_effort("issuance", self.fetch_first(ISSUED_SQL, self.filters), "total_issued_qty"),
            self._best_effort(
                "out_of_stock",
                self.fetch_first(
                    OUT_OF_STOCK_SQL, {"entity_code": self.settings.reporting.REPORT_ENTITY_CODE}
                ),
                "out_of_stock_count",
            ),
            self.fetch_rows(TOP_ITEMS_SQL, top_params),
            self.fetch_rows(TOP_VENDORS_SQL, top_params),
        )

        total = to_number(status.get("total_indents"))
        completed = to_number(status.get("completed_indents"))
        pending = to_number(status.get("pending_indents"))
        upcoming = to_number(status.get("upcoming_indents"))
        overdue = to_number(status.get("overdue_indents"))

        metrics = {
            "total_indents": total,
            "completed_indents": completed,
            "pending_indents": pending,
            "upcoming_indents": upcoming,
            "overdue_indents": overdue,
            "overall_progress": round_percent(completed, total),
            "completed_percent": round_percent(completed, total),
            "pending_percent": round_percent(pending, total),
            "upcoming_percent": round_percent(upcoming, total),
            "overdue_percent": round_percent(overdue, total),
            "total_indented_quantity": to_number(status.get("total_indented_qty")),
            "total_purchase_orders": to_number(purchase.get("total_purchase_orders")),
            "total_purchased_quantity": to_number(purchase.get("total_purchased_qty")),
            "total_issued_quantity": issued,
            "out_of_stock_count": out_of_stock,
            "top_purchased_items": [
                {
                    "item_name": row.get("item_name"),
                    "order_count": to_number(row.get("order_count")),
                    "total_order_qty": to_number(row.get("total_order_qty")),
                }
                for row in top_items
            ],
            "top_vendors": [
                {
                    "vendor_name": row.get("vendor_name"),
                    "unique_po_count": to_number(row.get("unique_po_count")),
                    "total_items": to_number(row.get("total_items")),
                }
                for row in top_vendors
            ],
        }

        logger.info(
            "Dashboard aggregated",
            stage=Stage.DASHBOARD.value,
            total_indents=total,
            top_items=len(top_items),
            top_vendors=len(top_vendors),
        )
        return metrics
