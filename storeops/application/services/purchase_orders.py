"""
Purchase order reports (analytical store).

pending: open orders with a positive balance
history: fully executed or over-executed orders
"""

from typing import Any

from storeops.application.services.base import QueryService, Row, list_result, to_number
from storeops.core.config.constants import CACHE_DOMAIN_PO, TtlClass

_PO_COLUMNS = """
    t.duedate + INTERVAL '20' HOUR AS planned_timestamp,
    a.indent_remark AS indenter,
    a.vrno AS indent_no,
    t.vrno AS vrno,
    t.vrdate AS vrdate,
    lhs_utility.get_name('acc_code', t.acc_code) AS vendor_name,
    t.item_name AS item_name,
    t.qtyorder AS qtyorder,
    t.um AS um,
    t.qtyexecute AS qtyexecute
"""

_PO_FROM = """
    FROM view_order_engine t
    LEFT JOIN (
        SELECT DISTINCT vrno, indent_remark
        FROM view_indent_engine
    ) a ON a.vrno = t.indent_vrno
    WHERE t.entity_code = :entity_code
      AND t.series = :series
      AND t.qtycancelled IS NULL
      AND t.vrdate >= TO_DATE(:from_date, 'YYYY-MM-DD')
"""

PENDING_SQL = f"""
    SELECT {_PO_COLUMNS}
    {_PO_FROM}
      AND (t.qtyorder - t.qtyexecute) > 0
    ORDER BY t.vrdate DESC, t.vrno DESC
"""

HISTORY_SQL = f"""
    SELECT {_PO_COLUMNS}
    {_PO_FROM}
      AND (
        (t.qtyorder - t.qtyexecute) = 0
        OR (t.qtyorder - t.qtyexecute) > t.qtyorder
      )
    ORDER BY t.vrdate DESC, t.vrno DESC
"""


class PurchaseOrderService(QueryService):
    """Pending and historical purchase orders."""

    domain = CACHE_DOMAIN_PO
    ttl_class = TtlClass.PURCHASE_ORDER

    @property
    def params(self) -> dict[str, Any]:
        return {**self.filters, "series": self.settings.reporting.REPORT_PO_SERIES}

    @staticmethod
    def _shape(row: Row, with_balance: bool) -> Row:
        row["indenter"] = row.get("indenter") or ""
        row["indent_no"] = row.get("indent_no") or ""
        if with_balance:
            row["balance_qty"] = to_number(row.get("qtyorder")) - to_number(row.get("qtyexecute"))
        return row

    async def pending(self) -> dict[str, Any]:
        async def compute() -> dict[str, Any]:
            rows = await self.fetch_rows(PENDING_SQL, self.params)
            return list_result([self._shape(row, with_balance=True) for row in rows])

        return await self.cached("pending", compute)

    async def history(self) -> dict[str, Any]:
        async def compute() -> dict[str, Any]:
            rows = await self.fetch_rows(HISTORY_SQL, self.params)
            return list_result([self._shape(row, with_balance=False) for row in rows])

        return await self.cached("history", compute)
