"""
Store indent reports (analytical store).

pending: indents without a purchase order and not cancelled
history: indents that have been converted to a purchase order
"""

from typing import Any

from storeops.application.services.base import QueryService, list_result
from storeops.core.config.constants import CACHE_DOMAIN_INDENT, TtlClass

PENDING_SQL = """
    SELECT
        t.lastupdate + INTERVAL '3' DAY AS planned_timestamp,
        t.vrno AS indent_number,
        t.vrdate AS indent_date,
        t.indent_remark AS indenter_name,
        lhs_utility.get_name('div_code', t.div_code) AS division,
        UPPER(lhs_utility.get_name('dept_code', t.dept_code)) AS department,
        UPPER(t.item_name) AS item_name,
        t.um,
        t.qtyindent AS required_qty,
        t.purpose_remark AS remark,
        UPPER(t.remark) AS specification,
        lhs_utility.get_name('cost_code', t.cost_code) AS cost_project
    FROM view_indent_engine t
    WHERE t.entity_code = :entity_code
      AND t.po_no IS NULL
      AND t.cancelleddate IS NULL
      AND t.vrdate >= TO_DATE(:from_date, 'YYYY-MM-DD')
    ORDER BY t.vrdate ASC, t.vrno ASC
"""

HISTORY_SQL = """
    SELECT
        t.lastupdate + INTERVAL '3' DAY AS planned_timestamp,
        t.vrno AS indent_number,
        t.vrdate AS indent_date,
        t.indent_remark AS indenter_name,
        lhs_utility.get_name('div_code', t.div_code) AS division,
        lhs_utility.get_name('dept_code', t.dept_code) AS department,
        UPPER(t.item_name) AS item_name,
        t.um,
        t.qtyindent AS required_qty,
        t.purpose_remark AS remark,
        UPPER(t.remark) AS specification,
        lhs_utility.get_name('cost_code', t.cost_code) AS cost_project,
        t.po_no,
        t.po_qty,
        t.cancelleddate AS cancelled_date,
        t.cancelled_remark
    FROM view_indent_engine t
    WHERE t.entity_code = :entity_code
      AND t.po_no IS NOT NULL
      AND t.vrdate >= TO_DATE(:from_date, 'YYYY-MM-DD')
    ORDER BY t.vrdate ASC, t.vrno ASC
"""


class StoreIndentService(QueryService):
    """Pending and historical store indents."""

    domain = CACHE_DOMAIN_INDENT
    ttl_class = TtlClass.INDENT

    async def pending(self) -> dict[str, Any]:
        async def compute() -> dict[str, Any]:
            return list_result(await self.fetch_rows(PENDING_SQL, self.filters))

        return await self.cached("pending", compute)

    async def history(self) -> dict[str, Any]:
        async def compute() -> dict[str, Any]:
            return list_result(await self.fetch_rows(HISTORY_SQL, self.filters))

        return await self.cached("history", compute)
