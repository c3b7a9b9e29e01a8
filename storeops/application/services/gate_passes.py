"""
Repair gate pass reports (analytical store).

A repair gate pass (voucher prefix P3) is pending until a receipt voucher
(series A3) references it.
"""

import asyncio
from typing import Any

from storeops.application.services.base import QueryService, list_result, to_number
from storeops.core.config.constants import CACHE_DOMAIN_GATE_PASS, TtlClass

_NOT_YET_RECEIVED = """
    WHERE t.entity_code = :entity_code
      AND SUBSTR(t.vrno, 1, 2) = 'P3'
      AND t.vrno NOT IN (
        SELECT r.ref1_vrno
        FROM view_itemtran_engine r
        WHERE r.entity_code = :entity_code
          AND SUBSTR(r.vrno, 1, 2) = 'A3'
          AND r.ref1_vrno IS NOT NULL
      )
"""

_RECEIVED = """
    WHERE t.entity_code = :entity_code
      AND t.series = 'A3'
"""

PENDING_SQL = f"""
    SELECT t.vrno,
           t.vrdate,
           lhs_utility.get_name('dept_code', t.dept_code) AS department,
           lhs_utility.get_name('acc_code', t.acc_code) AS party_name,
           t.item_name,
           t.qtyissued,
           t.um,
           t.app_remark,
           t.remark
    FROM view_itemtran_engine t
    {_NOT_YET_RECEIVED}
    ORDER BY t.vrdate DESC, t.vrno DESC
"""

RECEIVED_SQL = f"""
    SELECT t.ref1_vrno AS repair_gate_pass,
           t.vrno AS receive_gate_pass,
           t.vrdate AS received_date,
           lhs_utility.get_name('dept_code', t.dept_code) AS department,
           lhs_utility.get_name('acc_code', t.acc_code) AS party_name,
           t.item_name,
           t.qtyrecd,
           t.um,
           t.app_remark,
           t.remark
    FROM view_itemtran_engine t
    {_RECEIVED}
    ORDER BY t.vrdate DESC, t.vrno DESC
"""

PENDING_COUNT_SQL = f"SELECT COUNT(*) AS count FROM view_itemtran_engine t {_NOT_YET_RECEIVED}"

RECEIVED_COUNT_SQL = f"SELECT COUNT(*) AS count FROM view_itemtran_engine t {_RECEIVED}"


class RepairGatePassService(QueryService):
    """Pending / received repair gate passes and their counts."""

    domain = CACHE_DOMAIN_GATE_PASS
    ttl_class = TtlClass.GATE_PASS

    @property
    def params(self) -> dict[str, Any]:
        return {"entity_code": self.settings.reporting.REPORT_ENTITY_CODE}

    async def pending(self) -> dict[str, Any]:
        async def compute() -> dict[str, Any]:
            return list_result(await self.fetch_rows(PENDING_SQL, self.params))

        return await self.cached("pending", compute)

    async def received(self) -> dict[str, Any]:
        async def compute() -> dict[str, Any]:
            return list_result(await self.fetch_rows(RECEIVED_SQL, self.params))

        return await self.cached("received", compute)

    async def counts(self) -> dict[str, int | float]:
        """Both counts, each on its own connection, run concurrently."""

        async def compute() -> dict[str, int | float]:
            pending, history = await asyncio.gather(
                self.fetch_first(PENDING_COUNT_SQL, self.params),
                self.fetch_first(RECEIVED_COUNT_SQL, self.params),
            )
            return {"pending": to_number(pending.get("count")), "history": to_number(history.get("count"))}

        return await self.cached("counts", compute)
