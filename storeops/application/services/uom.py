"""Unit-of-measure lookup (analytical store)."""

from typing import Any

from storeops.application.services.base import QueryService, list_result
from storeops.core.config.constants import CACHE_DOMAIN_UOM, TtlClass

ITEMS_SQL = """
    SELECT t.item_code,
           t.item_name,
           t.um
    FROM item_mast t
    WHERE t.item_nature = 'SI'
      AND t.item_status <> 'C'
    ORDER BY t.item_name
"""


class UomService(QueryService):
    """Stock items that are not closed, with their unit of measure."""

    domain = CACHE_DOMAIN_UOM
    ttl_class = TtlClass.UOM

    async def items(self) -> dict[str, Any]:
        async def compute() -> dict[str, Any]:
            return list_result(await self.fetch_rows(ITEMS_SQL))

        return await self.cached("items", compute)
