"""
Cost location lookup per division (analytical store).

A division sees the cost centres assigned to it plus the ones without any
division. The corporate division (CO) sees only the latter.
"""

from typing import Any

from storeops.application.services import cache_keys
from storeops.application.services.base import QueryService, list_result
from storeops.core.config.constants import CACHE_DOMAIN_COST_LOCATION, DIVISION_CORPORATE, TtlClass

DIVISION_SQL = """
    SELECT DISTINCT t.cost_name
    FROM view_cost_mast t
    WHERE t.entity_code = :entity_code
      AND (t.div_code IS NULL OR t.div_code = :div_code)
    ORDER BY t.cost_name
"""

CORPORATE_SQL = """
    SELECT DISTINCT t.cost_name
    FROM view_cost_mast t
    WHERE t.entity_code = :entity_code
      AND t.div_code IS NULL
    ORDER BY t.cost_name
"""


class CostLocationService(QueryService):
    """Cost locations keyed by division."""

    domain = CACHE_DOMAIN_COST_LOCATION
    ttl_class = TtlClass.COST_LOCATION

    def resolve_division(self, div_code: str | None) -> str:
        division = (div_code or "").strip().upper()
        return division or self.settings.reporting.DEFAULT_DIVISION.upper()

    async def locations(self, div_code: str | None = None) -> dict[str, Any]:
        division = self.resolve_division(div_code)
        entity = {"entity_code": self.settings.reporting.REPORT_ENTITY_CODE}

        async def compute() -> dict[str, Any]:
            if division == DIVISION_CORPORATE:
                rows = await self.fetch_rows(CORPORATE_SQL, entity)
            else:
                rows = await self.fetch_rows(DIVISION_SQL, {**entity, "div_code": division})
            return list_result(rows)

        return await self.cache.get_or_compute(cache_keys.cost_location(division), self.ttl, compute)
