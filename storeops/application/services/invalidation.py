"""
Cache invalidation hooks.

Writers in a domain call these after a successful write so cached reads
and aggregates that depend on the written data are dropped. Every hook
returns the number of keys removed and never raises for cache failures.
"""

import asyncio

from storeops.application.services import cache_keys
from storeops.core.config.constants import CACHE_DOMAIN_GATE_PASS, CACHE_DOMAIN_PO, Stage
from storeops.core.logging import get_logger
from storeops.infrastructure.cache.cache_manager import CacheManager

logger = get_logger(__name__)


class CacheInvalidator:
    """Explicit key and pattern deletion per reporting domain."""

    def __init__(self, cache: CacheManager):
        self._cache = cache

    async def _delete_all(self, hook: str, *keys: str) -> int:
        removed = sum(await asyncio.gather(*(self._cache.invalidate(key) for key in keys)))
        logger.info("Invalidation hook ran", stage=Stage.INVALIDATION.value, hook=hook, keys=list(keys), removed=removed)
        return removed

    async def invalidate_indents(self) -> int:
        """Indent lists and the dashboard built from them (after approve / create)."""
        return await self._delete_all(
            "indents",
            cache_keys.indent_pending(),
            cache_keys.indent_history(),
            cache_keys.indent_dashboard(),
        )

    async def invalidate_purchase_orders(self) -> int:
        """Every PO list plus the dashboard's purchase totals."""
        return await self._delete_all(
            "purchase_orders",
            cache_keys.domain_pattern(CACHE_DOMAIN_PO),
            cache_keys.indent_dashboard(),
        )

    async def invalidate_gate_passes(self) -> int:
        return await self._delete_all("gate_passes", cache_keys.domain_pattern(CACHE_DOMAIN_GATE_PASS))

    async def invalidate_domain(self, domain: str) -> int:
        """Every key of an arbitrary domain (``<domain>:*``)."""
        return await self._delete_all(f"domain:{domain}", cache_keys.domain_pattern(domain))
