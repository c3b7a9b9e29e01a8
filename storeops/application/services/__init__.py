"""
Query Services Module

One service per reporting domain; each reads through the cache-aside
orchestrator and borrows backend connections from the pool manager.
"""

from storeops.application.services.base import QueryService
from storeops.application.services.cost_locations import CostLocationService
from storeops.application.services.dashboard import IndentDashboardService
from storeops.application.services.gate_passes import RepairGatePassService
from storeops.application.services.invalidation import CacheInvalidator
from storeops.application.services.purchase_orders import PurchaseOrderService
from storeops.application.services.store_indents import StoreIndentService
from storeops.application.services.uom import UomService

__all__ = [
    "CacheInvalidator",
    "CostLocationService",
    "IndentDashboardService",
    "PurchaseOrderService",
    "QueryService",
    "RepairGatePassService",
    "StoreIndentService",
    "UomService",
]
