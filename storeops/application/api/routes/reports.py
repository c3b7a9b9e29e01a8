"""
Reporting routes.

Each route maps one path to one query-service operation and wraps the
result as ``{"success": true, "data": ...}``. Typed backend errors are
turned into status codes by the application's exception handlers.
"""

from typing import Any

from fastapi import APIRouter, Query

from storeops.application.api.dependencies import ContextDep


def ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


po_router = APIRouter(prefix="/po", tags=["Purchase Orders"])
indent_router = APIRouter(prefix="/store-indent", tags=["Store Indents"])
gate_pass_router = APIRouter(prefix="/repair-gate-pass", tags=["Repair Gate Pass"])
reference_router = APIRouter(tags=["Reference Data"])


# ============================================================================
# Purchase orders
# ============================================================================


@po_router.get("/pending")
async def po_pending(context: ContextDep):
    return ok(await context.purchase_orders.pending())


@po_router.get("/history")
async def po_history(context: ContextDep):
    return ok(await context.purchase_orders.history())


# ============================================================================
# Store indents
# ============================================================================


@indent_router.get("/pending")
async def indent_pending(context: ContextDep):
    return ok(await context.store_indents.pending())


@indent_router.get("/history")
async def indent_history(context: ContextDep):
    return ok(await context.store_indents.history())


@indent_router.get("/dashboard")
async def indent_dashboard(context: ContextDep):
    return ok(await context.dashboard.metrics())


# ============================================================================
# Repair gate passes
# ============================================================================


@gate_pass_router.get("/pending")
async def gate_pass_pending(context: ContextDep):
    return ok(await context.gate_passes.pending())


@gate_pass_router.get("/received")
@gate_pass_router.get("/history")
async def gate_pass_received(context: ContextDep):
    return ok(await context.gate_passes.received())


@gate_pass_router.get("/counts")
async def gate_pass_counts(context: ContextDep):
    return ok(await context.gate_passes.counts())


# ============================================================================
# Reference data
# ============================================================================


@reference_router.get("/uom")
async def uom_items(context: ContextDep):
    return ok(await context.uom.items())


@reference_router.get("/cost-location")
async def cost_locations(
    context: ContextDep,
    div_code: str | None = Query(default=None, max_length=10, description="Division code (SM, RP, PM, CO)"),
):
    return ok(await context.cost_locations.locations(div_code))


routers = [po_router, indent_router, gate_pass_router, reference_router]
