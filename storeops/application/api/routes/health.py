"""
Health Check Routes

- GET /health          dependency health; 503 when a configured store is down
- GET /health/detailed health plus pool and cache statistics
- GET /health/live     liveness probe (no dependency checks)
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from storeops.application.api.dependencies import ContextDep
from storeops.core.config.constants import HealthStatus

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check(context: ContextDep):
    """
    Dependency health for load balancers.

    HTTP Status Codes:
        200: healthy or degraded (cache down only)
        503: a configured store cannot lend a connection
    """
    report = await context.health.check_health()
    unhealthy = report["status"] == HealthStatus.UNHEALTHY.value
    return JSONResponse(
        status_code=503 if unhealthy else 200,
        content={"success": not unhealthy, "data": report},
    )


@router.get("/detailed")
async def detailed_health(context: ContextDep):
    """Always 200; the status is in the body."""
    return {"success": True, "data": await context.health.detailed_health_report()}


@router.get("/live")
async def liveness_probe():
    return {
        "success": True,
        "data": {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")},
    }
