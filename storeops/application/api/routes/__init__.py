from storeops.application.api.routes.health import router as health_router
from storeops.application.api.routes.reports import routers as report_routers

__all__ = ["health_router", "report_routers"]
