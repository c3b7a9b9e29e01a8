from storeops.infrastructure.monitoring.health_checker import HealthChecker

__all__ = ["HealthChecker"]
