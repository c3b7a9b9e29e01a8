from .constants import (
    HealthStatus,
    Stage,
    StoreId,
    TtlClass,
)
from .settings import Settings, get_settings, reload_settings

__all__ = [
    "HealthStatus",
    "Settings",
    "Stage",
    "StoreId",
    "TtlClass",
    "get_settings",
    "reload_settings",
]
