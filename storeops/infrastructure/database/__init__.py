"""
Database Infrastructure Module

- **pool_manager.py**: PoolManager, Store = ConfiguredStore | UnconfiguredStore
- **oracle.py**: analytical store driver (python-oracledb, thick mode)
- **postgres.py**: transactional store driver (asyncpg)
"""

from storeops.core.config.constants import StoreId
from storeops.infrastructure.database.oracle import OracleDriver
from storeops.infrastructure.database.pool_manager import (
    ConfiguredStore,
    PoolManager,
    Store,
    UnconfiguredStore,
)
from storeops.infrastructure.database.postgres import PostgresDriver


def default_drivers() -> dict:
    """Production driver registry keyed by store id."""
    return {
        StoreId.ANALYTICAL: OracleDriver(),
        StoreId.TRANSACTIONAL: PostgresDriver(),
    }


__all__ = [
    "ConfiguredStore",
    "OracleDriver",
    "PoolManager",
    "PostgresDriver",
    "Store",
    "UnconfiguredStore",
    "default_drivers",
]
