"""
Exception Module

Structured exception hierarchy for the reporting backend.

Module Structure:
-----------------
- **base.py**: StoreOpsError base class + ConfigurationError
- **database.py**: Pool / backend store exceptions
- **cache.py**: Cache exceptions (internal to the cache client)

Usage:
------
```python
from storeops.core.exceptions import NotConfiguredError, QueryFailedError
```
"""

# Base exception
from storeops.core.exceptions.base import ConfigurationError, StoreOpsError

# Cache exceptions
from storeops.core.exceptions.cache import CacheError, CacheUnavailableError

# Database exceptions
from storeops.core.exceptions.database import (
    ClientBootstrapError,
    ConnectionUnavailableError,
    DatabaseError,
    NotConfiguredError,
    QueryFailedError,
)

__all__ = [
    # Base
    "StoreOpsError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheUnavailableError",
    # Database
    "DatabaseError",
    "NotConfiguredError",
    "ConnectionUnavailableError",
    "QueryFailedError",
    "ClientBootstrapError",
]
