"""
Database-Related Exceptions

All exceptions raised by the connection pool manager and the backend adapters.
These are the only failures a query service lets reach its caller.
"""

from storeops.core.exceptions.base import StoreOpsError


class DatabaseError(StoreOpsError):
    """Base exception for backend store errors."""

    default_code = "DATABASE_ERROR"


class NotConfiguredError(DatabaseError):
    """
    Raised when a connection is requested for a store without credentials.

    The store was decided "unconfigured" once at initialization and is never
    retried for the life of the process.
    """

    default_code = "STORE_NOT_CONFIGURED"


class ConnectionUnavailableError(DatabaseError):
    """
    Raised when a pooled connection cannot be obtained in time.

    Common causes:
    - Pool exhausted (all connections in use)
    - Acquisition timeout elapsed
    - Backend refused new sessions

    Not retried internally; the caller decides.
    """

    default_code = "CONNECTION_UNAVAILABLE"


class QueryFailedError(DatabaseError):
    """
    Raised when the backend rejects or fails a query.

    details carries store_id plus the original driver error class/message.
    """

    default_code = "QUERY_FAILED"


class ClientBootstrapError(DatabaseError):
    """
    Raised when the native Oracle client library cannot be loaded.

    Fatal at startup: the application exits with status 1.
    """

    default_code = "CLIENT_BOOTSTRAP_FAILED"
