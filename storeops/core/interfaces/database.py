"""
Backend Store Protocols

Contracts between the pool manager and the driver-specific adapters
(Oracle, PostgreSQL). The pool manager and the query services only ever
see these shapes.
"""

from typing import Any, Protocol, runtime_checkable

from storeops.core.config.settings import Settings


@runtime_checkable
class BackendConnection(Protocol):
    """
    A connection borrowed from a pool for one logical operation.

    Rows come back as plain dicts keyed by lower-cased column name.
    Driver errors surface as QueryFailedError.
    """

    async def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        ...

    async def fetch_one(self, sql: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        ...


@runtime_checkable
class BackendPool(Protocol):
    """
    A bounded pool of BackendConnections for one store.

    acquire() enforces its own timeout and raises ConnectionUnavailableError
    when it elapses; the pool manager never cancels an in-progress acquire.
    """

    async def acquire(self, timeout: float) -> BackendConnection:
        ...

    async def release(self, connection: BackendConnection) -> None:
        ...

    async def close(self) -> None:
        ...

    def stats(self) -> dict[str, Any]:
        """Current size / in-use / max."""
        ...


@runtime_checkable
class StoreDriver(Protocol):
    """
    Factory for one store's pool.

    bootstrap() performs one-time process setup (e.g. loading a native
    client library) and may raise ClientBootstrapError.
    """

    def is_configured(self, settings: Settings) -> bool:
        ...

    def missing_reason(self, settings: Settings) -> str:
        """Human-readable reason the store is unconfigured."""
        ...

    def acquire_timeout(self, settings: Settings) -> float:
        ...

    async def bootstrap(self, settings: Settings) -> None:
        ...

    async def create_pool(self, settings: Settings) -> BackendPool:
        ...
