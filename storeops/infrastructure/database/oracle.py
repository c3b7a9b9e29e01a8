"""
Analytical store adapter (Oracle, python-oracledb).

STAGE-POOL.0: Native client bootstrap
-------------------------------------
Thick mode needs Oracle Instant Client loaded once per process before the
first pool is created. The library directory is chosen by platform.

The driver's pool is synchronous; every blocking call is offloaded with
asyncio.to_thread. Worker threads cannot be cancelled, so:
    - acquire bounds the caller's wait with asyncio.wait_for; a session that
      arrives after the caller timed out or was cancelled goes straight back
      to the pool
    - fetch_all waits for a running cursor to finish before a cancellation
      propagates, so the session is never released while still in use
POOL_GETMODE_TIMEDWAIT (ORACLE_ACQUIRE_TIMEOUT) remains the upper bound on
how long a worker thread can wait for a session.
"""

import asyncio
import platform
import threading
from typing import Any

import oracledb

from storeops.core.config.constants import Stage, StoreId
from storeops.core.config.settings import OracleSettings, Settings
from storeops.core.exceptions import (
    ClientBootstrapError,
    ConnectionUnavailableError,
    QueryFailedError,
)
from storeops.core.logging import get_logger

logger = get_logger(__name__)

_client_lock = threading.Lock()
_client_initialized = False


def resolve_client_lib_dir(settings: OracleSettings, system: str | None = None) -> str:
    """Instant Client directory for the current platform."""
    system = system or platform.system()
    if system == "Windows":
        return settings.ORACLE_WIN_CLIENT_LIB_DIR
    return settings.ORACLE_LINUX_CLIENT_LIB_DIR


def init_oracle_client(settings: OracleSettings) -> None:
    """
    Load Oracle Instant Client (thick mode), at most once per process.

    Raises:
        ClientBootstrapError: Library missing or unloadable
    """
    global _client_initialized

    with _client_lock:
        if _client_initialized:
            return

        lib_dir = resolve_client_lib_dir(settings)
        try:
            oracledb.init_oracle_client(lib_dir=lib_dir)
        except (oracledb.Error, OSError) as e:
            raise ClientBootstrapError.from_exception(
                e,
                message=(
                    f"Failed to initialize Oracle Instant Client from '{lib_dir}'. "
                    "DPI-1047 means the library could not be located or loaded."
                ),
                lib_dir=lib_dir,
                platform=platform.system(),
            ).with_suggestion(
                "Install Instant Client and point ORACLE_WIN_CLIENT_LIB_DIR / "
                "ORACLE_LINUX_CLIENT_LIB_DIR at it, or set ORACLE_THICK_MODE=false"
            )

        _client_initialized = True
        logger.info(
            "Oracle client initialized in thick mode",
            stage=Stage.POOL_BOOTSTRAP.value,
            lib_dir=lib_dir,
            client_version=".".join(str(part) for part in oracledb.clientversion()),
        )


async def _wait_out(work: asyncio.Future) -> None:
    """Wait until a worker-thread call has returned, even through further cancellation."""
    while not work.done():
        try:
            await asyncio.wait({work})
        except asyncio.CancelledError:
            continue
    if not work.cancelled():
        work.exception()


class OracleConnection:
    """BackendConnection over one pooled oracledb session."""

    def __init__(self, raw: oracledb.Connection, arraysize: int, prefetchrows: int):
        self.raw = raw
        self._arraysize = arraysize
        self._prefetchrows = prefetchrows

    def _execute(self, sql: str, params: dict[str, Any] | None) -> list[dict[str, Any]]:
        with self.raw.cursor() as cursor:
            cursor.arraysize = self._arraysize
            cursor.prefetchrows = self._prefetchrows
            cursor.execute(sql, params or {})
            if cursor.description is None:
                return []
            columns = [column[0].lower() for column in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    async def fetch_all(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        work = asyncio.ensure_future(asyncio.to_thread(self._execute, sql, params))
        try:
            return await asyncio.shield(work)
        except asyncio.CancelledError:
            # The cursor keeps running on this session in its thread
            await _wait_out(work)
            raise
        except oracledb.Error as e:
            raise QueryFailedError.from_exception(
                e,
                message=f"Query failed on {StoreId.ANALYTICAL.value} store: {e}",
                store_id=StoreId.ANALYTICAL.value,
            )

    async def fetch_one(self, sql: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        rows = await self.fetch_all(sql, params)
        return rows[0] if rows else None


class OraclePool:
    """BackendPool over oracledb.ConnectionPool."""

    def __init__(self, pool: oracledb.ConnectionPool, settings: OracleSettings):
        self._pool = pool
        self._arraysize = settings.ORACLE_FETCH_ARRAY_SIZE
        self._prefetchrows = settings.ORACLE_PREFETCH_ROWS

    async def acquire(self, timeout: float) -> OracleConnection:
        work = asyncio.ensure_future(asyncio.to_thread(self._pool.acquire))
        try:
            raw = await asyncio.wait_for(asyncio.shield(work), timeout=timeout)
        except asyncio.TimeoutError as e:
            work.add_done_callback(self._release_late)
            raise ConnectionUnavailableError.from_exception(
                e,
                message=f"No connection available from {StoreId.ANALYTICAL.value} pool within {timeout}s",
                store_id=StoreId.ANALYTICAL.value,
                timeout=timeout,
                **self.stats(),
            )
        except asyncio.CancelledError:
            work.add_done_callback(self._release_late)
            raise
        except oracledb.Error as e:
            raise ConnectionUnavailableError.from_exception(
                e,
                message=f"No connection available from {StoreId.ANALYTICAL.value} pool: {e}",
                store_id=StoreId.ANALYTICAL.value,
                timeout=timeout,
                **self.stats(),
            )
        return OracleConnection(raw, self._arraysize, self._prefetchrows)

    def _release_late(self, work: asyncio.Future) -> None:
        """Return a session whose caller stopped waiting for it."""
        if work.cancelled() or work.exception() is not None:
            return
        logger.debug("Returning a session acquired after its caller gave up", stage=Stage.POOL_RELEASE.value)
        asyncio.get_running_loop().run_in_executor(None, self._pool.release, work.result())

    async def release(self, connection: OracleConnection) -> None:
        await asyncio.to_thread(self._pool.release, connection.raw)

    async def close(self) -> None:
        await asyncio.to_thread(self._pool.close, True)

    def stats(self) -> dict[str, Any]:
        return {"size": self._pool.opened, "in_use": self._pool.busy, "max": self._pool.max}


class OracleDriver:
    """StoreDriver for the analytical store."""

    store_id = StoreId.ANALYTICAL

    def is_configured(self, settings: Settings) -> bool:
        return settings.oracle.is_configured

    def missing_reason(self, settings: Settings) -> str:
        oracle = settings.oracle
        missing = [
            name
            for name, value in (
                ("ORACLE_USER", oracle.ORACLE_USER),
                ("ORACLE_PASSWORD", oracle.ORACLE_PASSWORD),
                ("ORACLE_CONNECTION_STRING", oracle.ORACLE_CONNECTION_STRING),
            )
            if not value
        ]
        return f"missing {', '.join(missing)}"

    def acquire_timeout(self, settings: Settings) -> float:
        return settings.ORACLE_ACQUIRE_TIMEOUT

    async def bootstrap(self, settings: Settings) -> None:
        oracle = settings.oracle
        if not oracle.ORACLE_THICK_MODE:
            logger.info("Oracle thick mode disabled; using thin mode", stage=Stage.POOL_BOOTSTRAP.value)
            return
        await asyncio.to_thread(init_oracle_client, oracle)

    async def create_pool(self, settings: Settings) -> OraclePool:
        oracle = settings.oracle
        try:
            pool = await asyncio.to_thread(
                oracledb.create_pool,
                user=oracle.ORACLE_USER,
                password=oracle.ORACLE_PASSWORD,
                dsn=oracle.ORACLE_CONNECTION_STRING,
                min=oracle.ORACLE_POOL_MIN,
                max=oracle.ORACLE_POOL_MAX,
                increment=oracle.ORACLE_POOL_INCREMENT,
                getmode=oracledb.POOL_GETMODE_TIMEDWAIT,
                wait_timeout=int(oracle.ORACLE_ACQUIRE_TIMEOUT * 1000),
                timeout=oracle.ORACLE_POOL_IDLE_TIMEOUT,
                stmtcachesize=oracle.ORACLE_STMT_CACHE_SIZE,
            )
        except oracledb.Error as e:
            raise ConnectionUnavailableError.from_exception(
                e,
                message=f"Failed to create {StoreId.ANALYTICAL.value} pool: {e}",
                store_id=StoreId.ANALYTICAL.value,
                dsn=oracle.ORACLE_CONNECTION_STRING,
            )
        return OraclePool(pool, oracle)
