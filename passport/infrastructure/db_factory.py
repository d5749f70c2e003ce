"""
Connections for the PostgreSQL world state.

One pool per process, owned by `PoolManager` and closed at exit. Opening a
dedicated connection retries transient failures with tenacity; ledger
transactions themselves are never retried.
"""

from __future__ import annotations

import atexit
import threading
from typing import Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from passport.config import Settings, get_settings
from passport.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """
    Compose a DSN string from settings.

    When a TLS CA certificate is configured, the connection requires TLS and
    verifies the server certificate against it.
    """
    settings = settings or get_settings()
    dsn = (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )
    if settings.tls_cert_path is not None:
        dsn += f"?sslmode=verify-full&sslrootcert={settings.tls_cert_path}"
    return dsn


class PoolManager:
    """Process-wide pool holder, closed from an atexit hook."""

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._sync_pool = None
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_sync_pool(
        self,
        min_size: int = 1,
        max_size: int = 10,
        settings: Optional[Settings] = None,
    ) -> ConnectionPool:
        """
        Get or create the synchronous connection pool.

        Parameters
        ----------
        min_size : int
            Minimum number of idle connections to keep.
        max_size : int
            Maximum total connections in the pool.
        settings : Settings | None
            Source of connection parameters; defaults to the cached settings.

        Returns
        -------
        ConnectionPool
            The managed sync pool instance.
        """
        with self._lock:
            # A backend may have closed the pool on shutdown; reopen on demand.
            if self._sync_pool is None or self._sync_pool.closed:
                self._sync_pool = ConnectionPool(
                    conninfo=build_dsn(settings), min_size=min_size, max_size=max_size, open=True
                )
                log.info("Opened world-state connection pool", extra={"max_size": max_size})
            return self._sync_pool

    def close_all(self) -> None:
        with self._lock:
            if self._sync_pool is not None:
                pool, self._sync_pool = self._sync_pool, None
                pool.close()
                log.info("Closed world-state connection pool")


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Open a dedicated connection, used for schema setup.

    Three attempts with exponential backoff on operational and interface errors.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def get_sync_pool(
    min_size: int = 1, max_size: int = 10, settings: Optional[Settings] = None
) -> ConnectionPool:
    manager = PoolManager()
    return manager.get_sync_pool(min_size=min_size, max_size=max_size, settings=settings)


__all__ = [
    "PoolManager",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
