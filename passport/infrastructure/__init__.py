"""
Infrastructure package for the passport ledger.

Centralizes world-state storage concerns (in-memory and PostgreSQL backends,
connection pooling). Keep this layer focused on I/O and resource management,
decoupled from contract and gateway logic.
"""

from __future__ import annotations

from typing import Optional

from passport.config import Settings, get_settings
from passport.infrastructure.db_factory import build_dsn, get_sync_connection, get_sync_pool
from passport.infrastructure.world_state import (
    KV,
    KeyModification,
    KVWrite,
    MemoryWorldState,
    ReadWriteSet,
    ResultsIterator,
    ValidationCode,
    VersionedValue,
    WorldState,
)


def create_world_state(namespace: str, settings: Optional[Settings] = None) -> WorldState:
    """
    Build the world-state backend selected by `LEDGER_BACKEND`.
    """
    settings = settings or get_settings()
    if settings.ledger_backend == "postgres":
        from passport.infrastructure.postgres_state import PostgresWorldState, ensure_schema

        ensure_schema(build_dsn(settings))
        return PostgresWorldState(
            pool=get_sync_pool(settings=settings),
            namespace=namespace,
            batch_size=settings.db_scan_batch_size,
        )
    return MemoryWorldState(namespace=namespace)


__all__ = [
    "create_world_state",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
    "KV",
    "KeyModification",
    "KVWrite",
    "MemoryWorldState",
    "ReadWriteSet",
    "ResultsIterator",
    "ValidationCode",
    "VersionedValue",
    "WorldState",
]
