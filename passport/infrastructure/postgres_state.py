"""
PostgreSQL world-state backend.

Layout:
- `world_state` holds the current value and version of every key.
- `key_history` is the append-only change log; its row id doubles as the
  version of the write it records.

Commits run in one database transaction under a namespace-scoped advisory
lock, so several processes sharing the database still apply transactions
one at a time. Range and history scans stream through server-side cursors
with fetchmany batching; the cursor and its pooled connection are released
when the returned iterator is closed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterator, List, Optional

import psycopg
from psycopg_pool import ConnectionPool

from passport.infrastructure.db_factory import get_sync_connection
from passport.infrastructure.world_state import (
    KV,
    KeyModification,
    ReadWriteSet,
    ResultsIterator,
    ValidationCode,
    VersionedValue,
)
from passport.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS world_state (
    namespace TEXT NOT NULL,
    key TEXT COLLATE "C" NOT NULL,
    value BYTEA NOT NULL,
    version BIGINT NOT NULL,
    PRIMARY KEY (namespace, key)
);
CREATE TABLE IF NOT EXISTS key_history (
    id BIGSERIAL PRIMARY KEY,
    namespace TEXT NOT NULL,
    key TEXT NOT NULL,
    tx_id TEXT NOT NULL,
    ts TIMESTAMPTZ NOT NULL,
    value BYTEA,
    is_delete BOOLEAN NOT NULL
);
CREATE INDEX IF NOT EXISTS key_history_lookup ON key_history (namespace, key, id);
"""


def ensure_schema(dsn: Optional[str] = None) -> None:
    """Create the world-state tables if they do not exist yet."""
    with get_sync_connection(dsn) as conn:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
    log.info("World-state schema ready")


def _batched_fetch(cursor: psycopg.Cursor, batch_size: int) -> Iterator[list]:
    """
    Yield batches from a cursor using fetchmany.
    """
    while True:
        batch = cursor.fetchmany(batch_size)
        if not batch:
            break
        yield batch


class PostgresWorldState:
    """
    World state stored in PostgreSQL, one namespace per deployed contract.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        namespace: str = "passport",
        batch_size: int = 500,
    ) -> None:
        self.pool = pool
        self.namespace = namespace
        self.batch_size = batch_size
        self._cursor_seq = 0

    def _cursor_name(self, prefix: str) -> str:
        self._cursor_seq += 1
        return f"{prefix}_{self._cursor_seq}"

    def get_state(self, key: str) -> Optional[VersionedValue]:
        with self.pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT value, version FROM world_state WHERE namespace = %s AND key = %s;",
                    (self.namespace, key),
                )
                row = cur.fetchone()
        if row is None:
            return None
        return VersionedValue(value=bytes(row[0]), version=row[1])

    def _stream(self, cursor_name: str, sql: str, params: tuple) -> Iterator[tuple]:
        with self.pool.connection() as conn:
            with conn.cursor(name=cursor_name) as cur:
                cur.execute(sql, params)
                for batch in _batched_fetch(cur, self.batch_size):
                    yield from batch

    def get_state_by_range(self, start_key: str, end_key: str) -> ResultsIterator[KV]:
        sql = "SELECT key, value FROM world_state WHERE namespace = %s"
        params: List[object] = [self.namespace]
        if start_key:
            sql += " AND key >= %s"
            params.append(start_key)
        if end_key:
            sql += " AND key < %s"
            params.append(end_key)
        sql += " ORDER BY key;"

        rows = self._stream(self._cursor_name("range_scan"), sql, tuple(params))
        kvs = (KV(key=key, value=bytes(value)) for key, value in rows)
        return ResultsIterator(kvs, on_close=rows.close)

    def get_history_for_key(self, key: str) -> ResultsIterator[KeyModification]:
        sql = (
            "SELECT tx_id, ts, value, is_delete FROM key_history "
            "WHERE namespace = %s AND key = %s ORDER BY id;"
        )
        rows = self._stream(self._cursor_name("history_scan"), sql, (self.namespace, key))
        mods = (
            KeyModification(
                tx_id=tx_id,
                timestamp=ts,
                value=None if value is None else bytes(value),
                is_delete=is_delete,
            )
            for tx_id, ts, value, is_delete in rows
        )
        return ResultsIterator(mods, on_close=rows.close)

    def commit(self, tx_id: str, timestamp: datetime, rwset: ReadWriteSet) -> ValidationCode:
        with self.pool.connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    cur.execute("SELECT pg_advisory_xact_lock(hashtext(%s));", (self.namespace,))

                    if rwset.reads:
                        cur.execute(
                            "SELECT key, version FROM world_state "
                            "WHERE namespace = %s AND key = ANY(%s);",
                            (self.namespace, list(rwset.reads)),
                        )
                        current = dict(cur.fetchall())
                        for key, version in rwset.reads.items():
                            if current.get(key) != version:
                                log.info(
                                    f"MVCC conflict on key {key}",
                                    extra={"tx_id": tx_id, "key": key, "namespace": self.namespace},
                                )
                                return ValidationCode.MVCC_READ_CONFLICT

                    for write in rwset.writes.values():
                        cur.execute(
                            "INSERT INTO key_history (namespace, key, tx_id, ts, value, is_delete) "
                            "VALUES (%s, %s, %s, %s, %s, %s) RETURNING id;",
                            (
                                self.namespace,
                                write.key,
                                tx_id,
                                timestamp,
                                None if write.is_delete else write.value,
                                write.is_delete,
                            ),
                        )
                        version = cur.fetchone()[0]
                        if write.is_delete:
                            cur.execute(
                                "DELETE FROM world_state WHERE namespace = %s AND key = %s;",
                                (self.namespace, write.key),
                            )
                        else:
                            cur.execute(
                                "INSERT INTO world_state (namespace, key, value, version) "
                                "VALUES (%s, %s, %s, %s) "
                                "ON CONFLICT (namespace, key) "
                                "DO UPDATE SET value = EXCLUDED.value, version = EXCLUDED.version;",
                                (self.namespace, write.key, write.value, version),
                            )
        return ValidationCode.VALID

    def close(self) -> None:
        self.pool.close()


__all__ = ["PostgresWorldState", "ensure_schema", "SCHEMA_SQL"]
