"""
Integration tests for the PostgreSQL world state.

These tests run against a real PostgreSQL instance and verify that:
1. Commits apply writes, bump versions and append history
2. MVCC validation rejects stale reads
3. Range and history scans stream in order across fetch batches
4. The person contract works end to end on the durable backend

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os
import uuid
from datetime import datetime, timezone
from typing import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from passport.config import Settings
from passport.domain import Person
from passport.gateway import open_person_client
from passport.infrastructure.postgres_state import PostgresWorldState, ensure_schema
from passport.infrastructure.world_state import KVWrite, ReadWriteSet, ValidationCode

# Small batches force several fetchmany round trips per scan.
SCAN_BATCH_SIZE = 2

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _purge(dsn: str, namespace: str) -> None:
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM world_state WHERE namespace = %s;", (namespace,))
            cur.execute("DELETE FROM key_history WHERE namespace = %s;", (namespace,))
        conn.commit()


@pytest.fixture
def pg_state(
    test_dsn: str, db_connection_available: bool
) -> Generator[PostgresWorldState, None, None]:
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    ensure_schema(test_dsn)
    namespace = f"test_{uuid.uuid4().hex[:12]}"
    pool = ConnectionPool(conninfo=test_dsn, min_size=1, max_size=4, open=True)
    state = PostgresWorldState(pool, namespace=namespace, batch_size=SCAN_BATCH_SIZE)
    try:
        yield state
    finally:
        state.close()
        _purge(test_dsn, namespace)


def _put(state: PostgresWorldState, tx_id: str, **values: bytes) -> ValidationCode:
    rwset = ReadWriteSet(writes={k: KVWrite(key=k, value=v) for k, v in values.items()})
    return state.commit(tx_id, _now(), rwset)


class TestCommit:
    def test_commit_applies_writes_and_bumps_version(self, pg_state: PostgresWorldState) -> None:
        assert _put(pg_state, "tx1", a=b"1") == ValidationCode.VALID
        first = pg_state.get_state("a")
        assert _put(pg_state, "tx2", a=b"2") == ValidationCode.VALID
        second = pg_state.get_state("a")

        assert first.value == b"1"
        assert second.value == b"2"
        assert second.version > first.version

    def test_stale_read_is_rejected(self, pg_state: PostgresWorldState) -> None:
        _put(pg_state, "tx1", a=b"1")
        observed = pg_state.get_state("a").version
        _put(pg_state, "tx2", a=b"2")

        stale = ReadWriteSet(reads={"a": observed}, writes={"a": KVWrite(key="a", value=b"x")})

        assert pg_state.commit("tx3", _now(), stale) == ValidationCode.MVCC_READ_CONFLICT
        assert pg_state.get_state("a").value == b"2"

    def test_absent_read_conflicts_once_created(self, pg_state: PostgresWorldState) -> None:
        rwset = ReadWriteSet(reads={"a": None}, writes={"a": KVWrite(key="a", value=b"mine")})
        _put(pg_state, "tx1", a=b"theirs")

        assert pg_state.commit("tx2", _now(), rwset) == ValidationCode.MVCC_READ_CONFLICT

    def test_delete_records_history(self, pg_state: PostgresWorldState) -> None:
        _put(pg_state, "tx1", a=b"1")
        rwset = ReadWriteSet(writes={"a": KVWrite(key="a", value=None, is_delete=True)})

        assert pg_state.commit("tx2", _now(), rwset) == ValidationCode.VALID
        assert pg_state.get_state("a") is None
        with pg_state.get_history_for_key("a") as history:
            mods = list(history)
        assert [(m.tx_id, m.is_delete, m.value) for m in mods] == [
            ("tx1", False, b"1"),
            ("tx2", True, None),
        ]


class TestScans:
    def test_range_scan_uses_byte_order_across_batches(self, pg_state: PostgresWorldState) -> None:
        _put(pg_state, "tx1", b=b"2", a=b"1", c=b"3", person10=b"x", person2=b"y", Z=b"z")

        with pg_state.get_state_by_range("", "") as results:
            keys = [kv.key for kv in results]
        with pg_state.get_state_by_range("b", "person2") as results:
            bounded = [kv.key for kv in results]

        assert keys == ["Z", "a", "b", "c", "person10", "person2"]
        assert bounded == ["b", "c", "person10"]

    def test_closing_early_releases_cursor(self, pg_state: PostgresWorldState) -> None:
        _put(pg_state, "tx1", a=b"1", b=b"2", c=b"3", d=b"4", e=b"5")

        results = pg_state.get_state_by_range("", "")
        assert next(results).key == "a"
        results.close()

        # The pool must hand the connection back in a usable state.
        assert pg_state.get_state("e").value == b"5"


def test_person_contract_end_to_end(test_settings: Settings, db_connection_available: bool) -> None:
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    chaincode = f"passport_{uuid.uuid4().hex[:8]}"
    settings = test_settings.model_copy(
        update={"ledger_backend": "postgres", "chaincode_name": chaincode}
    )
    person = Person(
        id="person0",
        serial="0510 228148",
        name="Igor",
        surname="Nikolaev",
        city="Moscow",
        address="Likhachevsky proezd 2",
        phone="88005553535",
        married=True,
    )
    dsn = (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )
    try:
        with open_person_client(settings) as client:
            client.create(person)
            assert client.exists("person0") is True
            client.update(person.model_copy(update={"serial": "9999"}))

        # A second session sees the committed state.
        with open_person_client(settings) as client:
            assert client.read("person0").serial == "9999"
            assert len(client.history("person0")) == 2
            assert [p.id for p in client.list_all()] == ["person0"]
    finally:
        _purge(dsn, chaincode)
