from __future__ import annotations

from datetime import datetime, timezone

from passport.infrastructure.world_state import (
    KVWrite,
    MemoryWorldState,
    ReadWriteSet,
    ResultsIterator,
    ValidationCode,
    WorldState,
    in_range,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _put(state: MemoryWorldState, tx_id: str, **values: bytes) -> ValidationCode:
    rwset = ReadWriteSet(writes={key: KVWrite(key=key, value=value) for key, value in values.items()})
    return state.commit(tx_id, NOW, rwset)


def test_memory_state_satisfies_protocol() -> None:
    assert isinstance(MemoryWorldState(), WorldState)


def test_commit_applies_writes_and_bumps_version() -> None:
    state = MemoryWorldState()

    assert _put(state, "tx1", a=b"1") == ValidationCode.VALID
    first = state.get_state("a")
    assert _put(state, "tx2", a=b"2") == ValidationCode.VALID
    second = state.get_state("a")

    assert first.value == b"1"
    assert second.value == b"2"
    assert second.version > first.version


def test_range_scan_is_lexical_and_half_open() -> None:
    state = MemoryWorldState()
    _put(state, "tx1", b=b"2", a=b"1", c=b"3", person10=b"x", person2=b"y")

    with state.get_state_by_range("", "") as results:
        assert [kv.key for kv in results] == ["a", "b", "c", "person10", "person2"]
    with state.get_state_by_range("b", "c") as results:
        assert [kv.key for kv in results] == ["b"]


def test_in_range_bounds() -> None:
    assert in_range("m", "", "")
    assert in_range("m", "m", "n")
    assert not in_range("n", "m", "n")
    assert not in_range("a", "m", "")


def test_mvcc_conflict_rejects_stale_read_without_writing() -> None:
    state = MemoryWorldState()
    _put(state, "tx1", a=b"1")
    observed = state.get_state("a").version
    _put(state, "tx2", a=b"2")

    stale = ReadWriteSet(
        reads={"a": observed},
        writes={"a": KVWrite(key="a", value=b"stale")},
    )

    assert state.commit("tx3", NOW, stale) == ValidationCode.MVCC_READ_CONFLICT
    assert state.get_state("a").value == b"2"
    with state.get_history_for_key("a") as history:
        assert [mod.tx_id for mod in history] == ["tx1", "tx2"]


def test_read_of_absent_key_conflicts_once_created() -> None:
    state = MemoryWorldState()
    rwset = ReadWriteSet(reads={"a": None}, writes={"a": KVWrite(key="a", value=b"mine")})
    _put(state, "tx1", a=b"theirs")

    assert state.commit("tx2", NOW, rwset) == ValidationCode.MVCC_READ_CONFLICT


def test_delete_removes_key_and_records_history() -> None:
    state = MemoryWorldState()
    _put(state, "tx1", a=b"1")
    rwset = ReadWriteSet(writes={"a": KVWrite(key="a", value=None, is_delete=True)})

    assert state.commit("tx2", NOW, rwset) == ValidationCode.VALID
    assert state.get_state("a") is None
    with state.get_history_for_key("a") as history:
        mods = list(history)
    assert [(m.tx_id, m.is_delete, m.value) for m in mods] == [
        ("tx1", False, b"1"),
        ("tx2", True, None),
    ]


def test_read_only_commit_is_valid_and_writes_nothing() -> None:
    state = MemoryWorldState()
    rwset = ReadWriteSet(reads={"a": None})

    assert rwset.is_read_only
    assert state.commit("tx1", NOW, rwset) == ValidationCode.VALID
    with state.get_history_for_key("a") as history:
        assert list(history) == []


def test_results_iterator_close_is_idempotent() -> None:
    closed = []
    results = ResultsIterator(iter([1, 2, 3]), on_close=lambda: closed.append(True))

    assert next(results) == 1
    results.close()
    results.close()

    assert closed == [True]
    assert list(results) == []
