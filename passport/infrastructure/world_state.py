"""
Versioned key-value world state with an append-only per-key history.

This is the storage side of the ledger platform: the contract never talks to
it directly, only through a transaction simulator (see `passport.network`).
Backends implement the `WorldState` protocol; `MemoryWorldState` lives here
and `PostgresWorldState` in `passport.infrastructure.postgres_state`.
"""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import (
    Callable,
    Dict,
    Generic,
    Iterator,
    List,
    Optional,
    Protocol,
    TypeVar,
    runtime_checkable,
)

from passport.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


class ValidationCode(enum.IntEnum):
    """Commit outcome of a transaction (numbering follows Fabric's TxValidationCode)."""

    VALID = 0
    BAD_PAYLOAD = 2
    MVCC_READ_CONFLICT = 11
    INVALID_OTHER_REASON = 255


@dataclass(frozen=True)
class VersionedValue:
    value: bytes
    version: int


@dataclass(frozen=True)
class KV:
    key: str
    value: bytes


@dataclass(frozen=True)
class KeyModification:
    """One entry of a key's change log; `value` is None for deletions."""

    tx_id: str
    timestamp: datetime
    value: Optional[bytes]
    is_delete: bool


@dataclass(frozen=True)
class KVWrite:
    key: str
    value: Optional[bytes]
    is_delete: bool = False


@dataclass
class ReadWriteSet:
    """
    Result of simulating a transaction.

    `reads` maps every key read to the version observed (None when absent);
    `writes` keeps the last write per key in first-write order.
    """

    reads: Dict[str, Optional[int]] = field(default_factory=dict)
    writes: Dict[str, KVWrite] = field(default_factory=dict)

    @property
    def is_read_only(self) -> bool:
        return not self.writes


class ResultsIterator(Generic[T]):
    """
    Closeable iterator over a range or history scan.

    Backends may hold cursors or connections while the iterator is open, so
    callers should use it as a context manager. `close()` is idempotent.
    """

    def __init__(self, rows: Iterator[T], on_close: Optional[Callable[[], None]] = None) -> None:
        self._rows = rows
        self._on_close = on_close
        self.closed = False

    def __iter__(self) -> "ResultsIterator[T]":
        return self

    def __next__(self) -> T:
        if self.closed:
            raise StopIteration
        return next(self._rows)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close()

    def __enter__(self) -> "ResultsIterator[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@runtime_checkable
class WorldState(Protocol):
    """
    Storage contract shared by all world-state backends.

    `commit` is the only mutating call. It must validate the read versions
    and apply the writes atomically, and must append one history entry per
    written key.
    """

    def get_state(self, key: str) -> Optional[VersionedValue]:
        ...

    def get_state_by_range(self, start_key: str, end_key: str) -> ResultsIterator[KV]:
        ...

    def get_history_for_key(self, key: str) -> ResultsIterator[KeyModification]:
        ...

    def commit(self, tx_id: str, timestamp: datetime, rwset: ReadWriteSet) -> ValidationCode:
        ...

    def close(self) -> None:
        ...


def in_range(key: str, start_key: str, end_key: str) -> bool:
    """Half-open range check; empty bounds are unbounded."""
    if start_key and key < start_key:
        return False
    if end_key and key >= end_key:
        return False
    return True


class MemoryWorldState:
    """
    In-process world state guarded by a single lock.

    Range scans iterate a snapshot taken when the scan opens, in lexical key
    order. Versions are a monotonically increasing commit counter.
    """

    def __init__(self, namespace: str = "passport") -> None:
        self.namespace = namespace
        self._lock = threading.RLock()
        self._state: Dict[str, VersionedValue] = {}
        self._history: Dict[str, List[KeyModification]] = {}
        self._version = 0

    def get_state(self, key: str) -> Optional[VersionedValue]:
        with self._lock:
            return self._state.get(key)

    def get_state_by_range(self, start_key: str, end_key: str) -> ResultsIterator[KV]:
        with self._lock:
            snapshot = [
                KV(key=key, value=self._state[key].value)
                for key in sorted(self._state)
                if in_range(key, start_key, end_key)
            ]
        return ResultsIterator(iter(snapshot))

    def get_history_for_key(self, key: str) -> ResultsIterator[KeyModification]:
        with self._lock:
            snapshot = list(self._history.get(key, ()))
        return ResultsIterator(iter(snapshot))

    def commit(self, tx_id: str, timestamp: datetime, rwset: ReadWriteSet) -> ValidationCode:
        with self._lock:
            for key, version in rwset.reads.items():
                current = self._state.get(key)
                if (current.version if current else None) != version:
                    log.info(
                        f"MVCC conflict on key {key}",
                        extra={"tx_id": tx_id, "key": key, "namespace": self.namespace},
                    )
                    return ValidationCode.MVCC_READ_CONFLICT

            if not rwset.writes:
                return ValidationCode.VALID

            self._version += 1
            for write in rwset.writes.values():
                if write.is_delete:
                    self._state.pop(write.key, None)
                else:
                    self._state[write.key] = VersionedValue(value=write.value, version=self._version)
                self._history.setdefault(write.key, []).append(
                    KeyModification(
                        tx_id=tx_id,
                        timestamp=timestamp,
                        value=None if write.is_delete else write.value,
                        is_delete=write.is_delete,
                    )
                )
        return ValidationCode.VALID

    def close(self) -> None:
        """Nothing to release; present for protocol parity with durable backends."""


__all__ = [
    "ValidationCode",
    "VersionedValue",
    "KV",
    "KeyModification",
    "KVWrite",
    "ReadWriteSet",
    "ResultsIterator",
    "WorldState",
    "MemoryWorldState",
    "in_range",
]
