"""
Transaction simulator: the stub handed to contract code during execution.

Reads go to committed state and record the version observed; writes are
buffered in a read/write set and reach the world state only if the
transaction is later ordered and validated. Abandoning a simulator therefore
discards every write, which is what makes failed transactions side-effect free.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from passport.domain.errors import InvalidArgument
from passport.infrastructure.world_state import (
    KV,
    KeyModification,
    KVWrite,
    ReadWriteSet,
    ResultsIterator,
    WorldState,
)


class TxSimulator:
    def __init__(
        self,
        state: WorldState,
        tx_id: str,
        tx_timestamp: datetime,
        channel_id: str,
    ) -> None:
        self.state = state
        self.tx_id = tx_id
        self.tx_timestamp = tx_timestamp
        self.channel_id = channel_id
        self.rwset = ReadWriteSet()

    @staticmethod
    def _check_key(key: str) -> None:
        if not key:
            raise InvalidArgument("empty key not supported")

    def get_state(self, key: str) -> Optional[bytes]:
        current = self.state.get_state(key)
        self.rwset.reads.setdefault(key, current.version if current else None)
        return current.value if current else None

    def put_state(self, key: str, value: bytes) -> None:
        self._check_key(key)
        self.rwset.writes[key] = KVWrite(key=key, value=value)

    def del_state(self, key: str) -> None:
        self._check_key(key)
        self.rwset.writes[key] = KVWrite(key=key, value=None, is_delete=True)

    # Range and history scans are not recorded in the read set.
    def get_state_by_range(self, start_key: str, end_key: str) -> ResultsIterator[KV]:
        return self.state.get_state_by_range(start_key, end_key)

    def get_history_for_key(self, key: str) -> ResultsIterator[KeyModification]:
        return self.state.get_history_for_key(key)


__all__ = ["TxSimulator"]
