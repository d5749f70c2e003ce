"""
Interface between contract code and the ledger platform.

Contracts receive a `TransactionContext` whose `stub` exposes the platform's
world-state API. Implementations live on the platform side
(`passport.network.simulator.TxSimulator`).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from passport.infrastructure.world_state import KV, KeyModification, ResultsIterator


class ChaincodeStub(Protocol):
    tx_id: str
    tx_timestamp: datetime
    channel_id: str

    def get_state(self, key: str) -> Optional[bytes]:
        """Return the committed value for `key`, or None when absent."""
        ...

    def put_state(self, key: str, value: bytes) -> None:
        ...

    def del_state(self, key: str) -> None:
        ...

    def get_state_by_range(self, start_key: str, end_key: str) -> ResultsIterator[KV]:
        """Half-open scan; empty strings leave that side unbounded."""
        ...

    def get_history_for_key(self, key: str) -> ResultsIterator[KeyModification]:
        """Change log of `key`, oldest first."""
        ...


@dataclass(frozen=True)
class TransactionContext:
    stub: ChaincodeStub
    client_msp_id: str


__all__ = ["ChaincodeStub", "TransactionContext"]
