"""
Error taxonomy raised by the record contract.

Any of these aborts the running transaction. The simulator discards the
buffered write set, so a failed invocation never mutates the world state.
"""

from __future__ import annotations


class ContractError(Exception):
    """Base class for failures raised inside contract code."""

    kind: str = "ContractError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AlreadyExists(ContractError):
    kind = "AlreadyExists"

    def __init__(self, person_id: str) -> None:
        super().__init__(f"the person {person_id} already exists")
        self.person_id = person_id


class NotFound(ContractError):
    kind = "NotFound"

    def __init__(self, person_id: str) -> None:
        super().__init__(f"the person {person_id} does not exist")
        self.person_id = person_id


class SerializationFault(ContractError):
    """Stored or returned bytes do not decode to the expected shape."""

    kind = "SerializationFault"


class InvalidArgument(ContractError):
    """Unknown transaction, wrong arity, or an argument that fails to parse."""

    kind = "InvalidArgument"


__all__ = [
    "ContractError",
    "AlreadyExists",
    "NotFound",
    "SerializationFault",
    "InvalidArgument",
]
