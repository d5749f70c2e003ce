"""
Domain package for the passport ledger.

Exports the record models, their wire codec, and the contract error taxonomy.
Keep this package focused on data definitions and validation concerns.
"""

from passport.domain.errors import (
    AlreadyExists,
    ContractError,
    InvalidArgument,
    NotFound,
    SerializationFault,
)
from passport.domain.models import HistoryEntry, Person

__all__ = [
    "Person",
    "HistoryEntry",
    "ContractError",
    "AlreadyExists",
    "NotFound",
    "SerializationFault",
    "InvalidArgument",
]
