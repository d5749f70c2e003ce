"""
Contract package for the passport ledger.

Re-exports the contract base, the stub interface contracts program against,
and the concrete person contract.
"""

from passport.contract.abstract import Contract, TransactionInfo, transaction
from passport.contract.person import DEFAULT_PERSONS, PersonContract
from passport.contract.stub import ChaincodeStub, TransactionContext

__all__ = [
    "Contract",
    "TransactionInfo",
    "transaction",
    "ChaincodeStub",
    "TransactionContext",
    "PersonContract",
    "DEFAULT_PERSONS",
]
