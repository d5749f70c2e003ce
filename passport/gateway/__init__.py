"""
Gateway client package for the passport ledger.

Exports the gateway session objects, the failure taxonomy, identity helpers
and the typed person client.
"""

from passport.gateway.client import (
    Contract,
    Gateway,
    Network,
    Proposal,
    Status,
    SubmittedTransaction,
    Transaction,
)
from passport.gateway.errors import (
    CommitError,
    CommitStatusError,
    EndorseError,
    ErrorDetail,
    GatewayError,
    SubmitError,
)
from passport.gateway.identity import Identity, Signer, ephemeral_identity, resolve_identity
from passport.gateway.persons import PersonClient
from passport.gateway.session import open_gateway, open_person_client

__all__ = [
    "Gateway",
    "Network",
    "Contract",
    "Proposal",
    "Transaction",
    "SubmittedTransaction",
    "Status",
    "GatewayError",
    "EndorseError",
    "SubmitError",
    "CommitStatusError",
    "CommitError",
    "ErrorDetail",
    "Identity",
    "Signer",
    "ephemeral_identity",
    "resolve_identity",
    "PersonClient",
    "open_gateway",
    "open_person_client",
]
