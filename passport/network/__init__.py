"""
Local rendition of the ledger platform.

A peer that authenticates and simulates proposals, a single-writer orderer
that commits endorsed transactions in order, and the in-process connection
the gateway talks to.
"""

from passport.network.errors import PlatformError, StatusCode
from passport.network.local import LocalConnection, open_local_connection
from passport.network.messages import Envelope, ProposalPayload, ProposalResponse, SignedProposal
from passport.network.orderer import Orderer
from passport.network.peer import Peer
from passport.network.simulator import TxSimulator

__all__ = [
    "PlatformError",
    "StatusCode",
    "LocalConnection",
    "open_local_connection",
    "Envelope",
    "ProposalPayload",
    "ProposalResponse",
    "SignedProposal",
    "Orderer",
    "Peer",
    "TxSimulator",
]
