"""
In-process connection to a local peer and orderer.

`open_local_connection` wires the world state selected in settings, a peer
hosting `PersonContract` on the configured channel, and a started orderer
committing through that peer. The connection is long-lived: create it once
at startup and close it once at exit.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Optional

from passport.config import Settings, get_settings
from passport.contract.person import PersonContract
from passport.infrastructure import create_world_state
from passport.infrastructure.world_state import ValidationCode
from passport.network.messages import Envelope, ProposalResponse, SignedProposal
from passport.network.orderer import Orderer
from passport.network.peer import Peer


class LocalConnection:
    def __init__(self, peer: Peer, orderer: Orderer) -> None:
        self.peer = peer
        self.orderer = orderer

    @property
    def address(self) -> str:
        return self.peer.address

    @property
    def msp_id(self) -> str:
        return self.peer.msp_id

    def evaluate(self, signed: SignedProposal) -> bytes:
        return self.peer.evaluate(signed)

    def endorse(self, signed: SignedProposal) -> ProposalResponse:
        return self.peer.endorse(signed)

    def submit(self, envelope: Envelope, timeout: Optional[float] = None) -> None:
        self.orderer.broadcast(envelope, timeout=timeout)

    def commit_status(self, tx_id: str) -> "Future[ValidationCode]":
        return self.orderer.commit_status(tx_id)

    def close(self) -> None:
        self.orderer.close()
        self.peer.close()

    def __enter__(self) -> "LocalConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_local_connection(settings: Optional[Settings] = None) -> LocalConnection:
    settings = settings or get_settings()
    state = create_world_state(namespace=settings.chaincode_name, settings=settings)
    peer = Peer(address=settings.peer_endpoint, msp_id=settings.msp_id)
    peer.deploy(settings.channel_name, PersonContract(), state, name=settings.chaincode_name)
    orderer = Orderer(peer.commit, queue_size=settings.orderer_queue_size)
    orderer.start()
    return LocalConnection(peer, orderer)


__all__ = ["LocalConnection", "open_local_connection"]
