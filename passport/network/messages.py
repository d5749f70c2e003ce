"""
Messages exchanged between the gateway and platform endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List

from pydantic import BaseModel

from passport.infrastructure.world_state import ReadWriteSet


class Creator(BaseModel):
    """Serialized identity of the proposal submitter."""

    msp_id: str
    id_bytes: str

    model_config = {"frozen": True}


class ProposalPayload(BaseModel):
    """
    Transaction proposal: which function of which contract to run, with what
    arguments, on whose behalf.
    """

    tx_id: str
    channel_id: str
    chaincode: str
    function: str
    args: List[str]
    timestamp: datetime
    nonce: str
    creator: Creator

    model_config = {"frozen": True}

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")


@dataclass(frozen=True)
class SignedProposal:
    proposal_bytes: bytes
    signature: bytes


@dataclass(frozen=True)
class ProposalResponse:
    """Endorsement result: the contract's return payload and its read/write set."""

    proposal: ProposalPayload
    payload: bytes
    rwset: ReadWriteSet
    endorser: str


@dataclass(frozen=True)
class Envelope:
    """Endorsed transaction handed to the orderer."""

    response: ProposalResponse

    @property
    def tx_id(self) -> str:
        return self.response.proposal.tx_id


__all__ = ["Creator", "ProposalPayload", "SignedProposal", "ProposalResponse", "Envelope"]
