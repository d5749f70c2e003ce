"""
Local peer: authenticates proposals, runs contracts, commits ordered transactions.

Each contract is deployed on a channel under a name, with its own world state.
Evaluation and endorsement both simulate the transaction; only endorsement
returns the read/write set for ordering. Commit applies an ordered envelope
to the deployment's world state, which re-validates the read versions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from pydantic import ValidationError

from passport.contract.abstract import Contract
from passport.contract.stub import TransactionContext
from passport.domain.errors import ContractError
from passport.infrastructure.world_state import ReadWriteSet, ValidationCode, WorldState
from passport.network.errors import PlatformError, StatusCode
from passport.network.messages import Envelope, ProposalPayload, ProposalResponse, SignedProposal
from passport.network.msp import transaction_id, verify_signature
from passport.network.simulator import TxSimulator
from passport.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Deployment:
    contract: Contract
    state: WorldState


class Peer:
    """
    Parameters
    ----------
    address : str
        Endpoint reported in error details.
    msp_id : str
        Organization this peer belongs to.
    trusted_msp_ids : iterable[str] | None
        Organizations allowed to submit proposals; defaults to the peer's own.
    """

    def __init__(
        self,
        address: str,
        msp_id: str,
        trusted_msp_ids: Optional[Iterable[str]] = None,
    ) -> None:
        self.address = address
        self.msp_id = msp_id
        self.trusted_msp_ids = frozenset(trusted_msp_ids or (msp_id,))
        self._deployments: Dict[Tuple[str, str], Deployment] = {}

    def deploy(
        self, channel: str, contract: Contract, state: WorldState, name: Optional[str] = None
    ) -> None:
        chaincode = name or contract.name
        self._deployments[(channel, chaincode)] = Deployment(contract=contract, state=state)
        log.info(
            f"Deployed contract {chaincode} on channel {channel}",
            extra={"channel": channel, "chaincode": chaincode, "peer": self.address},
        )

    def _error(self, code: StatusCode, message: str) -> PlatformError:
        return PlatformError(code, message, address=self.address, msp_id=self.msp_id)

    def _deployment(self, channel: str, chaincode: str) -> Deployment:
        deployment = self._deployments.get((channel, chaincode))
        if deployment is None:
            raise self._error(
                StatusCode.NOT_FOUND, f"chaincode {chaincode} not found on channel {channel}"
            )
        return deployment

    def _authenticate(self, signed: SignedProposal) -> ProposalPayload:
        try:
            proposal = ProposalPayload.model_validate_json(signed.proposal_bytes)
        except ValidationError as exc:
            raise self._error(StatusCode.INVALID_ARGUMENT, "malformed proposal") from exc

        creator = proposal.creator
        if creator.msp_id not in self.trusted_msp_ids:
            raise self._error(
                StatusCode.PERMISSION_DENIED,
                f"access denied: creator MSP {creator.msp_id} is not trusted",
            )
        id_bytes = creator.id_bytes.encode("utf-8")
        try:
            verified = verify_signature(id_bytes, signed.signature, signed.proposal_bytes)
        except ValueError as exc:
            raise self._error(
                StatusCode.PERMISSION_DENIED, "access denied: creator certificate is invalid"
            ) from exc
        if not verified:
            raise self._error(
                StatusCode.PERMISSION_DENIED, "access denied: proposal signature is invalid"
            )
        try:
            nonce = bytes.fromhex(proposal.nonce)
        except ValueError as exc:
            raise self._error(StatusCode.INVALID_ARGUMENT, "malformed proposal nonce") from exc
        if transaction_id(nonce, id_bytes) != proposal.tx_id:
            raise self._error(StatusCode.INVALID_ARGUMENT, "incorrect transaction id")
        return proposal

    def _check_evaluable(self, contract: Contract, function: str) -> None:
        try:
            info = contract.describe(function)
        except ContractError as exc:
            raise self._error(StatusCode.INVALID_ARGUMENT, exc.message) from exc
        if info.submit:
            raise self._error(
                StatusCode.FAILED_PRECONDITION,
                f"transaction {function} updates the ledger and must be submitted",
            )

    def _simulate(
        self, proposal: ProposalPayload, evaluate: bool = False
    ) -> Tuple[bytes, ReadWriteSet]:
        deployment = self._deployment(proposal.channel_id, proposal.chaincode)
        if evaluate:
            self._check_evaluable(deployment.contract, proposal.function)
        simulator = TxSimulator(
            deployment.state,
            tx_id=proposal.tx_id,
            tx_timestamp=proposal.timestamp,
            channel_id=proposal.channel_id,
        )
        ctx = TransactionContext(stub=simulator, client_msp_id=proposal.creator.msp_id)
        try:
            payload = deployment.contract.invoke(ctx, proposal.function, proposal.args)
        except ContractError as exc:
            log.info(
                f"Chaincode {proposal.function} failed: {exc.message}",
                extra={"tx_id": proposal.tx_id, "error_kind": exc.kind},
            )
            raise self._error(
                StatusCode.UNKNOWN, f"chaincode response 500, {exc.message}"
            ) from exc
        except Exception as exc:  # noqa: BLE001 - world-state faults are reported by the peer
            log.exception(
                f"Chaincode {proposal.function} aborted", extra={"tx_id": proposal.tx_id}
            )
            raise self._error(
                StatusCode.UNKNOWN, f"error executing chaincode {proposal.function}: {exc}"
            ) from exc
        return payload, simulator.rwset

    def evaluate(self, signed: SignedProposal) -> bytes:
        proposal = self._authenticate(signed)
        payload, _ = self._simulate(proposal, evaluate=True)
        return payload

    def endorse(self, signed: SignedProposal) -> ProposalResponse:
        proposal = self._authenticate(signed)
        payload, rwset = self._simulate(proposal)
        log.debug(
            f"Endorsed {proposal.function}",
            extra={"tx_id": proposal.tx_id, "writes": len(rwset.writes)},
        )
        return ProposalResponse(
            proposal=proposal, payload=payload, rwset=rwset, endorser=self.address
        )

    def commit(self, envelope: Envelope) -> ValidationCode:
        proposal = envelope.response.proposal
        deployment = self._deployments.get((proposal.channel_id, proposal.chaincode))
        if deployment is None:
            return ValidationCode.BAD_PAYLOAD
        code = deployment.state.commit(proposal.tx_id, proposal.timestamp, envelope.response.rwset)
        log.info(
            f"Committed transaction {proposal.tx_id} with status {code.name}",
            extra={"tx_id": proposal.tx_id, "function": proposal.function, "code": int(code)},
        )
        return code

    def close(self) -> None:
        for deployment in self._deployments.values():
            deployment.state.close()
        self._deployments.clear()


__all__ = ["Peer", "Deployment"]
