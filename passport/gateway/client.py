"""
Gateway client: evaluate and submit named transactions through a connection.

Two call kinds with distinct consistency and timing contracts:

- Evaluate: single-peer simulation, no ordering, no ledger write; bounded by
  the evaluate timeout.
- Submit: endorse (endorse timeout) -> hand to the orderer (submit timeout)
  -> wait for the commit status (commit-status timeout). The endorsed result
  is returned only once the transaction committed as VALID.

Usage:
    with Gateway.connect(identity, signer, connection) as gateway:
        contract = gateway.get_network("mychannel").get_contract("passport")
        contract.submit_transaction("CreatePerson", "person9", ...)
        raw = contract.evaluate_transaction("ReadPerson", "person9")

Every failure is raised to the caller as a `GatewayError` subclass; nothing
is retried here.
"""

from __future__ import annotations

import secrets
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol, Sequence, TypeVar

from passport.gateway.errors import (
    CommitError,
    CommitStatusError,
    EndorseError,
    ErrorDetail,
    GatewayError,
    SubmitError,
    detail_from,
)
from passport.gateway.identity import Identity, Signer
from passport.infrastructure.world_state import ValidationCode
from passport.network.errors import PlatformError, StatusCode
from passport.network.messages import (
    Creator,
    Envelope,
    ProposalPayload,
    ProposalResponse,
    SignedProposal,
)
from passport.network.msp import transaction_id
from passport.utils.logging import get_logger

log = get_logger(__name__)

R = TypeVar("R")

DEFAULT_EVALUATE_TIMEOUT = 5.0
DEFAULT_ENDORSE_TIMEOUT = 15.0
DEFAULT_SUBMIT_TIMEOUT = 5.0
DEFAULT_COMMIT_STATUS_TIMEOUT = 60.0


class Connection(Protocol):
    """Transport to the platform endpoints the gateway talks to."""

    address: str
    msp_id: str

    def evaluate(self, signed: SignedProposal) -> bytes:
        ...

    def endorse(self, signed: SignedProposal) -> ProposalResponse:
        ...

    def submit(self, envelope: Envelope, timeout: Optional[float] = None) -> None:
        ...

    def commit_status(self, tx_id: str) -> "Future[ValidationCode]":
        ...


@dataclass(frozen=True)
class Status:
    transaction_id: str
    code: ValidationCode

    @property
    def successful(self) -> bool:
        return self.code == ValidationCode.VALID


class Gateway:
    """
    Long-lived client session bound to one identity and one connection.

    The gateway does not own the connection: closing the gateway leaves the
    connection open for the caller to close.
    """

    def __init__(
        self,
        identity: Identity,
        signer: Signer,
        connection: Connection,
        evaluate_timeout: float = DEFAULT_EVALUATE_TIMEOUT,
        endorse_timeout: float = DEFAULT_ENDORSE_TIMEOUT,
        submit_timeout: float = DEFAULT_SUBMIT_TIMEOUT,
        commit_status_timeout: float = DEFAULT_COMMIT_STATUS_TIMEOUT,
    ) -> None:
        self.identity = identity
        self.signer = signer
        self.connection = connection
        self.evaluate_timeout = evaluate_timeout
        self.endorse_timeout = endorse_timeout
        self.submit_timeout = submit_timeout
        self.commit_status_timeout = commit_status_timeout
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="gateway")
        self._closed = False

    @classmethod
    def connect(
        cls,
        identity: Identity,
        signer: Signer,
        connection: Connection,
        *,
        evaluate_timeout: float = DEFAULT_EVALUATE_TIMEOUT,
        endorse_timeout: float = DEFAULT_ENDORSE_TIMEOUT,
        submit_timeout: float = DEFAULT_SUBMIT_TIMEOUT,
        commit_status_timeout: float = DEFAULT_COMMIT_STATUS_TIMEOUT,
    ) -> "Gateway":
        log.info(
            "Gateway connected",
            extra={"msp_id": identity.msp_id, "endpoint": connection.address},
        )
        return cls(
            identity,
            signer,
            connection,
            evaluate_timeout=evaluate_timeout,
            endorse_timeout=endorse_timeout,
            submit_timeout=submit_timeout,
            commit_status_timeout=commit_status_timeout,
        )

    def get_network(self, name: str) -> "Network":
        return Network(self, name)

    def _call(self, timeout: float, fn: Callable[..., R], *args: Any) -> R:
        """Run a connection call under a deadline; raises FutureTimeoutError on expiry."""
        if self._closed:
            raise GatewayError("gateway is closed", code=StatusCode.UNAVAILABLE)
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            raise

    def _deadline_detail(self, what: str) -> ErrorDetail:
        return self._detail(f"{what}: deadline exceeded")

    def _detail(self, message: str) -> ErrorDetail:
        return ErrorDetail(
            address=self.connection.address, msp_id=self.connection.msp_id, message=message
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        log.info("Gateway closed")

    def __enter__(self) -> "Gateway":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class Network:
    def __init__(self, gateway: Gateway, name: str) -> None:
        self.gateway = gateway
        self.name = name

    def get_contract(self, chaincode_name: str) -> "Contract":
        return Contract(self.gateway, self.name, chaincode_name)


def _check_utf8(*values: str) -> None:
    for value in values:
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise GatewayError(
                f"transaction argument {value!r} is not valid UTF-8",
                code=StatusCode.INVALID_ARGUMENT,
            ) from exc


class Contract:
    """Named contract on a channel; entry point for transaction calls."""

    def __init__(self, gateway: Gateway, channel: str, chaincode_name: str) -> None:
        self.gateway = gateway
        self.channel = channel
        self.chaincode_name = chaincode_name

    def new_proposal(self, function: str, args: Sequence[str] = ()) -> "Proposal":
        for arg in args:
            if not isinstance(arg, str):
                raise TypeError(f"transaction arguments must be strings, got {type(arg).__name__}")
        _check_utf8(function, *args)
        identity = self.gateway.identity
        nonce = secrets.token_bytes(24)
        payload = ProposalPayload(
            tx_id=transaction_id(nonce, identity.credentials),
            channel_id=self.channel,
            chaincode=self.chaincode_name,
            function=function,
            args=list(args),
            timestamp=datetime.now(timezone.utc),
            nonce=nonce.hex(),
            creator=Creator(
                msp_id=identity.msp_id, id_bytes=identity.credentials.decode("utf-8")
            ),
        )
        proposal_bytes = payload.to_bytes()
        signed = SignedProposal(
            proposal_bytes=proposal_bytes, signature=self.gateway.signer(proposal_bytes)
        )
        return Proposal(self.gateway, payload, signed)

    def evaluate_transaction(self, function: str, *args: str) -> bytes:
        return self.new_proposal(function, args).evaluate()

    def submit_async(self, function: str, *args: str) -> "SubmittedTransaction":
        """Endorse and hand to the orderer without waiting for commit."""
        return self.new_proposal(function, args).endorse().submit()

    def submit_transaction(self, function: str, *args: str) -> bytes:
        return self.submit_async(function, *args).get_result()


class Proposal:
    def __init__(self, gateway: Gateway, payload: ProposalPayload, signed: SignedProposal) -> None:
        self.gateway = gateway
        self.payload = payload
        self.signed = signed

    @property
    def transaction_id(self) -> str:
        return self.payload.tx_id

    @property
    def function(self) -> str:
        return self.payload.function

    def evaluate(self) -> bytes:
        gateway = self.gateway
        log.debug(
            f"Evaluate {self.function}",
            extra={"tx_id": self.transaction_id, "function": self.function},
        )
        try:
            return gateway._call(
                gateway.evaluate_timeout, gateway.connection.evaluate, self.signed
            )
        except FutureTimeoutError as exc:
            raise GatewayError(
                f"evaluate call for {self.function} timed out",
                code=StatusCode.DEADLINE_EXCEEDED,
                details=[gateway._deadline_detail("evaluate")],
            ) from exc
        except PlatformError as exc:
            raise GatewayError(
                f"evaluate call to endorser returned error: {exc.message}",
                code=exc.code,
                details=[detail_from(exc)],
            ) from exc
        except GatewayError:
            raise
        except Exception as exc:  # noqa: BLE001 - transport faults surface as gateway errors
            raise GatewayError(
                f"evaluate call for {self.function} failed: {exc}",
                details=[gateway._detail(str(exc))],
            ) from exc

    def endorse(self) -> "Transaction":
        gateway = self.gateway
        log.debug(
            f"Endorse {self.function}",
            extra={"tx_id": self.transaction_id, "function": self.function},
        )
        try:
            response = gateway._call(
                gateway.endorse_timeout, gateway.connection.endorse, self.signed
            )
        except FutureTimeoutError as exc:
            raise EndorseError(
                f"endorse call for {self.function} timed out",
                transaction_id=self.transaction_id,
                code=StatusCode.DEADLINE_EXCEEDED,
                details=[gateway._deadline_detail("endorse")],
            ) from exc
        except PlatformError as exc:
            raise EndorseError(
                "failed to endorse transaction, see attached details for more info",
                transaction_id=self.transaction_id,
                code=exc.code,
                details=[detail_from(exc)],
            ) from exc
        except GatewayError:
            raise
        except Exception as exc:  # noqa: BLE001 - transport faults surface as gateway errors
            raise EndorseError(
                f"endorse call for {self.function} failed: {exc}",
                transaction_id=self.transaction_id,
                details=[gateway._detail(str(exc))],
            ) from exc
        return Transaction(gateway, response)


class Transaction:
    """Endorsed transaction, ready to be submitted for ordering."""

    def __init__(self, gateway: Gateway, response: ProposalResponse) -> None:
        self.gateway = gateway
        self.response = response

    @property
    def transaction_id(self) -> str:
        return self.response.proposal.tx_id

    @property
    def result(self) -> bytes:
        return self.response.payload

    def submit(self) -> "SubmittedTransaction":
        gateway = self.gateway
        envelope = Envelope(response=self.response)
        try:
            gateway._call(
                gateway.submit_timeout,
                gateway.connection.submit,
                envelope,
                gateway.submit_timeout,
            )
        except FutureTimeoutError as exc:
            raise SubmitError(
                "submit call timed out",
                transaction_id=self.transaction_id,
                code=StatusCode.DEADLINE_EXCEEDED,
                details=[gateway._deadline_detail("submit")],
            ) from exc
        except PlatformError as exc:
            raise SubmitError(
                f"submit call to orderer returned error: {exc.message}",
                transaction_id=self.transaction_id,
                code=exc.code,
                details=[detail_from(exc)],
            ) from exc
        except GatewayError:
            raise
        except Exception as exc:  # noqa: BLE001 - transport faults surface as gateway errors
            raise SubmitError(
                f"submit call failed: {exc}",
                transaction_id=self.transaction_id,
                details=[gateway._detail(str(exc))],
            ) from exc
        log.debug("Submitted for ordering", extra={"tx_id": self.transaction_id})
        return SubmittedTransaction(gateway, self.transaction_id, self.result)


class SubmittedTransaction:
    def __init__(self, gateway: Gateway, transaction_id: str, result: bytes) -> None:
        self.gateway = gateway
        self.transaction_id = transaction_id
        self.result = result
        self._status: Optional[Status] = None

    def get_status(self) -> Status:
        """Block until the commit status is known or the commit-status timeout expires."""
        if self._status is not None:
            return self._status
        gateway = self.gateway
        tx_id = self.transaction_id
        try:
            future = gateway.connection.commit_status(tx_id)
            code = future.result(timeout=gateway.commit_status_timeout)
        except FutureTimeoutError as exc:
            raise CommitStatusError(
                f"timed out waiting for transaction {tx_id} commit status",
                transaction_id=tx_id,
                code=StatusCode.DEADLINE_EXCEEDED,
                details=[gateway._deadline_detail("commit status")],
            ) from exc
        except PlatformError as exc:
            raise CommitStatusError(
                f"failed to obtain commit status: {exc.message}",
                transaction_id=tx_id,
                code=exc.code,
                details=[detail_from(exc)],
            ) from exc
        except Exception as exc:  # noqa: BLE001 - committer failures surface as status errors
            raise CommitStatusError(
                f"failed to obtain commit status: {exc}",
                transaction_id=tx_id,
                code=StatusCode.UNKNOWN,
            ) from exc
        self._status = Status(transaction_id=tx_id, code=ValidationCode(code))
        log.info(
            f"Transaction {tx_id} committed with status {self._status.code.name}",
            extra={"tx_id": tx_id, "code": int(code)},
        )
        return self._status

    def get_result(self) -> bytes:
        """Return the endorsed result once committed; CommitError if invalidated."""
        status = self.get_status()
        if not status.successful:
            raise CommitError(self.transaction_id, status.code)
        return self.result


__all__ = [
    "Connection",
    "Gateway",
    "Network",
    "Contract",
    "Proposal",
    "Transaction",
    "SubmittedTransaction",
    "Status",
]
