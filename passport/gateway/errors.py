"""
Failure taxonomy surfaced by the gateway client.

Every error carries a status `code` and per-endpoint `details`. Evaluate
failures raise the plain `GatewayError`; the submit flow raises one subclass
per phase so callers can tell where a transaction stopped. None of these is
retried by the client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from passport.infrastructure.world_state import ValidationCode
from passport.network.errors import PlatformError, StatusCode


@dataclass(frozen=True)
class ErrorDetail:
    """Error reported by one endpoint (peer or orderer) behind the gateway."""

    address: str
    msp_id: str
    message: str


def detail_from(error: PlatformError) -> ErrorDetail:
    return ErrorDetail(address=error.address, msp_id=error.msp_id, message=error.message)


class GatewayError(Exception):
    def __init__(
        self,
        message: str,
        code: int = StatusCode.UNKNOWN,
        details: Sequence[ErrorDetail] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details: List[ErrorDetail] = list(details)


class _TransactionError(GatewayError):
    def __init__(
        self,
        message: str,
        transaction_id: str,
        code: int = StatusCode.UNKNOWN,
        details: Sequence[ErrorDetail] = (),
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.transaction_id = transaction_id


class EndorseError(_TransactionError):
    """A peer refused to endorse, the contract failed, or the endorse deadline expired."""


class SubmitError(_TransactionError):
    """The orderer rejected the transaction or could not be reached in time."""


class CommitStatusError(_TransactionError):
    """Obtaining the commit status failed."""

    def is_timeout(self) -> bool:
        return self.code == StatusCode.DEADLINE_EXCEEDED


class CommitError(_TransactionError):
    """The transaction was ordered but invalidated at commit; `code` is its ValidationCode."""

    def __init__(self, transaction_id: str, code: ValidationCode) -> None:
        super().__init__(
            f"transaction {transaction_id} failed to commit with status code "
            f"{int(code)} ({code.name})",
            transaction_id=transaction_id,
            code=code,
        )


__all__ = [
    "ErrorDetail",
    "detail_from",
    "GatewayError",
    "EndorseError",
    "SubmitError",
    "CommitStatusError",
    "CommitError",
]
