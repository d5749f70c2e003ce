"""
Status codes and errors raised by platform endpoints (peer, orderer).
"""

from __future__ import annotations

import enum


class StatusCode(enum.IntEnum):
    """RPC status codes (numbering follows gRPC)."""

    OK = 0
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    PERMISSION_DENIED = 7
    FAILED_PRECONDITION = 9
    ABORTED = 10
    UNAVAILABLE = 14


class PlatformError(Exception):
    """
    Failure reported by a platform endpoint.

    `address` and `msp_id` identify the endpoint that produced the error.
    """

    def __init__(self, code: StatusCode, message: str, address: str = "", msp_id: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.address = address
        self.msp_id = msp_id


__all__ = ["StatusCode", "PlatformError"]
