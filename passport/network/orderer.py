"""
Single-writer orderer.

Endorsed envelopes are queued and committed one at a time by a dedicated
worker thread, in arrival order. Each envelope gets a Future that resolves to
its ValidationCode once committed; clients poll it for commit status. Only the
most recent settled statuses are kept, which also bounds duplicate detection.
"""

from __future__ import annotations

import queue
import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Callable, Optional

from passport.infrastructure.world_state import ValidationCode
from passport.network.errors import PlatformError, StatusCode
from passport.network.messages import Envelope
from passport.utils.logging import get_logger

log = get_logger(__name__)

Committer = Callable[[Envelope], ValidationCode]


class Orderer:
    def __init__(
        self,
        committer: Committer,
        queue_size: int = 100,
        address: str = "orderer",
        history_size: int = 1000,
        close_timeout: float = 5.0,
    ) -> None:
        self.committer = committer
        self.address = address
        self.history_size = history_size
        self.close_timeout = close_timeout
        self._queue: "queue.Queue[Optional[Envelope]]" = queue.Queue(maxsize=queue_size)
        self._statuses: "OrderedDict[str, Future[ValidationCode]]" = OrderedDict()
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def _error(self, code: StatusCode, message: str) -> PlatformError:
        return PlatformError(code, message, address=self.address)

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._worker = threading.Thread(target=self._run, name="orderer", daemon=True)
            self._worker.start()
        log.info("Orderer started", extra={"orderer": self.address})

    def broadcast(self, envelope: Envelope, timeout: Optional[float] = None) -> None:
        """
        Queue an envelope for commit.

        Raises
        ------
        PlatformError
            UNAVAILABLE when stopped or when the queue stays full for `timeout`
            seconds; INVALID_ARGUMENT for a transaction id seen before.
        """
        tx_id = envelope.tx_id
        with self._lock:
            if not self._running:
                raise self._error(StatusCode.UNAVAILABLE, "orderer is not running")
            if tx_id in self._statuses:
                raise self._error(StatusCode.INVALID_ARGUMENT, f"duplicate transaction id {tx_id}")
            self._statuses[tx_id] = Future()
        try:
            self._queue.put(envelope, timeout=timeout)
        except queue.Full as exc:
            with self._lock:
                self._statuses.pop(tx_id, None)
            raise self._error(StatusCode.UNAVAILABLE, "orderer queue is full") from exc
        log.debug("Envelope queued", extra={"tx_id": tx_id})

    def commit_status(self, tx_id: str) -> "Future[ValidationCode]":
        with self._lock:
            status = self._statuses.get(tx_id)
        if status is None:
            raise self._error(StatusCode.NOT_FOUND, f"transaction {tx_id} was never submitted")
        return status

    def _run(self) -> None:
        while True:
            envelope = self._queue.get()
            if envelope is None:
                break
            with self._lock:
                status = self._statuses.get(envelope.tx_id)
            if status is None or status.done():
                continue
            try:
                code = self.committer(envelope)
            except Exception as exc:  # noqa: BLE001 - delivered to the waiting client
                log.exception("Commit failed", extra={"tx_id": envelope.tx_id})
                self._settle(status, exc=exc)
            else:
                self._settle(status, code=code)
            self._evict()

    def _settle(
        self,
        status: "Future[ValidationCode]",
        code: Optional[ValidationCode] = None,
        exc: Optional[BaseException] = None,
    ) -> None:
        # close() may already have failed a commit that outlived its join timeout.
        with self._lock:
            if status.done():
                return
            if exc is not None:
                status.set_exception(exc)
            else:
                status.set_result(code)

    def _evict(self) -> None:
        with self._lock:
            while len(self._statuses) > self.history_size:
                oldest = next(iter(self._statuses.values()))
                if not oldest.done():
                    break
                self._statuses.popitem(last=False)

    def close(self) -> None:
        """Stop the worker after it drains queued envelopes; fail anything left pending."""
        with self._lock:
            if not self._running:
                return
            self._running = False
        self._queue.put(None)
        if self._worker is not None:
            self._worker.join(timeout=self.close_timeout)
        with self._lock:
            for status in self._statuses.values():
                if not status.done():
                    status.set_exception(self._error(StatusCode.UNAVAILABLE, "orderer stopped"))
        log.info("Orderer stopped", extra={"orderer": self.address})


__all__ = ["Orderer", "Committer"]
