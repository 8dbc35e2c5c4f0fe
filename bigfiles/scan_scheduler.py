"""Background worker for root loads and directory expansions."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue

from .errors import ScanCancelledError
from .size_tree import SizeNode

logger = logging.getLogger(__name__)

ScanFunction = Callable[..., SizeNode]


@dataclass(frozen=True)
class ScanRequest:
    """One scheduled scan job."""

    request_id: int
    location: Path
    parent_path: str
    target_full_path: str | None = None


@dataclass(frozen=True)
class ScanResult:
    """Completed scan job; exactly one of ``node`` and ``error`` is set."""

    request: ScanRequest
    node: SizeNode | None = None
    error: Exception | None = None


class ScanScheduler:
    """Single-threaded latest-request-wins scan scheduler.

    Scheduling a new request replaces any pending one and cancels the one in
    flight. Cancelled scans produce no result.
    """

    def __init__(self, scan: ScanFunction) -> None:
        self._scan = scan
        self._lock = threading.Lock()
        self._pending: ScanRequest | None = None
        self._cancel_event: threading.Event | None = None
        self._running = False
        self._next_request_id = 1
        self._latest_request_id = 0
        self._results: Queue[ScanResult] = Queue()

    @property
    def latest_request_id(self) -> int:
        with self._lock:
            return self._latest_request_id

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._running or self._pending is not None

    def _worker(self) -> None:
        while True:
            with self._lock:
                request = self._pending
                self._pending = None
                if request is None:
                    self._running = False
                    self._cancel_event = None
                    return
                cancel_event = threading.Event()
                self._cancel_event = cancel_event

            try:
                node = self._scan(request.location, request.parent_path, cancel_event=cancel_event)
            except ScanCancelledError:
                logger.debug("scan request %d cancelled", request.request_id)
                continue
            except Exception as exc:
                self._results.put(ScanResult(request=request, error=exc))
                continue
            if cancel_event.is_set():
                continue
            self._results.put(ScanResult(request=request, node=node))

    def schedule(
        self,
        location: Path,
        parent_path: str = "",
        target_full_path: str | None = None,
    ) -> int:
        """Queue a scan, superseding older work, and return its request id."""
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            self._latest_request_id = request_id
            self._pending = ScanRequest(
                request_id=request_id,
                location=Path(location),
                parent_path=parent_path,
                target_full_path=target_full_path,
            )
            if self._cancel_event is not None:
                self._cancel_event.set()
            if self._running:
                return request_id
            self._running = True

        worker = threading.Thread(
            target=self._worker,
            name="bigfiles-scan-scheduler",
            daemon=True,
        )
        worker.start()
        return request_id

    def cancel(self) -> None:
        """Drop pending work and cancel the scan in flight."""
        with self._lock:
            self._pending = None
            self._latest_request_id = self._next_request_id
            if self._cancel_event is not None:
                self._cancel_event.set()

    def drain_results(self) -> list[ScanResult]:
        """Drain all completed scan results."""
        out: list[ScanResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out


__all__ = [
    "ScanRequest",
    "ScanResult",
    "ScanScheduler",
]
