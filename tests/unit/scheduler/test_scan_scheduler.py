"""Tests for the latest-request-wins background scan scheduler."""

from __future__ import annotations

import threading
import time
import unittest
from pathlib import Path

from bigfiles.errors import RootUnavailableError, ScanCancelledError
from bigfiles.scan_scheduler import ScanScheduler
from bigfiles.size_tree import SizeNode


def _wait_for_results(
    scheduler: ScanScheduler,
    *,
    expected_count: int,
    timeout_seconds: float = 1.0,
) -> list:
    deadline = time.monotonic() + timeout_seconds
    out: list = []
    while time.monotonic() < deadline:
        out.extend(scheduler.drain_results())
        if len(out) >= expected_count:
            break
        time.sleep(0.01)
    return out


def _wait_until_idle(scheduler: ScanScheduler, timeout_seconds: float = 1.0) -> None:
    deadline = time.monotonic() + timeout_seconds
    while scheduler.busy and time.monotonic() < deadline:
        time.sleep(0.01)


def _node(location: Path, parent_path: str) -> SizeNode:
    name = location.name
    full_path = f"{parent_path}/{name}" if parent_path else name
    return SizeNode(name=name, full_path=full_path, location=location, is_dir=True)


class ScanSchedulerTests(unittest.TestCase):
    def test_schedule_scans_in_background(self) -> None:
        calls: list[tuple[Path, str]] = []

        def scan(location: Path, parent_path: str, *, cancel_event: threading.Event) -> SizeNode:
            calls.append((location, parent_path))
            return _node(location, parent_path)

        scheduler = ScanScheduler(scan)
        request_id = scheduler.schedule(Path("/data/photos"), "data", target_full_path="data/photos")

        results = _wait_for_results(scheduler, expected_count=1)
        self.assertEqual(calls, [(Path("/data/photos"), "data")])
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].request.request_id, request_id)
        self.assertEqual(results[0].request.target_full_path, "data/photos")
        self.assertIsNotNone(results[0].node)
        self.assertEqual(results[0].node.full_path, "data/photos")
        self.assertIsNone(results[0].error)

    def test_request_ids_increase_and_track_latest(self) -> None:
        scheduler = ScanScheduler(lambda location, parent_path, *, cancel_event: _node(location, parent_path))

        first = scheduler.schedule(Path("/a"))
        second = scheduler.schedule(Path("/b"))

        self.assertLess(first, second)
        self.assertEqual(scheduler.latest_request_id, second)
        _wait_until_idle(scheduler)

    def test_newer_request_cancels_in_flight_scan(self) -> None:
        first_started = threading.Event()
        seen_cancel = threading.Event()
        calls: list[Path] = []

        def scan(location: Path, parent_path: str, *, cancel_event: threading.Event) -> SizeNode:
            calls.append(location)
            if location == Path("/slow"):
                first_started.set()
                if cancel_event.wait(timeout=1.0):
                    seen_cancel.set()
                    raise ScanCancelledError("cancelled")
            return _node(location, parent_path)

        scheduler = ScanScheduler(scan)
        scheduler.schedule(Path("/slow"))
        self.assertTrue(first_started.wait(timeout=1.0))
        latest = scheduler.schedule(Path("/fast"))

        results = _wait_for_results(scheduler, expected_count=1)
        _wait_until_idle(scheduler)
        results.extend(scheduler.drain_results())

        self.assertTrue(seen_cancel.is_set())
        self.assertEqual([result.request.request_id for result in results], [latest])
        self.assertEqual(calls, [Path("/slow"), Path("/fast")])

    def test_superseded_scan_that_ignores_cancel_is_discarded(self) -> None:
        first_started = threading.Event()
        allow_first_finish = threading.Event()

        def scan(location: Path, parent_path: str, *, cancel_event: threading.Event) -> SizeNode:
            if location == Path("/slow"):
                first_started.set()
                allow_first_finish.wait(timeout=1.0)
            return _node(location, parent_path)

        scheduler = ScanScheduler(scan)
        scheduler.schedule(Path("/slow"))
        self.assertTrue(first_started.wait(timeout=1.0))
        latest = scheduler.schedule(Path("/fast"))
        allow_first_finish.set()

        results = _wait_for_results(scheduler, expected_count=1)
        _wait_until_idle(scheduler)
        results.extend(scheduler.drain_results())

        self.assertEqual([result.request.request_id for result in results], [latest])

    def test_pending_requests_collapse_to_latest(self) -> None:
        first_started = threading.Event()
        allow_first_finish = threading.Event()
        calls: list[Path] = []

        def scan(location: Path, parent_path: str, *, cancel_event: threading.Event) -> SizeNode:
            calls.append(location)
            if location == Path("/first"):
                first_started.set()
                allow_first_finish.wait(timeout=1.0)
            return _node(location, parent_path)

        scheduler = ScanScheduler(scan)
        scheduler.schedule(Path("/first"))
        self.assertTrue(first_started.wait(timeout=1.0))
        scheduler.schedule(Path("/second"))
        scheduler.schedule(Path("/third"))
        allow_first_finish.set()

        _wait_for_results(scheduler, expected_count=1)
        _wait_until_idle(scheduler)

        self.assertEqual(calls, [Path("/first"), Path("/third")])

    def test_scan_errors_are_reported_as_results(self) -> None:
        def scan(location: Path, parent_path: str, *, cancel_event: threading.Event) -> SizeNode:
            raise RootUnavailableError(location, "Permission denied")

        scheduler = ScanScheduler(scan)
        scheduler.schedule(Path("/locked"))

        results = _wait_for_results(scheduler, expected_count=1)
        self.assertEqual(len(results), 1)
        self.assertIsNone(results[0].node)
        self.assertIsInstance(results[0].error, RootUnavailableError)

    def test_cancel_drops_in_flight_result(self) -> None:
        started = threading.Event()
        allow_finish = threading.Event()

        def scan(location: Path, parent_path: str, *, cancel_event: threading.Event) -> SizeNode:
            started.set()
            allow_finish.wait(timeout=1.0)
            return _node(location, parent_path)

        scheduler = ScanScheduler(scan)
        request_id = scheduler.schedule(Path("/data"))
        self.assertTrue(started.wait(timeout=1.0))
        scheduler.cancel()
        allow_finish.set()
        _wait_until_idle(scheduler)

        self.assertEqual(scheduler.drain_results(), [])
        self.assertNotEqual(scheduler.latest_request_id, request_id)
        self.assertFalse(scheduler.busy)


if __name__ == "__main__":
    unittest.main()
