"""Concurrent filesystem scanning into size-aggregated trees.

Each directory is enumerated as one job on a bounded thread pool. Jobs never
wait on each other: the coordinating thread submits child directories as
their parents finish, then aggregates sizes bottom-up once every descendant
job has completed. Failures below the scan root drop the failing entry.
"""

from __future__ import annotations

import logging
import os
import stat
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import RootUnavailableError, ScanCancelledError
from .types import SizeNode, join_full_path, sort_children

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = min(32, (os.cpu_count() or 1) + 4)
CANCEL_POLL_SECONDS = 0.05


@dataclass(frozen=True)
class ScanOptions:
    """Tunables for one scanner instance."""

    max_workers: int = DEFAULT_MAX_WORKERS
    show_hidden: bool = True
    max_depth: int | None = None


@dataclass(frozen=True)
class DirectoryChild:
    """One directory entry plus the metadata the scanner needs."""

    name: str
    path: Path
    is_dir: bool
    file_size: int


def list_directory_children(
    directory: Path,
    show_hidden: bool = True,
) -> tuple[list[DirectoryChild], Exception | None]:
    """List entries of ``directory`` with type and size, never following links.

    Returns ``(children, scan_error)``. ``scan_error`` is set when the
    directory itself cannot be enumerated. Entries that vanish or cannot be
    stat'ed while listing are left out.
    """
    children: list[DirectoryChild] = []
    try:
        with os.scandir(directory) as entries:
            for child in entries:
                name = child.name
                if not show_hidden and name.startswith("."):
                    continue
                try:
                    is_dir = child.is_dir(follow_symlinks=False)
                    file_size = 0 if is_dir else int(child.stat(follow_symlinks=False).st_size)
                except OSError as exc:
                    logger.debug("skipping %s: %s", child.path, exc)
                    continue
                children.append(
                    DirectoryChild(
                        name=name,
                        path=Path(child.path),
                        is_dir=is_dir,
                        file_size=file_size,
                    )
                )
    except OSError as exc:
        return [], exc
    return children, None


@dataclass(eq=False)
class _DirectoryJob:
    """Mutable bookkeeping for one directory while its subtree is in flight."""

    name: str
    full_path: str
    location: Path
    depth: int
    files: list[SizeNode] = field(default_factory=list)
    subdirs: list["_DirectoryJob"] = field(default_factory=list)
    failed: bool = False
    node: SizeNode | None = None


class Scanner:
    """Builds ``SizeNode`` trees from the host filesystem."""

    def __init__(self, options: ScanOptions | None = None) -> None:
        self.options = options or ScanOptions()

    def scan(
        self,
        location: Path | str,
        parent_path: str = "",
        *,
        cancel_event: threading.Event | None = None,
    ) -> SizeNode:
        """Scan ``location`` and return its node with aggregated size.

        Raises ``RootUnavailableError`` when ``location`` cannot be stat'ed
        or, for directories, enumerated. Raises ``ScanCancelledError`` when
        ``cancel_event`` is set before the scan finishes.
        """
        location = Path(location)
        try:
            location = location.resolve()
            root_stat = location.stat()
        except OSError as exc:
            raise RootUnavailableError(location, exc.strerror or str(exc)) from exc

        name = location.name or str(location)
        full_path = join_full_path(parent_path, name)
        if not stat.S_ISDIR(root_stat.st_mode):
            return SizeNode(
                name=name,
                full_path=full_path,
                location=location,
                size=int(root_stat.st_size),
            )

        entries, scan_error = list_directory_children(location, self.options.show_hidden)
        if scan_error is not None:
            reason = getattr(scan_error, "strerror", None) or str(scan_error)
            raise RootUnavailableError(location, reason) from scan_error

        started = time.perf_counter()
        root_job = _DirectoryJob(name=name, full_path=full_path, location=location, depth=0)
        discovered = self._run_jobs(root_job, entries, cancel_event)
        root_node = self._aggregate(discovered)
        logger.info(
            "scanned %s: %d directories, %d bytes in %.2fs",
            location,
            len(discovered),
            root_node.size,
            time.perf_counter() - started,
        )
        return root_node

    def _within_depth(self, depth: int) -> bool:
        max_depth = self.options.max_depth
        return max_depth is None or depth <= max_depth

    def _absorb(self, job: _DirectoryJob, entries: list[DirectoryChild]) -> None:
        """Record listed entries on ``job``: files as leaves, dirs as new jobs."""
        for child in entries:
            child_full_path = join_full_path(job.full_path, child.name)
            if child.is_dir:
                job.subdirs.append(
                    _DirectoryJob(
                        name=child.name,
                        full_path=child_full_path,
                        location=child.path,
                        depth=job.depth + 1,
                    )
                )
                continue
            job.files.append(
                SizeNode(
                    name=child.name,
                    full_path=child_full_path,
                    location=child.path,
                    size=child.file_size,
                )
            )

    def _run_jobs(
        self,
        root_job: _DirectoryJob,
        root_entries: list[DirectoryChild],
        cancel_event: threading.Event | None,
    ) -> list[_DirectoryJob]:
        """Enumerate the whole subtree and return jobs in discovery order."""
        self._absorb(root_job, root_entries)
        discovered = [root_job]
        show_hidden = self.options.show_hidden
        executor = ThreadPoolExecutor(
            max_workers=max(1, self.options.max_workers),
            thread_name_prefix="bigfiles-scan",
        )
        in_flight: dict[Future, _DirectoryJob] = {}

        def submit_children(parent: _DirectoryJob) -> None:
            for sub in parent.subdirs:
                if self._within_depth(sub.depth):
                    in_flight[executor.submit(list_directory_children, sub.location, show_hidden)] = sub

        try:
            submit_children(root_job)
            while in_flight:
                if cancel_event is not None and cancel_event.is_set():
                    raise ScanCancelledError(f"scan of {root_job.location} cancelled")
                done, _pending = wait(in_flight, timeout=CANCEL_POLL_SECONDS, return_when=FIRST_COMPLETED)
                for future in done:
                    job = in_flight.pop(future)
                    try:
                        entries, scan_error = future.result()
                    except Exception as exc:
                        entries, scan_error = [], exc
                    if scan_error is not None:
                        job.failed = True
                        logger.debug("skipping directory %s: %s", job.location, scan_error)
                        continue
                    discovered.append(job)
                    self._absorb(job, entries)
                    submit_children(job)
            if cancel_event is not None and cancel_event.is_set():
                raise ScanCancelledError(f"scan of {root_job.location} cancelled")
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
        return discovered

    @staticmethod
    def _aggregate(discovered: list[_DirectoryJob]) -> SizeNode:
        """Build nodes bottom-up; children always precede parents in reverse order."""
        for job in reversed(discovered):
            children: list[SizeNode] = list(job.files)
            for sub in job.subdirs:
                if sub.failed:
                    continue
                if sub.node is None:
                    # Beyond max_depth: left for lazy expansion.
                    sub.node = SizeNode(
                        name=sub.name,
                        full_path=sub.full_path,
                        location=sub.location,
                        is_dir=True,
                        loaded=False,
                    )
                children.append(sub.node)
            job.node = SizeNode(
                name=job.name,
                full_path=job.full_path,
                location=job.location,
                size=sum(child.size for child in children),
                is_dir=True,
                children=sort_children(children),
            )
        root_node = discovered[0].node
        assert root_node is not None
        return root_node


__all__ = [
    "DEFAULT_MAX_WORKERS",
    "ScanOptions",
    "DirectoryChild",
    "list_directory_children",
    "Scanner",
]
