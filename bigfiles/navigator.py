"""Navigation over a scanned size tree: root, current view, and breadcrumbs.

State transitions are pure functions over ``NavigatorState``. ``TreeNavigator``
owns one state value, calls the scanner for loads and lazy expansions, and
swaps in a new state only when a scan completed successfully.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path

from .errors import NavigationError, NotADirectoryNodeError, NotExpandedError
from .scan_scheduler import ScanResult, ScanScheduler
from .size_tree import Scanner, SizeNode, find_node, splice_children

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigatorState:
    """Observable navigation state.

    ``breadcrumbs`` runs from ``root`` to ``current`` and is empty only when
    nothing is loaded.
    """

    root: SizeNode | None = None
    current: SizeNode | None = None
    breadcrumbs: tuple[SizeNode, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.root is None


def loaded_state(root: SizeNode) -> NavigatorState:
    """Return the state right after ``root`` was loaded."""
    return NavigatorState(root=root, current=root, breadcrumbs=(root,))


def _require_directory(node: SizeNode) -> None:
    if not node.is_dir:
        raise NotADirectoryNodeError(f"{node.full_path} is not a directory")


def enter_state(state: NavigatorState, node: SizeNode) -> NavigatorState:
    """Make ``node`` the current view.

    Breadcrumbs are cut back to ``node`` when its path is already on the
    trail, otherwise ``node`` is appended.
    """
    _require_directory(node)
    if node.needs_expand:
        raise NotExpandedError(f"{node.full_path} has not been scanned yet")
    for idx, crumb in enumerate(state.breadcrumbs):
        if crumb.full_path == node.full_path:
            breadcrumbs = state.breadcrumbs[:idx] + (node,)
            break
    else:
        breadcrumbs = state.breadcrumbs + (node,)
    return replace(state, current=node, breadcrumbs=breadcrumbs)


def _refreshed(node: SizeNode, root: SizeNode) -> SizeNode:
    return find_node(root, node.full_path) or node


def splice_state(
    state: NavigatorState,
    full_path: str,
    children: tuple[SizeNode, ...],
    *,
    propagate_sizes: bool = False,
) -> NavigatorState:
    """Return ``state`` with new children spliced in at ``full_path``.

    ``current`` and breadcrumbs are re-pointed at the rebuilt nodes.
    """
    if state.root is None:
        raise NavigationError("no tree loaded")
    new_root = splice_children(state.root, full_path, children, propagate_sizes=propagate_sizes)
    if new_root is None:
        raise NavigationError(f"{full_path} is not part of the loaded tree")
    return NavigatorState(
        root=new_root,
        current=_refreshed(state.current, new_root) if state.current is not None else new_root,
        breadcrumbs=tuple(_refreshed(crumb, new_root) for crumb in state.breadcrumbs),
    )


def expanded_state(
    state: NavigatorState,
    full_path: str,
    scanned: SizeNode,
    *,
    propagate_sizes: bool = False,
) -> NavigatorState:
    """Splice a finished rescan of ``full_path`` into ``state`` and enter it."""
    spliced = splice_state(state, full_path, scanned.children, propagate_sizes=propagate_sizes)
    assert spliced.root is not None
    target = find_node(spliced.root, full_path)
    if target is None:
        raise NavigationError(f"{full_path} is not part of the loaded tree")
    return enter_state(spliced, target)


def parent_path_of(node: SizeNode) -> str:
    """Return the ``parent_path`` a rescan of ``node`` needs to keep its ``full_path``."""
    if node.full_path == node.name:
        return ""
    return node.full_path[: -len(node.name) - 1]


class TreeNavigator:
    """Owns the loaded tree and moves the current view through it."""

    def __init__(
        self,
        scanner: Scanner | None = None,
        *,
        propagate_sizes: bool = False,
        scheduler: ScanScheduler | None = None,
    ) -> None:
        self.scanner = scanner or Scanner()
        self.propagate_sizes = propagate_sizes
        self._scheduler = scheduler
        self._lock = threading.RLock()
        self._state = NavigatorState()
        self._generation = 0
        self._expansion_request_id: int | None = None

    @property
    def state(self) -> NavigatorState:
        with self._lock:
            return self._state

    @property
    def root(self) -> SizeNode | None:
        return self.state.root

    @property
    def current(self) -> SizeNode | None:
        return self.state.current

    @property
    def breadcrumbs(self) -> tuple[SizeNode, ...]:
        return self.state.breadcrumbs

    def load_root(self, location: Path | str) -> NavigatorState:
        """Scan ``location`` and make it the new root and current view.

        Scan errors propagate and leave the previous state in place.
        """
        root = self.scanner.scan(location, "")
        with self._lock:
            self._discard_pending_expansion()
            self._generation += 1
            self._state = loaded_state(root)
            return self._state

    def enter(self, node: SizeNode) -> NavigatorState:
        """Navigate to an already scanned directory node."""
        with self._lock:
            if self._state.root is None:
                raise NavigationError("no tree loaded")
            self._discard_pending_expansion()
            self._state = enter_state(self._state, node)
            return self._state

    def expand(self, node: SizeNode) -> NavigatorState:
        """Scan an empty directory node, splice its children in, and enter it.

        Scan errors propagate and leave the state unchanged. When the tree was
        replaced by ``load_root`` while the scan ran, the result is dropped.
        The rescan uses the parent path of ``node`` so the new subtree keeps
        the ``full_path`` values of the nodes it replaces.
        """
        _require_directory(node)
        if node.children:
            raise NavigationError(f"{node.full_path} already has children")
        with self._lock:
            if self._state.root is None or find_node(self._state.root, node.full_path) is None:
                raise NavigationError(f"{node.full_path} is not part of the loaded tree")
            generation = self._generation

        scanned = self.scanner.scan(node.location, parent_path_of(node))

        with self._lock:
            self._discard_pending_expansion()
            if generation != self._generation:
                logger.info("dropping expansion of %s: tree was reloaded", node.full_path)
                return self._state
            self._state = expanded_state(
                self._state,
                node.full_path,
                scanned,
                propagate_sizes=self.propagate_sizes,
            )
            return self._state

    def open(self, node: SizeNode) -> NavigatorState:
        """Enter ``node``, expanding it first when it was never scanned."""
        _require_directory(node)
        if node.needs_expand:
            return self.expand(node)
        return self.enter(node)

    def go_up(self) -> NavigatorState:
        """Return to the parent breadcrumb; no-op at the root."""
        with self._lock:
            self._discard_pending_expansion()
            if len(self._state.breadcrumbs) < 2:
                return self._state
            self._state = enter_state(self._state, self._state.breadcrumbs[-2])
            return self._state

    def go_home(self) -> NavigatorState:
        """Return to the root breadcrumb."""
        with self._lock:
            self._discard_pending_expansion()
            if not self._state.breadcrumbs:
                return self._state
            self._state = enter_state(self._state, self._state.breadcrumbs[0])
            return self._state

    # background scans
    def _discard_pending_expansion(self) -> None:
        """Cancel a scheduled expansion the user navigated away from."""
        with self._lock:
            request_id = self._expansion_request_id
            self._expansion_request_id = None
        if request_id is None or self._scheduler is None:
            return
        if self._scheduler.latest_request_id == request_id:
            logger.debug("cancelling expansion request %d", request_id)
            self._scheduler.cancel()

    def _ensure_scheduler(self) -> ScanScheduler:
        if self._scheduler is None:
            self._scheduler = ScanScheduler(self.scanner.scan)
        return self._scheduler

    @property
    def scanning(self) -> bool:
        return self._scheduler is not None and self._scheduler.busy

    def schedule_load_root(self, location: Path | str) -> int:
        """Start loading ``location`` in the background; apply it with ``poll``."""
        with self._lock:
            self._expansion_request_id = None
            return self._ensure_scheduler().schedule(Path(location), "")

    def schedule_open(self, node: SizeNode) -> int | None:
        """Open ``node``, scanning it in the background when needed.

        Returns the request id of the scheduled expansion, or ``None`` when
        the node could be entered right away.
        """
        _require_directory(node)
        if not node.needs_expand:
            self.enter(node)
            return None
        with self._lock:
            self._expansion_request_id = self._ensure_scheduler().schedule(
                node.location,
                parent_path_of(node),
                target_full_path=node.full_path,
            )
            return self._expansion_request_id

    def cancel(self) -> None:
        """Cancel background scans; their results are never applied."""
        if self._scheduler is not None:
            self._scheduler.cancel()

    def poll(self) -> list[ScanResult]:
        """Apply finished background scans and return them.

        Only the most recently scheduled request is applied. Expansions are
        dropped once the view moved elsewhere after they were scheduled. Failed
        scans are returned with ``error`` set and leave the state unchanged.
        """
        if self._scheduler is None:
            return []
        applied: list[ScanResult] = []
        latest = self._scheduler.latest_request_id
        for result in self._scheduler.drain_results():
            if result.request.request_id != latest:
                logger.debug("discarding stale scan result %d", result.request.request_id)
                continue
            if result.error is not None:
                logger.warning("scan of %s failed: %s", result.request.location, result.error)
                applied.append(result)
                continue
            assert result.node is not None
            target = result.request.target_full_path
            with self._lock:
                if target is None:
                    self._generation += 1
                    self._state = loaded_state(result.node)
                else:
                    if result.request.request_id != self._expansion_request_id:
                        logger.debug("discarding expansion of %s: navigated away", target)
                        continue
                    self._expansion_request_id = None
                    try:
                        self._state = expanded_state(
                            self._state,
                            target,
                            result.node,
                            propagate_sizes=self.propagate_sizes,
                        )
                    except NavigationError as exc:
                        logger.info("dropping expansion of %s: %s", target, exc)
                        continue
            applied.append(result)
        return applied


__all__ = [
    "NavigatorState",
    "loaded_state",
    "enter_state",
    "splice_state",
    "expanded_state",
    "parent_path_of",
    "TreeNavigator",
]
