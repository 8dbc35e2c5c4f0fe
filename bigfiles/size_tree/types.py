"""Domain datatype for size-aggregated filesystem trees."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from uuid import UUID, uuid4


@dataclass(frozen=True, eq=False)
class SizeNode:
    """One file or directory with its aggregated byte size.

    Equality and hashing use ``identity`` only, so a node rebuilt by a splice
    with ``dataclasses.replace`` still compares equal to its previous version.
    """

    name: str
    full_path: str
    location: Path
    size: int = 0
    is_dir: bool = False
    children: tuple["SizeNode", ...] = ()
    loaded: bool = True
    identity: UUID = field(default_factory=uuid4)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SizeNode):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    @property
    def needs_expand(self) -> bool:
        """True for directories whose children have never been enumerated."""
        return self.is_dir and not self.loaded and not self.children


def join_full_path(parent_path: str, name: str) -> str:
    """Build a node ``full_path`` from its parent path and own name."""
    return f"{parent_path}/{name}" if parent_path else name


def sort_children(children: Iterable[SizeNode]) -> tuple[SizeNode, ...]:
    """Return children ordered largest first, ties by name."""
    return tuple(sorted(children, key=lambda child: (-child.size, child.name)))


__all__ = [
    "SizeNode",
    "join_full_path",
    "sort_children",
]
