"""Domain model for size-aggregated filesystem trees.

This package contains non-UI tree primitives:
- the immutable size node datatype
- concurrent filesystem scanning into aggregated trees
- path lookup and copy-on-write splicing of rescanned children
"""

from __future__ import annotations

from .types import SizeNode, join_full_path, sort_children
from .scan import (
    DEFAULT_MAX_WORKERS,
    DirectoryChild,
    ScanOptions,
    Scanner,
    list_directory_children,
)
from .splice import find_node, iter_nodes, splice_children

__all__ = [
    "SizeNode",
    "join_full_path",
    "sort_children",
    "DEFAULT_MAX_WORKERS",
    "DirectoryChild",
    "ScanOptions",
    "Scanner",
    "list_directory_children",
    "find_node",
    "iter_nodes",
    "splice_children",
]
