"""Path lookup and copy-on-write child replacement for ``SizeNode`` trees."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import replace

from .types import SizeNode, sort_children


def iter_nodes(root: SizeNode) -> Iterator[SizeNode]:
    """Yield ``root`` and every descendant in depth-first pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _may_contain(node: SizeNode, full_path: str) -> bool:
    """Return whether ``full_path`` can name ``node`` or one of its descendants."""
    return full_path == node.full_path or full_path.startswith(node.full_path + "/")


def find_node(root: SizeNode, full_path: str) -> SizeNode | None:
    """Return the first node whose ``full_path`` equals ``full_path``."""
    node = root
    while _may_contain(node, full_path):
        if node.full_path == full_path:
            return node
        for child in node.children:
            if child.is_dir and _may_contain(child, full_path):
                node = child
                break
        else:
            return None
    return None


def _rebuild(node: SizeNode, children: tuple[SizeNode, ...], propagate_sizes: bool) -> SizeNode:
    if propagate_sizes:
        return replace(
            node,
            children=sort_children(children),
            size=sum(child.size for child in children),
        )
    return replace(node, children=children)


def splice_children(
    root: SizeNode,
    full_path: str,
    children: Iterable[SizeNode],
    *,
    propagate_sizes: bool = False,
) -> SizeNode | None:
    """Return a new tree where the node at ``full_path`` has ``children``.

    Only the target and its ancestors are rebuilt; every other subtree is the
    same object as before. Identities are kept. The target keeps its own
    ``size`` and ancestors are not re-summed unless ``propagate_sizes`` is set.
    Returns ``None`` when no node matches.
    """
    new_children = sort_children(children)

    def walk(node: SizeNode) -> SizeNode | None:
        if node.full_path == full_path:
            return _rebuild(replace(node, loaded=True), new_children, propagate_sizes)
        for idx, child in enumerate(node.children):
            if not child.is_dir or not _may_contain(child, full_path):
                continue
            updated = walk(child)
            if updated is None:
                continue
            siblings = node.children[:idx] + (updated,) + node.children[idx + 1 :]
            return _rebuild(node, siblings, propagate_sizes)
        return None

    if not _may_contain(root, full_path):
        return None
    return walk(root)


__all__ = [
    "iter_nodes",
    "find_node",
    "splice_children",
]
