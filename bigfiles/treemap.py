"""Proportional band layout for treemap rectangles.

Items are packed largest first into bands. A band closes once its sizes
reach half of the overall total (or on the last item). Each band takes the
full length of the remaining rectangle along its longer side and a share of
the other side equal to ``band_sum / total``. Because the share is always
taken against the overall total and applied to what is left, three or more
uneven bands do not fill the whole area.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .size_tree import SizeNode


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle with top-left origin."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class LayoutItem:
    """One sized item to place; ``index`` is the caller's key for it."""

    size: int
    index: int


def layout(items: Sequence[LayoutItem], bounds: Rect) -> dict[int, Rect]:
    """Return a rectangle for each item index, packed band by band into ``bounds``."""
    result: dict[int, Rect] = {}
    if not items:
        return result
    total = sum(item.size for item in items)
    if total <= 0:
        return result

    half_total = total // 2
    ordered = sorted(items, key=lambda item: item.size, reverse=True)
    remaining = bounds
    band: list[LayoutItem] = []
    band_sum = 0

    for position, item in enumerate(ordered):
        band.append(item)
        band_sum += item.size
        if band_sum < half_total and position != len(ordered) - 1:
            continue

        band_ratio = band_sum / total
        row_mode = remaining.width >= remaining.height
        main_length = remaining.width if row_mode else remaining.height
        cross_length = band_ratio * (remaining.height if row_mode else remaining.width)

        offset = 0.0
        for member in band:
            member_length = (member.size / band_sum) * main_length if band_sum > 0 else 0.0
            if row_mode:
                rect = Rect(remaining.x + offset, remaining.y, member_length, cross_length)
            else:
                rect = Rect(remaining.x, remaining.y + offset, cross_length, member_length)
            result[member.index] = rect
            offset += member_length

        if row_mode:
            remaining = Rect(
                remaining.x,
                remaining.y + cross_length,
                remaining.width,
                remaining.height - cross_length,
            )
        else:
            remaining = Rect(
                remaining.x + cross_length,
                remaining.y,
                remaining.width - cross_length,
                remaining.height,
            )

        band = []
        band_sum = 0

    return result


def layout_children(node: SizeNode, bounds: Rect) -> dict[int, Rect]:
    """Pack ``node.children`` into ``bounds`` keyed by child position."""
    return layout(
        [LayoutItem(size=child.size, index=idx) for idx, child in enumerate(node.children)],
        bounds,
    )


__all__ = [
    "Rect",
    "LayoutItem",
    "layout",
    "layout_children",
]
