"""Plain-text report rows for the current navigator view."""

from __future__ import annotations

from dataclasses import dataclass

from .size_tree import SizeNode
from .treemap import Rect

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")
SIZE_STEP = 1000


@dataclass(frozen=True)
class ReportTheme:
    """ANSI palette used by report rows."""

    name: str
    reset: str
    marker: str
    directory: str
    file: str
    size: str
    crumb: str
    crumb_current: str
    dim: str


DEFAULT_THEME = ReportTheme(
    name="default",
    reset="\033[0m",
    marker="\033[38;5;44m",
    directory="\033[1;34m",
    file="\033[38;5;252m",
    size="\033[38;5;109m",
    crumb="\033[34m",
    crumb_current="\033[1m",
    dim="\033[2m",
)

NO_COLOR_THEME = ReportTheme(
    name="no-color",
    reset="",
    marker="",
    directory="",
    file="",
    size="",
    crumb="",
    crumb_current="",
    dim="",
)


def format_size(size_bytes: int) -> str:
    """Format a byte count with decimal file-size units, e.g. ``1.50 KB``."""
    if size_bytes < SIZE_STEP:
        return f"{size_bytes} B"
    value = float(size_bytes)
    for unit in SIZE_UNITS[1:]:
        value /= SIZE_STEP
        if value < SIZE_STEP or unit == SIZE_UNITS[-1]:
            return f"{value:.2f} {unit}"
    return f"{value:.2f} {SIZE_UNITS[-1]}"


def format_breadcrumbs(breadcrumbs: tuple[SizeNode, ...], theme: ReportTheme = DEFAULT_THEME) -> str:
    """Render the trail root-first, highlighting the last crumb."""
    parts: list[str] = []
    for idx, crumb in enumerate(breadcrumbs):
        color = theme.crumb_current if idx == len(breadcrumbs) - 1 else theme.crumb
        parts.append(f"{color}{crumb.name}{theme.reset}")
    return f"{theme.dim} / {theme.reset}".join(parts)


def format_summary(node: SizeNode) -> str:
    """One-line size and item count for ``node``."""
    count = len(node.children)
    noun = "item" if count == 1 else "items"
    return f"{format_size(node.size)} • {count} {noun}"


def format_rect(rect: Rect | None) -> str:
    if rect is None:
        return "-"
    return f"{rect.x:.1f},{rect.y:.1f} {rect.width:.1f}x{rect.height:.1f}"


def format_child_row(
    rank: int,
    child: SizeNode,
    parent_size: int,
    rect: Rect | None,
    theme: ReportTheme = DEFAULT_THEME,
) -> str:
    """Render one ranked child row: rank, size, share, rectangle, name."""
    share = (child.size / parent_size * 100.0) if parent_size > 0 else 0.0
    if child.is_dir:
        marker = "▸ " if child.needs_expand else "▾ "
        name = f"{theme.marker}{marker}{theme.reset}{theme.directory}{child.name}/{theme.reset}"
    else:
        name = f"  {theme.file}{child.name}{theme.reset}"
    size_label = f"{theme.size}{format_size(child.size):>10}{theme.reset}"
    return f"{rank:>4}  {size_label}  {share:5.1f}%  {format_rect(rect):<28} {name}"


def render_report(
    node: SizeNode,
    breadcrumbs: tuple[SizeNode, ...],
    rects: dict[int, Rect],
    *,
    top: int | None = None,
    theme: ReportTheme = DEFAULT_THEME,
) -> str:
    """Render breadcrumbs, summary, and ranked child rows as report text."""
    lines = [format_breadcrumbs(breadcrumbs, theme), format_summary(node)]
    if not node.children:
        lines.append(f"{theme.dim}Empty folder{theme.reset}")
        return "\n".join(lines) + "\n"
    shown = node.children if top is None else node.children[:top]
    for idx, child in enumerate(shown):
        lines.append(format_child_row(idx + 1, child, node.size, rects.get(idx), theme))
    hidden = len(node.children) - len(shown)
    if hidden > 0:
        lines.append(f"{theme.dim}... {hidden} more{theme.reset}")
    return "\n".join(lines) + "\n"


__all__ = [
    "ReportTheme",
    "DEFAULT_THEME",
    "NO_COLOR_THEME",
    "format_size",
    "format_breadcrumbs",
    "format_summary",
    "format_rect",
    "format_child_row",
    "render_report",
]
