"""Command-line front door for bigfiles.

Parses CLI options, scans the target directory, and optionally descends
into named children. Then prints the size-ranked view with its treemap
rectangles.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .errors import NavigationError, ScanError
from .navigator import TreeNavigator
from .rendering import DEFAULT_THEME, NO_COLOR_THEME, render_report
from .size_tree import DEFAULT_MAX_WORKERS, ScanOptions, Scanner
from .treemap import Rect, layout_children

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _nonnegative_int(value: str) -> int:
    """argparse type for integer values >= 0."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Show which files and folders use the most disk space."
    )
    parser.add_argument("path", nargs="?", default=None, help="Directory to scan. Defaults to current directory.")
    parser.add_argument(
        "--into",
        action="append",
        default=[],
        metavar="NAME",
        help="Descend into the child directory NAME (repeatable).",
    )
    parser.add_argument("--width", type=_positive_int, default=100, help="Treemap area width (default: 100).")
    parser.add_argument("--height", type=_positive_int, default=50, help="Treemap area height (default: 50).")
    parser.add_argument("--top", type=_positive_int, default=None, help="Only list the N largest entries.")
    parser.add_argument("--max-workers", type=_positive_int, default=None, help="Scanner thread-pool size.")
    parser.add_argument(
        "--max-depth",
        type=_nonnegative_int,
        default=None,
        help="Scan eagerly only N levels deep; deeper folders are scanned on --into.",
    )
    parser.add_argument("--no-hidden", action="store_true", help="Skip entries whose names start with '.'.")
    parser.add_argument(
        "--propagate-sizes",
        action="store_true",
        help="Re-sum parent sizes after scanning a folder on --into.",
    )
    parser.add_argument("--save-config", action="store_true", help="Persist --max-workers and --no-hidden as defaults.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log progress (-vv for debug).")
    return parser


def configure_logging(verbosity: int) -> None:
    """Route log records to stderr at a level picked from ``-v`` count."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _scan_options(args: argparse.Namespace) -> ScanOptions:
    max_workers = args.max_workers or config.load_max_workers() or DEFAULT_MAX_WORKERS
    show_hidden = False if args.no_hidden else config.load_show_hidden()
    max_depth = args.max_depth if args.max_depth is not None else config.load_max_depth()
    return ScanOptions(max_workers=max_workers, show_hidden=show_hidden, max_depth=max_depth)


def main(default_path: Path | None = None) -> None:
    """Parse CLI arguments, scan, navigate, and print the report.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args()
    configure_logging(args.verbose)

    options = _scan_options(args)
    if args.save_config:
        if args.max_workers is not None:
            config.save_max_workers(args.max_workers)
        config.save_show_hidden(options.show_hidden)

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path or default_path)
    if not path.is_dir():
        raise SystemExit(f"Not a directory: {path}")

    navigator = TreeNavigator(
        Scanner(options),
        propagate_sizes=args.propagate_sizes or config.load_propagate_sizes(),
    )
    try:
        navigator.load_root(path)
        for name in args.into:
            current = navigator.current
            assert current is not None
            child = next((item for item in current.children if item.name == name), None)
            if child is None:
                raise SystemExit(f"No entry named {name!r} in {current.full_path}")
            navigator.open(child)
    except (ScanError, NavigationError) as exc:
        raise SystemExit(str(exc)) from exc

    current = navigator.current
    assert current is not None
    rects = layout_children(current, Rect(0.0, 0.0, float(args.width), float(args.height)))
    use_color = not args.no_color and sys.stdout.isatty()
    sys.stdout.write(
        render_report(
            current,
            navigator.breadcrumbs,
            rects,
            top=args.top,
            theme=DEFAULT_THEME if use_color else NO_COLOR_THEME,
        )
    )


if __name__ == "__main__":
    main()
