"""Exception types raised by scanning and navigation.

Only failures of the outermost scan target surface as exceptions.
Descendant failures during a recursive scan are absorbed by the scanner.
"""

from __future__ import annotations

from pathlib import Path


class BigFilesError(Exception):
    """Base class for all bigfiles errors."""


class ScanError(BigFilesError):
    """A scan request could not produce a tree."""


class RootUnavailableError(ScanError):
    """The scan target itself cannot be resolved or enumerated."""

    def __init__(self, location: Path, reason: str) -> None:
        super().__init__(f"cannot scan {location}: {reason}")
        self.location = location
        self.reason = reason


class ScanCancelledError(ScanError):
    """The scan was cancelled before it completed."""


class NavigationError(BigFilesError, ValueError):
    """A navigator operation was called with a node it cannot accept."""


class NotADirectoryNodeError(NavigationError):
    """Navigation target is a file node."""


class NotExpandedError(NavigationError):
    """Directory node has not been scanned yet and must be expanded first."""


__all__ = [
    "BigFilesError",
    "ScanError",
    "RootUnavailableError",
    "ScanCancelledError",
    "NavigationError",
    "NotADirectoryNodeError",
    "NotExpandedError",
]
