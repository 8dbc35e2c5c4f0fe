"""Public package surface for bigfiles.

Exports ``main`` for programmatic CLI invocation.
Scanning, navigation, and layout live in submodules under ``bigfiles``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
