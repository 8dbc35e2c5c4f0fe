"""Persistent JSON config helpers.

Stores scan defaults (worker count, hidden entries, depth limit) and the
size-propagation preference. All access is defensive: malformed or missing
config falls back safely.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "bigfiles"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

MAX_WORKERS_LIMIT = 256


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Any filesystem/serialization error is ignored to keep runtime behavior
    non-fatal when config cannot be written.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def _load_positive_int(key: str, upper: int | None = None) -> int | None:
    """Read a strictly positive integer; booleans and other types are rejected."""
    value = load_config().get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value <= 0:
        return None
    if upper is not None:
        return min(upper, value)
    return value


def load_max_workers() -> int | None:
    """Load the scan worker-pool size, capped at ``MAX_WORKERS_LIMIT``."""
    return _load_positive_int("max_workers", MAX_WORKERS_LIMIT)


def save_max_workers(max_workers: int) -> None:
    """Persist the scan worker-pool size; non-positive values are ignored."""
    if max_workers <= 0:
        return
    config = load_config()
    config["max_workers"] = min(MAX_WORKERS_LIMIT, int(max_workers))
    save_config(config)


def load_max_depth() -> int | None:
    """Load the eager scan depth limit; ``None`` means unlimited.

    Zero is a valid depth (only the scan root is enumerated).
    """
    value = load_config().get("max_depth")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def load_show_hidden() -> bool:
    """Return persisted hidden-entry preference.

    Only explicit boolean values are accepted; any other type falls back to
    ``True`` so dot-files count towards directory sizes.
    """
    value = load_config().get("show_hidden")
    return bool(value) if isinstance(value, bool) else True


def save_show_hidden(show_hidden: bool) -> None:
    """Persist hidden-entry preference as a boolean."""
    config = load_config()
    config["show_hidden"] = bool(show_hidden)
    save_config(config)


def load_propagate_sizes() -> bool:
    """Return whether lazy expansions re-sum ancestor sizes (default ``False``)."""
    value = load_config().get("propagate_sizes")
    return bool(value) if isinstance(value, bool) else False
