"""Path utilities for ddrscope data files.

ddrscope keeps a small amount of user state (search history) under the
XDG cache directory.

Environment variables:
    DDRSCOPE_DATA_DIR: Override the data directory location.

XDG Base Directory compliance:
    Default location: $XDG_CACHE_HOME/ddrscope
    Falls back to: ~/.cache/ddrscope
"""

from __future__ import annotations

import os
from pathlib import Path

from ddrscope.config import ENV_DATA_DIR

HISTORY_FILE_NAME = "history.json"


def get_xdg_cache_home() -> Path:
    """Return $XDG_CACHE_HOME if set, otherwise ~/.cache."""
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache)
    return Path.home() / ".cache"


def get_data_dir() -> Path:
    """Resolve the data directory.

    Priority:
    1. DDRSCOPE_DATA_DIR env var
    2. $XDG_CACHE_HOME/ddrscope (or ~/.cache/ddrscope)
    """
    env_dir = os.environ.get(ENV_DATA_DIR)
    if env_dir:
        return Path(env_dir).expanduser()
    return get_xdg_cache_home() / "ddrscope"


def history_path(data_dir: Path | None = None) -> Path:
    return (data_dir or get_data_dir()) / HISTORY_FILE_NAME
