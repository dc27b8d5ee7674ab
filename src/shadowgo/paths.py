from __future__ import annotations

import os
from pathlib import Path


def default_cache_root() -> Path:
    """Return the default cache root directory.

    Override with `SHADOWGO_CACHE_DIR`.
    """
    override = os.environ.get("SHADOWGO_CACHE_DIR")
    if override:
        return Path(override)

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
        return Path(base) / "shadowgo" / "cache"
    return Path(os.path.expanduser("~/.cache/shadowgo"))
