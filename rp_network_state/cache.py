"""On-disk cache for reads pinned to a historical block or slot.

State at a fixed block or finalized slot never changes, so those reads can be
cached indefinitely. Entries are JSON files named by a versioned hash.
"""

import hashlib
import json
import os
import shutil
import sys
import threading
from pathlib import Path
from typing import Any

from rp_network_state.constants import CACHE_DIR_NAME, CACHE_VERSION


def get_cache_dir() -> Path:
    """Cache directory under $XDG_CACHE_HOME (default ~/.cache), created on demand."""
    base = Path(os.getenv("XDG_CACHE_HOME") or Path.home() / ".cache")
    cache_dir = base / CACHE_DIR_NAME
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def _entry_path(key: str) -> Path:
    return get_cache_dir() / f"{key}.json"


def clear_cache() -> None:
    """Remove every cached entry."""
    base = Path(os.getenv("XDG_CACHE_HOME") or Path.home() / ".cache") / CACHE_DIR_NAME
    if not base.exists():
        print("ℹ️  Cache directory does not exist (nothing to clear).", file=sys.stderr)
        return
    shutil.rmtree(base)
    print(f"✅ Cache cleared: {base}", file=sys.stderr)


def cache_key(kind: str, *parts: Any) -> str:
    """Deterministic key for a read of `kind` identified by `parts` (address, block, slot...)."""
    raw = ":".join([kind, CACHE_VERSION, *(str(p) for p in parts)])
    return hashlib.sha256(raw.encode()).hexdigest()


def get_cached(key: str) -> Any | None:
    """Cached value for `key`, or None on a miss or an unreadable entry."""
    path = _entry_path(key)
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError):
        # Corrupted entries are treated as misses
        return None


def set_cached(key: str, data: Any) -> None:
    """Store `data` under `key`. Failures are ignored; the cache is an optimization only."""
    path = _entry_path(key)
    tmp = path.with_name(f"{path.stem}.{os.getpid()}.{threading.get_ident()}.tmp")
    try:
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, separators=(",", ":"))
        # Concurrent readers must never see a half-written entry
        os.replace(tmp, path)
    except (OSError, TypeError, ValueError):
        tmp.unlink(missing_ok=True)
