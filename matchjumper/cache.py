"""Discovery caching with a TTL, behind a small get/set interface."""

from __future__ import annotations

import json
import re
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

DISCOVERY_TTL = 3600  # seconds


def discovery_cache_key(sku: str) -> str:
    return f"stream_cache:{sku}"


class Cache(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: int) -> None: ...


class MemoryCache:
    """In-process cache; entries expire after their TTL."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        self._entries[key] = (self._clock() + ttl, value)


class FileCache:
    """JSON-file cache: one file per key under a directory."""

    def __init__(self, cache_dir: Path, clock: Callable[[], float] = time.time) -> None:
        self.cache_dir = Path(cache_dir)
        self._clock = clock

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]+", "_", key).lower()
        return self.cache_dir / f"{safe}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        if self._clock() >= entry.get("expires_at", 0):
            return None
        return entry.get("value")

    def set(self, key: str, value: Any, ttl: int) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        entry = {"expires_at": self._clock() + ttl, "value": value}
        self._path(key).write_text(json.dumps(entry, indent=2, ensure_ascii=False), encoding="utf-8")


def cached(cache: Cache | None, key: str, compute: Callable[[], Any], ttl: int = DISCOVERY_TTL) -> tuple[Any, bool]:
    """Check the cache, else compute and store. Returns ``(value, from_cache)``."""
    if cache is not None:
        hit = cache.get(key)
        if hit is not None:
            return hit, True

    value = compute()
    if cache is not None:
        cache.set(key, value, ttl)
    return value, False
