"""Cache implementations for upstream responses.

Both caches expire entries after a time-to-live. Domain code never sees a
cache; only ``CachedHttpClient`` does.

Usage example:
    from pathlib import Path

    from citysieve.infrastructure.cache import DiskCache, TimedCache

    memory = TimedCache(ttl_seconds=86_400)
    memory.set("postcode:51.5074,-0.1278", {"outcode": "WC2N"})

    disk = DiskCache(Path("data/cache"), ttl_seconds=86_400)
    disk.set("overpass:51.505:-0.13:1000", {"elements": []})
"""

from __future__ import annotations

import hashlib
import json
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import override

from ..protocols import Cache
from .io.validation import IncomingDataError, validate_json_as

DEFAULT_TTL_SECONDS = 24 * 60 * 60


def _empty_entries() -> dict[str, tuple[float, object]]:
    return {}


@dataclass
class TimedCache(Cache):
    """In-memory cache whose entries expire ``ttl_seconds`` after being set.

    ``clock`` is injectable so expiry can be tested without sleeping.
    """

    ttl_seconds: float = DEFAULT_TTL_SECONDS
    clock: Callable[[], float] = time.monotonic
    _entries: dict[str, tuple[float, object]] = field(
        default_factory=_empty_entries, init=False, repr=False
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @override
    def get(self, key: str) -> object | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self.clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    @override
    def set(self, key: str, value: object) -> None:
        with self._lock:
            self._entries[key] = (self.clock() + self.ttl_seconds, value)

    @override
    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class DiskCache(Cache):
    """File-based JSON cache; a file older than ``ttl_seconds`` counts as missing."""

    cache_dir: Path
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    clock: Callable[[], float] = time.time

    def __post_init__(self) -> None:
        self.cache_dir = Path(self.cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        h = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{h}.json"

    def _is_fresh(self, path: Path) -> bool:
        return self.clock() - path.stat().st_mtime < self.ttl_seconds

    @override
    def get(self, key: str) -> object | None:
        p = self._path(key)
        if not p.exists() or not self._is_fresh(p):
            return None
        payload = p.read_text(encoding="utf-8")
        try:
            return validate_json_as(object, payload)
        except IncomingDataError as exc:
            raise RuntimeError(f"Cache entry {p.name} is not valid JSON.") from exc

    @override
    def set(self, key: str, value: object) -> None:
        p = self._path(key)
        p.write_text(json.dumps(value, ensure_ascii=False, indent=2), encoding="utf-8")

    @override
    def has(self, key: str) -> bool:
        p = self._path(key)
        return p.exists() and self._is_fresh(p)
