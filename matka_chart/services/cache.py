from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

"""File-backed TTL cache for fetched chart tables.

One JSON file per key holding ``{value, fetched_at, ttl, version}``.
An entry is served while ``now - fetched_at < ttl`` and its version equals
the cache version; otherwise the loader runs and the entry is rewritten.
Writes go to a temp file first and are swapped in with os.replace so a
crash never leaves a half-written entry.
"""

__all__ = [
    "CacheEntry",
    "ChartCache",
]

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    fetched_at: float  # epoch seconds
    ttl: float  # seconds
    version: str

    def is_fresh(self, now: float, version: str) -> bool:
        return self.version == version and (now - self.fetched_at) < self.ttl


def _atomic_write_json(data: dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise


class ChartCache:
    def __init__(
        self,
        directory: str | Path,
        version: str = "1.0.1",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.directory = Path(directory)
        self.version = version
        self._clock = clock

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> CacheEntry | None:
        """Return the stored entry (fresh or not), None when absent or unreadable."""
        path = self._path(key)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return CacheEntry(
                value=raw["value"],
                fetched_at=float(raw["fetched_at"]),
                ttl=float(raw["ttl"]),
                version=str(raw["version"]),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("cache entry unreadable key=%s: %s", key, e)
            return None

    def put(self, key: str, value: Any, ttl_seconds: float) -> CacheEntry:
        entry = CacheEntry(value=value, fetched_at=self._clock(), ttl=float(ttl_seconds), version=self.version)
        _atomic_write_json(
            {"value": entry.value, "fetched_at": entry.fetched_at, "ttl": entry.ttl, "version": entry.version},
            self._path(key),
        )
        return entry

    def get_or_fetch(self, key: str, ttl_seconds: float, loader: Callable[[], Any]) -> Any:
        """Serve a fresh cached value or call ``loader`` and store its result.

        Loader exceptions propagate; nothing is written in that case.
        """
        entry = self.get(key)
        if entry is not None and entry.is_fresh(self._clock(), self.version):
            logger.debug("cache hit key=%s", key)
            return entry.value
        logger.debug("cache miss key=%s", key)
        value = loader()
        self.put(key, value, ttl_seconds)
        return value

    def invalidate(self, key: str) -> bool:
        path = self._path(key)
        if path.exists():
            path.unlink()
            return True
        return False
