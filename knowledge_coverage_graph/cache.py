"""
Disk persistence for coverage graphs and time-series history.

Entries live in a single diskcache directory under `namespace:key` names, so
the coverage store and any future consumers can share one cache without
colliding. Execute-mode runs of `coverage-report` write here; `coverage-cache`
inspects and clears it.
"""

import logging
from collections import Counter
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import diskcache

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path("data/cache")

# Snapshots are a few hundred KB at most
DEFAULT_CACHE_SIZE_LIMIT = 256 * 1024 * 1024

BYTES_PER_MB = 1024 * 1024


class AppCache:
    """Namespaced view over a diskcache directory."""

    def __init__(
        self,
        cache_dir: Path = DEFAULT_CACHE_DIR,
        size_limit: int = DEFAULT_CACHE_SIZE_LIMIT,
    ):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._cache = diskcache.Cache(str(self.cache_dir), size_limit=size_limit)
        logger.debug(f"Opened coverage cache at {self.cache_dir}")

    @staticmethod
    def _full_key(namespace: str, key: str) -> str:
        return f"{namespace}:{key}"

    def _names(self, namespace: str | None = None) -> Iterator[str]:
        prefix = f"{namespace}:" if namespace else ""
        for name in self._cache.iterkeys():
            if name.startswith(prefix):
                yield name

    def get(self, namespace: str, key: str) -> Any | None:
        return self._cache.get(self._full_key(namespace, key))

    def set(self, namespace: str, key: str, value: Any) -> None:
        """Store a snapshot; entries never expire."""
        self._cache.set(self._full_key(namespace, key), value)

    def keys(self, namespace: str | None = None, limit: int = 100) -> list[str]:
        """
        Entry names, at most `limit`.

        With a namespace the prefix is stripped; without one the full
        `namespace:key` names are returned.
        """
        names: list[str] = []
        for name in self._names(namespace):
            names.append(name.split(":", 1)[1] if namespace else name)
            if len(names) >= limit:
                break
        return names

    def clear_namespace(self, namespace: str) -> int:
        """Delete every entry of `namespace` and return how many were removed."""
        doomed = list(self._names(namespace))
        for name in doomed:
            self._cache.delete(name)
        logger.info(f"Cleared {len(doomed)} entries from namespace {namespace!r}")
        return len(doomed)

    def stats(self) -> dict:
        by_namespace = Counter(
            name.split(":", 1)[0] if ":" in name else "unknown" for name in self._names()
        )
        return {
            "total": sum(by_namespace.values()),
            "by_namespace": dict(by_namespace),
            "size_mb": round(self._cache.volume() / BYTES_PER_MB, 2),
            "size_limit_mb": round(self._cache.size_limit / BYTES_PER_MB, 2),
            "cache_dir": str(self.cache_dir),
        }

    def close(self) -> None:
        self._cache.close()
