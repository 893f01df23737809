"""
Persistence of graphs and coverage history.

The core only needs a `get(key) -> value` / `put(key, value)` capability.
`MemoryStore` keeps values in a dict (dry runs, tests); `CacheStore` writes
them to the diskcache-backed `AppCache`. Values are plain dicts/lists so any
store that can hold JSON can back `GraphStore`.

A stored value that cannot be parsed is logged and treated as missing; the
caller rebuilds from source.
"""

import logging
from typing import Any, Protocol

from knowledge_coverage_graph.cache import AppCache
from knowledge_coverage_graph.constants import (
    COMPANY_GRAPH_KEY,
    TIME_SERIES_KEY,
    USER_GRAPH_KEY,
)
from knowledge_coverage_graph.graph.company import CompanyGraph
from knowledge_coverage_graph.graph.user import UserGraph
from knowledge_coverage_graph.tracking.time_series import TimeSeriesRecord

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "coverage"

_PARSE_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def put(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """In-process store."""

    def __init__(self):
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value

    def keys(self) -> list[str]:
        return list(self._data)


class CacheStore:
    """Store backed by one namespace of an AppCache."""

    def __init__(self, cache: AppCache, namespace: str = CACHE_NAMESPACE):
        self.cache = cache
        self.namespace = namespace

    def get(self, key: str) -> Any | None:
        return self.cache.get(self.namespace, key)

    def put(self, key: str, value: Any) -> None:
        self.cache.set(self.namespace, key, value)

    def keys(self) -> list[str]:
        return self.cache.keys(self.namespace)


class GraphStore:
    """Typed save/load of company graph, user graph and time series."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def save_company_graph(self, graph: CompanyGraph) -> None:
        self.store.put(COMPANY_GRAPH_KEY, graph.to_dict())

    def load_company_graph(self) -> CompanyGraph | None:
        data = self.store.get(COMPANY_GRAPH_KEY)
        if data is None:
            return None
        try:
            return CompanyGraph.from_dict(data)
        except _PARSE_ERRORS as e:
            logger.warning(f"Ignoring malformed stored company graph: {e}")
            return None

    def save_user_graph(self, graph: UserGraph) -> None:
        self.store.put(USER_GRAPH_KEY, graph.to_dict())

    def load_user_graph(self) -> UserGraph | None:
        data = self.store.get(USER_GRAPH_KEY)
        if data is None:
            return None
        try:
            return UserGraph.from_dict(data)
        except _PARSE_ERRORS as e:
            logger.warning(f"Ignoring malformed stored user graph: {e}")
            return None

    def save_time_series(self, records: list[TimeSeriesRecord]) -> None:
        self.store.put(TIME_SERIES_KEY, [r.to_dict() for r in records])

    def load_time_series(self) -> list[TimeSeriesRecord]:
        data = self.store.get(TIME_SERIES_KEY)
        if data is None:
            return []
        try:
            return [TimeSeriesRecord.from_dict(r) for r in data]
        except _PARSE_ERRORS as e:
            logger.warning(f"Ignoring malformed stored time series: {e}")
            return []
