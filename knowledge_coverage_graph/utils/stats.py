"""
Counter tracking for provider calls and pipeline steps.

A small, lock-guarded counter bag. The analysis itself is single-threaded,
but a provider instance may be shared by callers that embed concurrently.
"""

from threading import Lock


class ExecutionStats:
    """
    Named counters with a lock around every update.

    Example:
        stats = ExecutionStats(api=0, fallback=0)
        stats.increment("fallback")
        stats["fallback"]  # -> 1
    """

    def __init__(self, **initial_values: int):
        self._lock = Lock()
        self._counters: dict[str, int] = dict(initial_values)

    @property
    def lock(self) -> Lock:
        """Get the lock for manual synchronization."""
        return self._lock

    def increment(self, key: str, amount: int = 1) -> None:
        """Increment a counter, creating it at zero if missing."""
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def get(self, key: str, default: int = 0) -> int:
        """Get counter value."""
        return self._counters.get(key, default)

    def reset(self) -> None:
        """Zero every counter."""
        with self._lock:
            for key in self._counters:
                self._counters[key] = 0

    def to_dict(self) -> dict[str, int]:
        """Get all counters as a dictionary."""
        with self._lock:
            return self._counters.copy()

    def __getitem__(self, key: str) -> int:
        return self._counters.get(key, 0)

    def __repr__(self) -> str:
        with self._lock:
            items = ", ".join(f"{k}={v}" for k, v in sorted(self._counters.items()))
            return f"ExecutionStats({items})"
