"""
Unit tests for knowledge_coverage_graph.utils.stats module.
"""

import threading

from knowledge_coverage_graph.utils.stats import ExecutionStats


class TestExecutionStats:
    """Test ExecutionStats class."""

    def test_initialization(self):
        stats = ExecutionStats(api=0, fallback=2)
        assert stats.get("api") == 0
        assert stats.get("fallback") == 2

    def test_increment(self):
        stats = ExecutionStats(api=0)
        stats.increment("api")
        stats.increment("api", amount=2)
        assert stats["api"] == 3

    def test_unknown_key_starts_at_zero(self):
        stats = ExecutionStats()
        stats.increment("fallback")
        assert stats.get("fallback") == 1

    def test_thread_safety(self):
        stats = ExecutionStats(counter=0)

        def increment_many():
            for _ in range(1000):
                stats.increment("counter")

        threads = [threading.Thread(target=increment_many) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert stats.get("counter") == 10000

    def test_to_dict_and_reset(self):
        stats = ExecutionStats(api=1, fallback=2)
        assert stats.to_dict() == {"api": 1, "fallback": 2}
        stats.reset()
        assert stats.to_dict() == {"api": 0, "fallback": 0}
