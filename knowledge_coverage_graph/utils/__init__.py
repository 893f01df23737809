"""Shared utilities: counters and tqdm-aware logging."""

from knowledge_coverage_graph.utils.stats import ExecutionStats
from knowledge_coverage_graph.utils.tqdm_logging import TqdmLoggingHandler

__all__ = ["ExecutionStats", "TqdmLoggingHandler"]
