"""Coverage history across merge runs."""

from knowledge_coverage_graph.tracking.time_series import (
    TimeSeriesRecord,
    TimeSeriesTracker,
    TrendAnalysis,
    change_rate,
    classify_trend,
)

__all__ = [
    "TimeSeriesRecord",
    "TimeSeriesTracker",
    "TrendAnalysis",
    "change_rate",
    "classify_trend",
]
