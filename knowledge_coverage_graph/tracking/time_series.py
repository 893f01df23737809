"""
Coverage rate over successive merge runs.

Records live in a bounded ring: once `retention` is reached the oldest record
is evicted on every append. Records are kept in append order, which is also
chronological order.
"""

import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Literal

import numpy as np

from knowledge_coverage_graph.constants import (
    SIGNIFICANT_CHANGE_PCT,
    TIME_SERIES_RETENTION,
    TREND_CHANGE_PCT,
    TREND_WINDOW,
)
from knowledge_coverage_graph.graph.models import OverlapAnalysis

logger = logging.getLogger(__name__)

Trend = Literal["increasing", "decreasing", "stable"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TimeSeriesRecord:
    """Snapshot of one merge run."""

    timestamp: datetime
    coverage_rate: int
    total_user_nodes: int
    covered_nodes: int
    uncovered_nodes: int
    threshold_used: float
    notes: str | None = None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "coverageRate": self.coverage_rate,
            "totalUserNodes": self.total_user_nodes,
            "coveredNodes": self.covered_nodes,
            "uncoveredNodes": self.uncovered_nodes,
            "thresholdUsed": self.threshold_used,
            "analysisNotes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimeSeriesRecord":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            coverage_rate=int(data["coverageRate"]),
            total_user_nodes=int(data["totalUserNodes"]),
            covered_nodes=int(data["coveredNodes"]),
            uncovered_nodes=int(data["uncoveredNodes"]),
            threshold_used=float(data["thresholdUsed"]),
            notes=data.get("analysisNotes"),
        )


@dataclass(frozen=True)
class TrendAnalysis:
    """Direction of recent coverage change."""

    trend: Trend = "stable"
    change_rate: float = 0.0
    significant: bool = False

    def to_dict(self) -> dict:
        return {
            "trend": self.trend,
            "changeRate": self.change_rate,
            "isSignificant": self.significant,
        }


def change_rate(first: float, last: float) -> float:
    """
    Percent change from `first` to `last`.

    A zero baseline has no defined ratio: no change reads as 0, any rise
    from zero reads as +100.
    """
    if first == 0:
        return 0.0 if last == 0 else 100.0
    return (last - first) / first * 100


def classify_trend(rate: float) -> Trend:
    if rate > TREND_CHANGE_PCT:
        return "increasing"
    if rate < -TREND_CHANGE_PCT:
        return "decreasing"
    return "stable"


class TimeSeriesTracker:
    """Bounded history of coverage rates with trend classification."""

    def __init__(
        self,
        retention: int = TIME_SERIES_RETENTION,
        clock: Callable[[], datetime] | None = None,
        records: Iterable[TimeSeriesRecord] | None = None,
    ):
        """
        Args:
            retention: Maximum records kept (oldest evicted first)
            clock: Returns the current time; defaults to UTC now
            records: Existing history to resume from, oldest first
        """
        if retention < 1:
            raise ValueError(f"retention must be >= 1, got {retention}")
        self.retention = retention
        self._clock = clock or utc_now
        self._records: deque[TimeSeriesRecord] = deque(records or (), maxlen=retention)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[TimeSeriesRecord]:
        """All records, oldest first."""
        return list(self._records)

    def add_record(
        self,
        overlap_analysis: OverlapAnalysis,
        threshold: float,
        notes: str | None = None,
    ) -> TimeSeriesRecord:
        """Append a snapshot of `overlap_analysis` stamped with the current time."""
        record = TimeSeriesRecord(
            timestamp=self._clock(),
            coverage_rate=overlap_analysis.coverage_rate,
            total_user_nodes=overlap_analysis.total_user_nodes,
            covered_nodes=overlap_analysis.overlap,
            uncovered_nodes=overlap_analysis.user_only,
            threshold_used=threshold,
            notes=notes,
        )
        if len(self._records) == self.retention:
            logger.debug(f"Evicting time series record from {self._records[0].timestamp}")
        self._records.append(record)
        return record

    def trend(self) -> TrendAnalysis:
        """Compare the oldest and newest of the most recent records."""
        recent = list(self._records)[-TREND_WINDOW:]
        if len(recent) < 2:
            return TrendAnalysis()

        rate = change_rate(recent[0].coverage_rate, recent[-1].coverage_rate)
        return TrendAnalysis(
            trend=classify_trend(rate),
            change_rate=rate,
            significant=abs(rate) > SIGNIFICANT_CHANGE_PCT,
        )

    def get_records(
        self,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        limit: int | None = None,
    ) -> list[TimeSeriesRecord]:
        """Records within [from_date, to_date], newest first."""
        selected = [
            r
            for r in reversed(self._records)
            if (from_date is None or r.timestamp >= from_date)
            and (to_date is None or r.timestamp <= to_date)
        ]
        # Stable sort keeps later appends first among equal timestamps
        selected.sort(key=lambda r: r.timestamp, reverse=True)
        if limit:
            selected = selected[:limit]
        return selected

    def coverage_trend(self, days_back: int = 30) -> list[dict]:
        """(date, coverage) points for the last `days_back` days, oldest first."""
        cutoff = self._clock() - timedelta(days=days_back)
        return [
            {"date": r.timestamp, "coverage": r.coverage_rate}
            for r in reversed(self.get_records(from_date=cutoff))
        ]

    def latest_record(self) -> TimeSeriesRecord | None:
        return self._records[-1] if self._records else None

    def stats(self) -> dict:
        """Summary of every stored coverage rate."""
        if not self._records:
            return {
                "totalRecords": 0,
                "avgCoverage": 0,
                "minCoverage": 0,
                "maxCoverage": 0,
                "coverageStdDev": 0,
            }

        coverages = np.array([r.coverage_rate for r in self._records], dtype=float)
        return {
            "totalRecords": len(coverages),
            "avgCoverage": round(float(coverages.mean()), 2),
            "minCoverage": int(coverages.min()),
            "maxCoverage": int(coverages.max()),
            "coverageStdDev": round(float(coverages.std()), 2),
        }

    def clear(self) -> None:
        self._records.clear()

    def to_list(self) -> list[dict]:
        return [r.to_dict() for r in self._records]
