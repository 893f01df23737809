"""
Tests for the coverage time-series tracker.
"""

from datetime import timedelta

import pytest

from knowledge_coverage_graph.graph.models import OverlapAnalysis
from knowledge_coverage_graph.tracking import (
    TimeSeriesRecord,
    TimeSeriesTracker,
    change_rate,
    classify_trend,
)


def _analysis(coverage_rate, total=20):
    overlap = round(total * coverage_rate / 100)
    return OverlapAnalysis(
        total_nodes=total,
        user_only=total - overlap,
        company_only=5,
        overlap=overlap,
        coverage_rate=coverage_rate,
    )


@pytest.fixture
def tracker(clock):
    return TimeSeriesTracker(clock=clock)


def _feed(tracker, clock, rates, step=timedelta(hours=1)):
    for rate in rates:
        tracker.add_record(_analysis(rate), 0.8)
        clock.now += step


class TestAddRecord:
    def test_snapshot_fields(self, tracker, clock):
        record = tracker.add_record(_analysis(25), 0.7, notes="first run")

        assert record.timestamp == clock.now
        assert record.coverage_rate == 25
        assert record.total_user_nodes == 20
        assert record.covered_nodes == 5
        assert record.uncovered_nodes == 15
        assert record.threshold_used == 0.7
        assert record.notes == "first run"

    def test_ring_buffer_evicts_oldest(self, clock):
        tracker = TimeSeriesTracker(retention=3, clock=clock)
        _feed(tracker, clock, [10, 20, 30, 40])

        assert len(tracker) == 3
        assert [r.coverage_rate for r in tracker.records] == [20, 30, 40]

    def test_default_retention(self, tracker, clock):
        _feed(tracker, clock, range(105))
        assert len(tracker) == 100
        assert tracker.records[0].coverage_rate == 5

    def test_invalid_retention(self):
        with pytest.raises(ValueError):
            TimeSeriesTracker(retention=0)

    def test_resume_from_records(self, tracker, clock):
        _feed(tracker, clock, [10, 20])
        resumed = TimeSeriesTracker(clock=clock, records=tracker.records)
        assert resumed.records == tracker.records


class TestTrend:
    def test_increasing_series(self, tracker, clock):
        _feed(tracker, clock, [20, 25, 35])
        trend = tracker.trend()

        assert trend.trend == "increasing"
        assert trend.change_rate > 10
        assert trend.change_rate == pytest.approx(75.0)
        assert trend.significant is True

    def test_decreasing(self, tracker, clock):
        _feed(tracker, clock, [50, 40])
        trend = tracker.trend()
        assert trend.trend == "decreasing"
        assert trend.change_rate == pytest.approx(-20.0)
        assert trend.significant is True

    def test_stable(self, tracker, clock):
        _feed(tracker, clock, [50, 52])
        trend = tracker.trend()
        assert trend.trend == "stable"
        assert trend.significant is False

    def test_moderate_change_not_significant(self, tracker, clock):
        _feed(tracker, clock, [50, 54])
        trend = tracker.trend()
        assert trend.trend == "increasing"
        assert trend.significant is False

    def test_uses_last_five_records(self, tracker, clock):
        _feed(tracker, clock, [10, 50, 50, 50, 50, 50])
        trend = tracker.trend()
        assert trend.trend == "stable"
        assert trend.change_rate == 0.0

    @pytest.mark.parametrize("rates", [[], [40]])
    def test_too_few_records(self, tracker, clock, rates):
        _feed(tracker, clock, rates)
        trend = tracker.trend()
        assert (trend.trend, trend.change_rate, trend.significant) == ("stable", 0.0, False)

    def test_zero_baseline(self, tracker, clock):
        _feed(tracker, clock, [0, 30])
        trend = tracker.trend()
        assert trend.change_rate == 100.0
        assert trend.trend == "increasing"

    def test_zero_to_zero(self, tracker, clock):
        _feed(tracker, clock, [0, 0])
        assert tracker.trend().trend == "stable"


class TestHelpers:
    def test_change_rate(self):
        assert change_rate(20, 35) == pytest.approx(75.0)
        assert change_rate(0, 0) == 0.0
        assert change_rate(0, 5) == 100.0

    @pytest.mark.parametrize(
        "rate,expected",
        [(5.0, "stable"), (5.1, "increasing"), (-5.0, "stable"), (-5.1, "decreasing")],
    )
    def test_classify_boundaries(self, rate, expected):
        assert classify_trend(rate) == expected


class TestQueries:
    def test_get_records_newest_first(self, tracker, clock):
        _feed(tracker, clock, [10, 20, 30])
        assert [r.coverage_rate for r in tracker.get_records()] == [30, 20, 10]

    def test_get_records_date_range_and_limit(self, tracker, clock):
        start = clock.now
        _feed(tracker, clock, [10, 20, 30, 40])

        in_range = tracker.get_records(
            from_date=start + timedelta(hours=1), to_date=start + timedelta(hours=2)
        )
        assert [r.coverage_rate for r in in_range] == [30, 20]
        assert [r.coverage_rate for r in tracker.get_records(limit=2)] == [40, 30]

    def test_same_timestamp_keeps_append_order(self, tracker):
        tracker.add_record(_analysis(10), 0.8)
        tracker.add_record(_analysis(20), 0.8)
        assert [r.coverage_rate for r in tracker.get_records()] == [20, 10]

    def test_coverage_trend_chronological(self, tracker, clock):
        _feed(tracker, clock, [10, 20], step=timedelta(days=20))
        _feed(tracker, clock, [30], step=timedelta(days=1))

        points = tracker.coverage_trend(days_back=30)
        assert [p["coverage"] for p in points] == [20, 30]
        assert points[0]["date"] < points[1]["date"]

    def test_latest_record(self, tracker, clock):
        assert tracker.latest_record() is None
        _feed(tracker, clock, [10, 20])
        assert tracker.latest_record().coverage_rate == 20

    def test_stats(self, tracker, clock):
        _feed(tracker, clock, [10, 20, 30])
        assert tracker.stats() == {
            "totalRecords": 3,
            "avgCoverage": 20.0,
            "minCoverage": 10,
            "maxCoverage": 30,
            "coverageStdDev": 8.16,
        }

    def test_stats_empty(self, tracker):
        assert tracker.stats()["totalRecords"] == 0
        assert tracker.stats()["avgCoverage"] == 0

    def test_clear(self, tracker, clock):
        _feed(tracker, clock, [10])
        tracker.clear()
        assert len(tracker) == 0
        assert tracker.trend().trend == "stable"


class TestSerialization:
    def test_record_round_trip(self, tracker):
        record = tracker.add_record(_analysis(25), 0.8)
        assert TimeSeriesRecord.from_dict(record.to_dict()) == record

    def test_record_keys(self, tracker):
        data = tracker.add_record(_analysis(25), 0.8).to_dict()
        assert data["coverageRate"] == 25
        assert data["thresholdUsed"] == 0.8
