"""
End-to-end coverage run.

products + question events
    -> company graph, user graph
    -> merged graph + overlap analysis
    -> centralities, communities, blind spots
    -> coverage history + trend

Every run builds fresh graph values; the only state carried between runs is
the time series (and whatever the optional store holds).
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from knowledge_coverage_graph.constants import DEFAULT_SIMILARITY_THRESHOLD
from knowledge_coverage_graph.embeddings.openai_client import Embedder
from knowledge_coverage_graph.graph.analysis import GraphAnalysisService
from knowledge_coverage_graph.graph.company import CompanyGraph, CompanyGraphBuilder
from knowledge_coverage_graph.graph.merge import MergeEngine
from knowledge_coverage_graph.graph.models import (
    GraphAnalysisResult,
    MergeResult,
    Product,
    QuestionEvent,
)
from knowledge_coverage_graph.graph.user import UserGraph, UserGraphBuilder
from knowledge_coverage_graph.store import GraphStore
from knowledge_coverage_graph.tracking.time_series import (
    TimeSeriesRecord,
    TimeSeriesTracker,
    TrendAnalysis,
)

logger = logging.getLogger(__name__)


@dataclass
class CoverageReport:
    """Everything one coverage run produces."""

    company_graph: CompanyGraph
    user_graph: UserGraph
    merge: MergeResult
    analysis: GraphAnalysisResult
    record: TimeSeriesRecord
    trend: TrendAnalysis

    def to_dict(self) -> dict:
        company_stats = self.company_graph.stats()
        user_stats = self.user_graph.stats()
        return {
            "merge": self.merge.to_dict(),
            "analysis": self.analysis.to_dict(),
            "companyStats": {
                "productCount": company_stats.product_count,
                "knowledgeCount": company_stats.knowledge_count,
                "categoryCount": company_stats.category_count,
                "avgCoverage": company_stats.avg_coverage,
            },
            "userStats": {
                "totalQuestions": user_stats.total_questions,
                "totalKeywords": user_stats.total_keywords,
                "avgSatisfaction": user_stats.avg_satisfaction,
                "negativeRate": user_stats.negative_rate,
            },
            "record": self.record.to_dict(),
            "trend": self.trend.to_dict(),
        }


class CoveragePipeline:
    """Wires the builders, merge engine, analysis and tracker together."""

    def __init__(
        self,
        embedder: Embedder,
        store: GraphStore | None = None,
        tracker: TimeSeriesTracker | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            embedder: Embedding provider used for every text
            store: Optional persistence; graphs and history are saved after each run
            tracker: Coverage history; restored from `store` when omitted
            clock: Current-time source for question and history timestamps
        """
        self.store = store
        self.clock = clock
        self.company_builder = CompanyGraphBuilder()
        self.merge_engine = MergeEngine(embedder)
        self.analysis = GraphAnalysisService()
        if tracker is None:
            history = store.load_time_series() if store is not None else []
            tracker = TimeSeriesTracker(clock=clock, records=history)
        self.tracker = tracker

    def build_user_graph(self, question_events: Iterable[QuestionEvent]) -> UserGraph:
        builder = UserGraphBuilder(clock=self.clock)
        builder.record_events(question_events)
        return builder.snapshot()

    def run(
        self,
        products: Iterable[Product],
        question_events: Iterable[QuestionEvent],
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        notes: str | None = None,
    ) -> CoverageReport:
        """
        Run one full coverage analysis.

        Args:
            products: Product records with their knowledge bases
            question_events: Logged user questions, oldest first
            threshold: Minimum similarity for a question to count as covered
            notes: Free text stored with the history record

        Returns:
            CoverageReport
        """
        company_graph = self.company_builder.rebuild(products)
        user_graph = self.build_user_graph(question_events)
        logger.info(
            f"Built company graph ({len(company_graph.nodes)} nodes) and "
            f"user graph ({len(user_graph.questions)} questions)"
        )

        merge = self.merge_engine.merge(company_graph, user_graph, threshold)
        analysis = self.analysis.analyze_merge(merge)
        record = self.tracker.add_record(merge.overlap_analysis, threshold, notes)
        trend = self.tracker.trend()
        logger.info(
            f"Coverage {record.coverage_rate}% (trend: {trend.trend}, "
            f"change {trend.change_rate:+.1f}%)"
        )

        if self.store is not None:
            self.store.save_company_graph(company_graph)
            self.store.save_user_graph(user_graph)
            self.store.save_time_series(self.tracker.records)

        return CoverageReport(
            company_graph=company_graph,
            user_graph=user_graph,
            merge=merge,
            analysis=analysis,
            record=record,
            trend=trend,
        )
