"""Company and user graphs, their merge, and analysis of the merged graph."""

from knowledge_coverage_graph.graph.analysis import GraphAnalysisService
from knowledge_coverage_graph.graph.company import CompanyGraph, CompanyGraphBuilder
from knowledge_coverage_graph.graph.merge import MergeEngine
from knowledge_coverage_graph.graph.models import (
    BlindSpot,
    CentralityScores,
    Community,
    CompanyNode,
    Edge,
    GraphAnalysisResult,
    KeyInsight,
    KnowledgeDocument,
    MergedNode,
    MergeResult,
    NodeKind,
    OverlapAnalysis,
    Product,
    QuestionEvent,
    QuestionNode,
    SimilarityMatch,
)
from knowledge_coverage_graph.graph.user import UserGraph, UserGraphBuilder

__all__ = [
    "BlindSpot",
    "CentralityScores",
    "Community",
    "CompanyGraph",
    "CompanyGraphBuilder",
    "CompanyNode",
    "Edge",
    "GraphAnalysisResult",
    "GraphAnalysisService",
    "KeyInsight",
    "KnowledgeDocument",
    "MergeEngine",
    "MergeResult",
    "MergedNode",
    "NodeKind",
    "OverlapAnalysis",
    "Product",
    "QuestionEvent",
    "QuestionNode",
    "SimilarityMatch",
    "UserGraph",
    "UserGraphBuilder",
]
