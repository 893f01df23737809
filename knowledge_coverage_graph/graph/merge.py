"""
Merge the company and user graphs by embedding similarity.

Each user question is compared against every company knowledge node. A
question whose best available match clears the threshold becomes a `both`
node linked to that knowledge node; the rest stay `user` nodes. Coverage rate
is the share of questions that found a match.

Each question keeps only its single best match, and several questions may
match the same knowledge node. Overlap is therefore bounded by the number of
questions, and it never grows with the threshold.
"""

import logging

from knowledge_coverage_graph.constants import DEFAULT_SIMILARITY_THRESHOLD
from knowledge_coverage_graph.embeddings.openai_client import Embedder
from knowledge_coverage_graph.graph.company import CompanyGraph
from knowledge_coverage_graph.graph.models import (
    CompanyNode,
    Edge,
    MergedNode,
    MergeResult,
    NodeKind,
    OverlapAnalysis,
    QuestionNode,
    SimilarityMatch,
)
from knowledge_coverage_graph.graph.user import UserGraph
from knowledge_coverage_graph.similarity.vector_index import IndexItem, VectorIndex

logger = logging.getLogger(__name__)


def knowledge_text(node: CompanyNode) -> str:
    """Text embedded for a knowledge node: name, description, tags."""
    return " ".join(part for part in (node.name, node.description, " ".join(node.tags)) if part)


def question_text(question: QuestionNode) -> str:
    """Text embedded for a question: content plus keywords."""
    return " ".join(part for part in (question.content, " ".join(question.keywords)) if part)


def validate_threshold(threshold: float) -> float:
    if not 0.0 < threshold < 1.0:
        raise ValueError(f"threshold must be in (0, 1), got {threshold}")
    return float(threshold)


class MergeEngine:
    """Matches user questions to company knowledge and builds the merged graph."""

    def __init__(self, embedder: Embedder):
        """
        Args:
            embedder: Provider for both knowledge and question texts
        """
        self._embedder = embedder

    def compute_matches(
        self,
        company_graph: CompanyGraph,
        user_graph: UserGraph,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> list[SimilarityMatch]:
        """
        Best knowledge match above `threshold` for each question.

        Several questions may share the same knowledge node.

        Returns:
            Matches in question order
        """
        threshold = validate_threshold(threshold)
        knowledge = company_graph.knowledge_nodes()
        questions = user_graph.questions
        if not knowledge or not questions:
            return []

        # Fresh index per run; no state leaks between merges
        index = VectorIndex(self._embedder)
        index.batch_add(
            [
                IndexItem(text=knowledge_text(n), origin_type="company", metadata={"node_id": n.id})
                for n in knowledge
            ]
        )

        matches: list[SimilarityMatch] = []
        for question in questions:
            hits = index.find_most_similar(
                question_text(question), threshold=threshold, origin_type="company", limit=1
            )
            if hits:
                best = hits[0]
                matches.append(
                    SimilarityMatch(question.id, best.record.metadata["node_id"], best.similarity)
                )
        return matches

    def merge(
        self,
        company_graph: CompanyGraph,
        user_graph: UserGraph,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> MergeResult:
        """
        Build the merged graph and its overlap analysis.

        Args:
            company_graph: Company knowledge graph
            user_graph: User question graph
            threshold: Minimum cosine similarity for a match, in (0, 1)

        Returns:
            MergeResult with company nodes first, then question nodes
        """
        threshold = validate_threshold(threshold)
        matches = self.compute_matches(company_graph, user_graph, threshold)
        by_user = {m.user_id: m for m in matches}

        nodes: list[MergedNode] = [
            MergedNode(id=n.id, kind=n.kind, name=n.name, source="company", company=n)
            for n in company_graph.nodes
        ]
        links: list[Edge] = list(company_graph.edges)
        links.extend(user_graph.related_edges())

        for question in user_graph.questions:
            match = by_user.get(question.id)
            if match is None:
                nodes.append(
                    MergedNode(
                        id=question.id,
                        kind=NodeKind.QUESTION,
                        name=question.content,
                        source="user",
                        question=question,
                    )
                )
                continue

            nodes.append(
                MergedNode(
                    id=question.id,
                    kind=NodeKind.QUESTION,
                    name=question.content,
                    source="both",
                    overlap_score=match.similarity,
                    matched_id=match.company_id,
                    company=company_graph.node(match.company_id),
                    question=question,
                )
            )
            links.append(Edge(question.id, match.company_id, "match", match.similarity))

        total_user_nodes = len(user_graph.questions)
        overlap = len(matches)
        analysis = OverlapAnalysis(
            total_nodes=total_user_nodes + len(company_graph.nodes) - overlap,
            user_only=total_user_nodes - overlap,
            company_only=len(company_graph.nodes),
            overlap=overlap,
            coverage_rate=OverlapAnalysis.coverage_rate_for(overlap, total_user_nodes),
        )

        logger.info(
            f"Merged graph at threshold {threshold}: {overlap}/{total_user_nodes} questions "
            f"covered ({analysis.coverage_rate}%), {len(nodes)} nodes, {len(links)} links"
        )
        return MergeResult(
            nodes=tuple(nodes),
            links=tuple(links),
            overlap_analysis=analysis,
            matches=tuple(matches),
            threshold=threshold,
        )
