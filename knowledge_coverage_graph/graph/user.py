"""
User question graph.

Built incrementally from logged question events:

    question --frequency--> keyword
    question --category---> category
    question --related----> question   (>= 2 shared keywords)

A question's identity is its normalized text, so asking the same thing again
bumps `frequency` instead of creating a new node. Keyword and category
counters are running totals across every event and are never decremented.
"""

import hashlib
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from knowledge_coverage_graph.constants import MAX_RELATED_QUESTIONS, MIN_SHARED_KEYWORDS
from knowledge_coverage_graph.graph.models import (
    SENTIMENTS,
    Edge,
    QuestionEvent,
    QuestionNode,
    Sentiment,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_question(content: str) -> str:
    """Collapse whitespace and lowercase."""
    return " ".join(content.split()).lower()


def question_id(content: str) -> str:
    """Stable id for a question text."""
    digest = hashlib.sha1(normalize_question(content).encode("utf-8")).hexdigest()
    return f"q_{digest[:12]}"


def keyword_node_id(keyword: str) -> str:
    return f"kw_{keyword}"


def user_category_node_id(category: str) -> str:
    return f"ucat_{category}"


def _clean_keywords(keywords: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for keyword in keywords or ():
        if isinstance(keyword, str) and keyword.strip():
            seen.setdefault(keyword.strip(), None)
    return tuple(seen)


@dataclass
class UserGraphStats:
    """Summary of user questions."""

    total_questions: int = 0
    total_keywords: int = 0
    top_keywords: list[dict] = field(default_factory=list)
    top_questions: list[dict] = field(default_factory=list)
    category_distribution: list[dict] = field(default_factory=list)
    avg_satisfaction: float = 0.0
    negative_rate: int = 0


@dataclass(frozen=True)
class UserGraph:
    """Immutable snapshot of the user question graph."""

    questions: tuple[QuestionNode, ...] = ()
    keyword_counts: dict[str, int] = field(default_factory=dict)
    category_counts: dict[str, int] = field(default_factory=dict)

    def question(self, qid: str) -> QuestionNode | None:
        for q in self.questions:
            if q.id == qid:
                return q
        return None

    def is_empty(self) -> bool:
        return not self.questions

    def edges(self) -> list[Edge]:
        """Question-keyword, question-category and question-question links."""
        edges: list[Edge] = []
        for q in self.questions:
            for keyword in q.keywords:
                edges.append(Edge(q.id, keyword_node_id(keyword), "frequency", float(q.frequency)))
            if q.category:
                edges.append(Edge(q.id, user_category_node_id(q.category), "category", 1.0))
        edges.extend(self.related_edges())
        return edges

    def related_edges(self) -> list[Edge]:
        """Undirected question-question links, one per pair."""
        by_id = {q.id: q for q in self.questions}
        seen: set[frozenset[str]] = set()
        edges = []
        for q in self.questions:
            for rid in q.related_ids:
                pair = frozenset((q.id, rid))
                if rid not in by_id or pair in seen:
                    continue
                seen.add(pair)
                shared = len(set(q.keywords) & set(by_id[rid].keywords))
                edges.append(Edge(q.id, rid, "related", float(shared)))
        return edges

    def graph_data(self) -> dict:
        """Nodes and links for display, keyword and category nodes included."""
        nodes = [
            {"id": q.id, "kind": "question", "name": q.content, "value": q.frequency}
            for q in self.questions
        ]
        nodes.extend(
            {"id": keyword_node_id(k), "kind": "keyword", "name": k, "value": count}
            for k, count in self.keyword_counts.items()
        )
        nodes.extend(
            {"id": user_category_node_id(c), "kind": "category", "name": c, "value": count}
            for c, count in self.category_counts.items()
        )
        return {"nodes": nodes, "links": [e.to_dict() for e in self.edges()]}

    def stats(self) -> UserGraphStats:
        """Top keywords/questions, category mix, satisfaction and negativity."""
        top_keywords = sorted(self.keyword_counts.items(), key=lambda kv: kv[1], reverse=True)
        top_questions = sorted(self.questions, key=lambda q: q.frequency, reverse=True)
        categories = sorted(self.category_counts.items(), key=lambda kv: kv[1], reverse=True)

        rated = [q.satisfaction for q in self.questions if q.satisfaction is not None]
        negative = sum(1 for s in rated if s < 3)
        total = len(self.questions)

        return UserGraphStats(
            total_questions=total,
            total_keywords=len(self.keyword_counts),
            top_keywords=[{"keyword": k, "count": c} for k, c in top_keywords[:20]],
            top_questions=[{"question": q.content, "count": q.frequency} for q in top_questions[:10]],
            category_distribution=[{"category": c, "count": n} for c, n in categories],
            avg_satisfaction=round(sum(rated) / len(rated), 1) if rated else 0.0,
            negative_rate=round(negative / total * 100) if total else 0,
        )

    def to_dict(self) -> dict:
        return {
            "questions": [q.to_dict() for q in self.questions],
            "keywords": dict(self.keyword_counts),
            "categoryStats": dict(self.category_counts),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserGraph":
        questions = sorted(
            (QuestionNode.from_dict(q) for q in data["questions"]),
            key=lambda q: q.created_order,
        )
        return cls(
            questions=tuple(questions),
            keyword_counts={str(k): int(v) for k, v in data.get("keywords", {}).items()},
            category_counts={str(k): int(v) for k, v in data.get("categoryStats", {}).items()},
        )


class UserGraphBuilder:
    """Accumulates question events into a UserGraph."""

    def __init__(self, clock: Clock | None = None):
        """
        Args:
            clock: Returns the current time; defaults to UTC now
        """
        self._clock = clock or utc_now
        self._questions: dict[str, QuestionNode] = {}
        self._keywords: dict[str, int] = {}
        self._categories: dict[str, int] = {}
        self._next_order = 0

    @classmethod
    def from_snapshot(cls, graph: UserGraph, clock: Clock | None = None) -> "UserGraphBuilder":
        """Resume accumulating from a stored snapshot."""
        builder = cls(clock=clock)
        for q in graph.questions:
            builder._questions[q.id] = q
        builder._keywords = dict(graph.keyword_counts)
        builder._categories = dict(graph.category_counts)
        builder._next_order = max((q.created_order for q in graph.questions), default=-1) + 1
        return builder

    def __len__(self) -> int:
        return len(self._questions)

    def record_question(
        self,
        content: str,
        keywords: Iterable[str] = (),
        category: str = "",
        sentiment: Sentiment = "neutral",
        satisfaction: float | None = None,
    ) -> str:
        """
        Record one occurrence of a question.

        Returns:
            The question id (same id for repeats of the same text)
        """
        keywords = _clean_keywords(keywords)
        if sentiment not in SENTIMENTS:
            logger.debug(f"Unknown sentiment {sentiment!r}, recording as neutral")
            sentiment = "neutral"

        qid = question_id(content)
        now = self._clock()
        existing = self._questions.get(qid)

        if existing is None:
            self._questions[qid] = QuestionNode(
                id=qid,
                content=content.strip(),
                keywords=keywords,
                frequency=1,
                category=category,
                sentiment=sentiment,
                last_asked=now,
                satisfaction=satisfaction,
                created_order=self._next_order,
            )
            self._next_order += 1
        else:
            self._questions[qid] = replace(
                existing, frequency=existing.frequency + 1, last_asked=now
            )

        self._count_keywords(keywords)
        if category:
            self._categories[category] = self._categories.get(category, 0) + 1

        self._update_related(qid)
        return qid

    def record_event(self, event: QuestionEvent) -> str:
        return self.record_question(
            event.content,
            event.keywords,
            event.category,
            event.sentiment,
            event.satisfaction,
        )

    def record_events(self, events: Iterable[QuestionEvent]) -> list[str]:
        return [self.record_event(e) for e in events]

    def increment_frequency(self, qid: str) -> bool:
        """
        Count a repeat of a known question by id. False if unknown.

        Bumps keyword counters but not the category counter.
        """
        existing = self._questions.get(qid)
        if existing is None:
            return False
        self._questions[qid] = replace(
            existing, frequency=existing.frequency + 1, last_asked=self._clock()
        )
        self._count_keywords(existing.keywords)
        return True

    def _count_keywords(self, keywords: Iterable[str]) -> None:
        for keyword in keywords:
            self._keywords[keyword] = self._keywords.get(keyword, 0) + 1

    def _update_related(self, qid: str) -> None:
        """Top questions sharing at least two keywords; creation order breaks ties."""
        question = self._questions[qid]
        keywords = set(question.keywords)

        candidates = []
        for other in self._questions.values():
            if other.id == qid:
                continue
            shared = len(keywords & set(other.keywords))
            if shared >= MIN_SHARED_KEYWORDS:
                candidates.append((-shared, other.created_order, other.id))

        related = tuple(oid for _, _, oid in sorted(candidates)[:MAX_RELATED_QUESTIONS])
        if related != question.related_ids:
            self._questions[qid] = replace(question, related_ids=related)

    def snapshot(self) -> UserGraph:
        """Immutable copy of the current state."""
        questions = sorted(self._questions.values(), key=lambda q: q.created_order)
        return UserGraph(
            questions=tuple(questions),
            keyword_counts=dict(self._keywords),
            category_counts=dict(self._categories),
        )

    def clear(self) -> None:
        self._questions.clear()
        self._keywords.clear()
        self._categories.clear()
        self._next_order = 0
