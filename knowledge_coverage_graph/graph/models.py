"""
Data models for the company graph, the user graph and their merge.

Graph values are frozen dataclasses: builders assemble them once and hand out
the finished value. `to_dict()` methods produce the camelCase JSON shape the
visualization layer consumes; `from_dict()` methods read it back for
persistence.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal

Source = Literal["user", "company", "both"]
Sentiment = Literal["positive", "neutral", "negative"]

SENTIMENTS = ("positive", "neutral", "negative")


class NodeKind(str, Enum):
    """Kinds of node across both graphs."""

    PRODUCT = "product"
    CATEGORY = "category"
    KNOWLEDGE = "knowledge"
    QUESTION = "question"
    KEYWORD = "keyword"


def unique_tags(tags) -> tuple[str, ...]:
    """Lowercased, stripped, de-duplicated tags in first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or ():
        if not isinstance(tag, str):
            continue
        normalized = tag.strip().lower()
        if normalized:
            seen.setdefault(normalized, None)
    return tuple(seen)


def optional_float(value: Any) -> float | None:
    """float(value), or None for a missing or blank value."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return float(value)


# =============================================================================
# SOURCE RECORDS
# =============================================================================


@dataclass(frozen=True)
class KnowledgeDocument:
    """A knowledge-base article attached to a product."""

    title: str
    content: str = ""
    tags: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "KnowledgeDocument":
        return cls(
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            tags=tuple(t for t in (data.get("tags") or ()) if isinstance(t, str)),
        )


@dataclass(frozen=True)
class Product:
    """A product with its knowledge base, as supplied by the product store."""

    id: str
    name: str
    description: str = ""
    knowledge_base: tuple[KnowledgeDocument, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        docs = data.get("knowledgeBase", data.get("knowledge_base")) or []
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            description=str(data.get("description") or ""),
            knowledge_base=tuple(KnowledgeDocument.from_dict(d) for d in docs),
        )


@dataclass(frozen=True)
class QuestionEvent:
    """One logged user question."""

    content: str
    keywords: tuple[str, ...] = ()
    category: str = ""
    sentiment: Sentiment = "neutral"
    satisfaction: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionEvent":
        sentiment = data.get("sentiment") or "neutral"
        return cls(
            content=str(data["content"]),
            keywords=tuple(k for k in (data.get("keywords") or ()) if isinstance(k, str)),
            category=str(data.get("category") or ""),
            sentiment=sentiment if sentiment in SENTIMENTS else "neutral",
            satisfaction=optional_float(data.get("satisfaction")),
        )


# =============================================================================
# GRAPH ELEMENTS
# =============================================================================


@dataclass(frozen=True)
class Edge:
    """A weighted, typed link between two node ids."""

    source: str
    target: str
    type: str
    weight: float = 1.0

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Edge":
        return cls(
            source=str(data["source"]),
            target=str(data["target"]),
            type=str(data.get("type") or "related"),
            weight=float(data.get("weight", 1.0)),
        )


@dataclass(frozen=True)
class CompanyNode:
    """Product, category or knowledge node of the company graph."""

    id: str
    kind: NodeKind
    name: str
    description: str = ""
    tags: tuple[str, ...] = ()
    product_id: str | None = None
    parent_id: str | None = None
    child_ids: tuple[str, ...] = ()
    coverage: int = 0
    color: str = "#6B7280"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "productId": self.product_id,
            "parentId": self.parent_id,
            "childIds": list(self.child_ids),
            "coverage": self.coverage,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompanyNode":
        return cls(
            id=str(data["id"]),
            kind=NodeKind(data["kind"]),
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            tags=tuple(data.get("tags") or ()),
            product_id=data.get("productId"),
            parent_id=data.get("parentId"),
            child_ids=tuple(data.get("childIds") or ()),
            coverage=int(data.get("coverage", 0)),
            color=str(data.get("color") or "#6B7280"),
        )


@dataclass(frozen=True)
class QuestionNode:
    """A distinct user question with its running frequency."""

    id: str
    content: str
    keywords: tuple[str, ...]
    frequency: int
    category: str
    sentiment: Sentiment
    last_asked: datetime
    related_ids: tuple[str, ...] = ()
    satisfaction: float | None = None
    created_order: int = 0

    @property
    def kind(self) -> NodeKind:
        return NodeKind.QUESTION

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": NodeKind.QUESTION.value,
            "content": self.content,
            "keywords": list(self.keywords),
            "frequency": self.frequency,
            "category": self.category,
            "sentiment": self.sentiment,
            "lastAsked": self.last_asked.isoformat(),
            "relatedIds": list(self.related_ids),
            "satisfaction": self.satisfaction,
            "createdOrder": self.created_order,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionNode":
        frequency = int(data.get("frequency", 1))
        if frequency < 1:
            raise ValueError(f"frequency must be >= 1, got {frequency}")
        return cls(
            id=str(data["id"]),
            content=str(data["content"]),
            keywords=tuple(data.get("keywords") or ()),
            frequency=frequency,
            category=str(data.get("category") or ""),
            sentiment=data.get("sentiment") or "neutral",
            last_asked=datetime.fromisoformat(data["lastAsked"]),
            related_ids=tuple(data.get("relatedIds") or ()),
            satisfaction=optional_float(data.get("satisfaction")),
            created_order=int(data.get("createdOrder", 0)),
        )


# =============================================================================
# MERGE
# =============================================================================


@dataclass(frozen=True)
class SimilarityMatch:
    """Best company knowledge match for one user question."""

    user_id: str
    company_id: str
    similarity: float


@dataclass(frozen=True)
class MergedNode:
    """
    Common envelope for every node in the merged graph.

    Company nodes carry `company`, user nodes carry `question`. `source="both"`
    nodes carry both: the question and the knowledge node it matched.
    """

    id: str
    kind: NodeKind
    name: str
    source: Source
    overlap_score: float | None = None
    matched_id: str | None = None
    company: CompanyNode | None = None
    question: QuestionNode | None = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "source": self.source,
        }
        if self.overlap_score is not None:
            data["overlapScore"] = self.overlap_score
        if self.matched_id is not None:
            data["matchedId"] = self.matched_id
        if self.source == "both":
            data["details"] = {
                "user": self.question.to_dict() if self.question else None,
                "company": self.company.to_dict() if self.company else None,
                "similarity": self.overlap_score,
            }
        elif self.company is not None:
            data["details"] = self.company.to_dict()
        elif self.question is not None:
            data["details"] = self.question.to_dict()
        return data


@dataclass(frozen=True)
class OverlapAnalysis:
    """Summary counts of one merge run."""

    total_nodes: int = 0
    user_only: int = 0
    company_only: int = 0
    overlap: int = 0
    coverage_rate: int = 0

    @staticmethod
    def coverage_rate_for(overlap: int, total_user_nodes: int) -> int:
        """round(overlap / total_user_nodes * 100), 0 with no user nodes."""
        if total_user_nodes <= 0:
            return 0
        return round(overlap / total_user_nodes * 100)

    @property
    def total_user_nodes(self) -> int:
        return self.user_only + self.overlap

    def to_dict(self) -> dict:
        return {
            "totalNodes": self.total_nodes,
            "userOnly": self.user_only,
            "companyOnly": self.company_only,
            "overlap": self.overlap,
            "coverageRate": self.coverage_rate,
        }


@dataclass(frozen=True)
class MergeResult:
    """Merged graph plus its overlap summary."""

    nodes: tuple[MergedNode, ...] = ()
    links: tuple[Edge, ...] = ()
    overlap_analysis: OverlapAnalysis = field(default_factory=OverlapAnalysis)
    matches: tuple[SimilarityMatch, ...] = ()
    threshold: float = 0.8

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [e.to_dict() for e in self.links],
            "overlapAnalysis": self.overlap_analysis.to_dict(),
            "threshold": self.threshold,
        }


# =============================================================================
# ANALYSIS
# =============================================================================


@dataclass
class CentralityScores:
    """Per-node centrality measures, each normalized to [0, 1]."""

    degree: dict[str, float] = field(default_factory=dict)
    closeness: dict[str, float] = field(default_factory=dict)
    betweenness: dict[str, float] = field(default_factory=dict)
    clustering: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "degree": dict(self.degree),
            "closeness": dict(self.closeness),
            "betweenness": dict(self.betweenness),
            "clustering": dict(self.clustering),
        }


@dataclass
class Community:
    """A label-propagation community."""

    id: str
    node_ids: list[str]
    size: int
    density: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nodeIds": list(self.node_ids),
            "size": self.size,
            "density": self.density,
        }


@dataclass
class KeyInsight:
    """A notable node or community."""

    type: str  # hub_node, bridge_node, cluster_center, community
    node_id: str
    value: float
    description: str

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "nodeId": self.node_id,
            "value": self.value,
            "description": self.description,
        }


@dataclass
class BlindSpot:
    """A likely gap in knowledge coverage."""

    node_id: str
    type: str  # isolated, bridge_gap, community_gap
    severity: str  # low, medium, high
    description: str

    def to_dict(self) -> dict:
        return {
            "nodeId": self.node_id,
            "type": self.type,
            "severity": self.severity,
            "description": self.description,
        }


@dataclass
class GraphAnalysisResult:
    """Everything the analysis service derives from a merged graph."""

    centralities: CentralityScores = field(default_factory=CentralityScores)
    communities: list[Community] = field(default_factory=list)
    key_insights: list[KeyInsight] = field(default_factory=list)
    blind_spots: list[BlindSpot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "centralities": self.centralities.to_dict(),
            "communities": [c.to_dict() for c in self.communities],
            "keyInsights": [i.to_dict() for i in self.key_insights],
            "blindSpots": [b.to_dict() for b in self.blind_spots],
        }
