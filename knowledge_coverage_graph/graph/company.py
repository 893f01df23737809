"""
Company knowledge graph.

Built from products and their knowledge bases:

    product --contains--> knowledge <--contains-- category

Knowledge documents are classified into a fixed category taxonomy by their
tags. Product coverage is the share of a product's documents that landed in a
real category rather than the fallback. Documents of different products that
share tags are cross-referenced with damped `related` edges.

The builder is pure: `rebuild()` takes a snapshot of products and returns a
new immutable CompanyGraph; nothing is updated in place.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from knowledge_coverage_graph.constants import (
    CATEGORY_EDGE_WEIGHT,
    CROSS_REFERENCE_DAMPING,
    FALLBACK_CATEGORY,
    KNOWLEDGE_DESCRIPTION_CHARS,
    LOW_COVERAGE_THRESHOLD,
    PRODUCT_EDGE_WEIGHT,
)
from knowledge_coverage_graph.graph.models import (
    CompanyNode,
    Edge,
    NodeKind,
    Product,
    unique_tags,
)

logger = logging.getLogger(__name__)

# First matching category wins, so order matters
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "usage_help": ("使用", "教程", "入门", "指南", "how to", "操作", "步骤", "tutorial", "guide"),
    "product_usage": ("功能", "产品", "规格", "参数", "型号", "版本", "feature", "model", "version"),
    "troubleshooting": ("故障", "问题", "错误", "维修", "损坏", "解决", "error", "fault", "repair"),
    "purchase": ("价格", "购买", "付款", "发货", "优惠", "规格", "price", "buy", "payment", "shipping"),
    "account": ("账户", "登录", "密码", "注册", "绑定", "安全", "account", "login", "password"),
    "technical_specs": ("参数", "配置", "系统", "兼容性", "接口", "协议", "config", "protocol"),
}

PRODUCT_COLORS = (
    "#3B82F6",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#8B5CF6",
    "#EC4899",
    "#06B6D4",
    "#84CC16",
    "#F97316",
    "#6366F1",
)
CATEGORY_COLOR = "#6B7280"

# Product description words shorter than this are not used as tags
MIN_DESCRIPTION_TAG_LENGTH = 4


def primary_category(tags: Iterable[str]) -> str:
    """
    Classify a tag set into the fixed taxonomy.

    A category matches when any tag contains any of its keywords.
    """
    tags = [t.lower() for t in tags]
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in tag for tag in tags for keyword in keywords):
            return category
    return FALLBACK_CATEGORY


def category_node_id(category: str) -> str:
    return "cat_" + re.sub(r"\s+", "_", category)


def tags_overlap(tags_a: Iterable[str], tags_b: Iterable[str]) -> int:
    """Count tags of A that contain, or are contained in, some tag of B."""
    tags_b = list(tags_b)
    return sum(1 for a in tags_a if any(a in b or b in a for b in tags_b))


def coverage_suggestions(coverage: int) -> list[str]:
    """Tiered content suggestions for an under-covered product."""
    if coverage < 30:
        return ["Add a basic usage tutorial", "Add a frequently asked questions section"]
    if coverage < 50:
        return ["Document advanced features", "Add a troubleshooting guide"]
    return ["Refine detailed documentation", "Add video tutorials"]


@dataclass
class CompanyGraphStats:
    """Summary of a company graph."""

    product_count: int = 0
    knowledge_count: int = 0
    category_count: int = 0
    total_nodes: int = 0
    total_edges: int = 0
    avg_coverage: int = 0
    top_categories: list[dict] = field(default_factory=list)
    products_with_low_coverage: list[dict] = field(default_factory=list)


@dataclass
class Recommendation:
    """Suggested change to the knowledge base."""

    type: str  # add_knowledge, update_product, create_category
    description: str
    priority: str  # high, medium, low


@dataclass
class KeywordComparison:
    """How well company tags cover the keywords users ask about."""

    total_user_keywords: int = 0
    covered_keywords: int = 0
    coverage_rate: int = 0
    missing_keywords: list[str] = field(default_factory=list)
    uncovered_categories: list[str] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)


@dataclass(frozen=True)
class CompanyGraph:
    """Immutable company graph. Nodes keep creation order."""

    nodes: tuple[CompanyNode, ...] = ()
    edges: tuple[Edge, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "_by_id", {n.id: n for n in self.nodes})

    def node(self, node_id: str) -> CompanyNode | None:
        return self._by_id.get(node_id)

    def nodes_of_kind(self, kind: NodeKind) -> list[CompanyNode]:
        return [n for n in self.nodes if n.kind == kind]

    def knowledge_nodes(self) -> list[CompanyNode]:
        return self.nodes_of_kind(NodeKind.KNOWLEDGE)

    def is_empty(self) -> bool:
        return not self.nodes

    def stats(self) -> CompanyGraphStats:
        """Counts, average product coverage, busiest categories, weakest products."""
        products = self.nodes_of_kind(NodeKind.PRODUCT)
        categories = self.nodes_of_kind(NodeKind.CATEGORY)

        top_categories = sorted(
            (
                {"category": c.name, "count": len(c.child_ids), "coverage": c.coverage}
                for c in categories
            ),
            key=lambda item: item["count"],
            reverse=True,
        )
        low_coverage = [
            {
                "name": p.name,
                "coverage": p.coverage,
                "suggestions": coverage_suggestions(p.coverage),
            }
            for p in products
            if p.coverage < LOW_COVERAGE_THRESHOLD
        ]

        return CompanyGraphStats(
            product_count=len(products),
            knowledge_count=len(self.knowledge_nodes()),
            category_count=len(categories),
            total_nodes=len(self.nodes),
            total_edges=len(self.edges),
            avg_coverage=(
                round(sum(p.coverage for p in products) / len(products)) if products else 0
            ),
            top_categories=top_categories[:10],
            products_with_low_coverage=low_coverage[:5],
        )

    def compare_with_user_keywords(self, keyword_counts: dict[str, int]) -> KeywordComparison:
        """
        Check which user keywords appear among company tags.

        Args:
            keyword_counts: keyword -> number of times users asked about it

        Returns:
            KeywordComparison with coverage, gaps and recommendations
        """
        company_tags = {tag for node in self.nodes for tag in node.tags}

        covered: list[str] = []
        missing: list[str] = []
        for keyword in keyword_counts:
            keyword_lower = keyword.lower()
            if any(tag in keyword_lower or keyword_lower in tag for tag in company_tags):
                covered.append(keyword)
            else:
                missing.append(keyword)

        total = len(keyword_counts)
        coverage_rate = round(len(covered) / total * 100) if total else 0

        present = {n.name for n in self.nodes_of_kind(NodeKind.CATEGORY) if n.child_ids}
        uncovered_categories = [c for c in CATEGORY_KEYWORDS if c not in present]

        recommendations = [
            Recommendation(
                type="add_knowledge",
                description=f'Add a knowledge document about "{keyword}"',
                priority="high" if keyword_counts[keyword] > 5 else "medium",
            )
            for keyword in missing
        ]
        if total and coverage_rate < LOW_COVERAGE_THRESHOLD:
            recommendations.append(
                Recommendation(
                    type="create_category",
                    description="Create new knowledge categories to cover more user questions",
                    priority="high",
                )
            )
        for product in self.nodes_of_kind(NodeKind.PRODUCT):
            if product.coverage < LOW_COVERAGE_THRESHOLD:
                recommendations.append(
                    Recommendation(
                        type="update_product",
                        description=(
                            f'Product "{product.name}" is under-documented; '
                            f"{100 - product.coverage}% of its knowledge is unclassified"
                        ),
                        priority="medium",
                    )
                )

        return KeywordComparison(
            total_user_keywords=total,
            covered_keywords=len(covered),
            coverage_rate=coverage_rate,
            missing_keywords=missing,
            uncovered_categories=uncovered_categories,
            recommendations=recommendations,
        )

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompanyGraph":
        return cls(
            nodes=tuple(CompanyNode.from_dict(n) for n in data["nodes"]),
            edges=tuple(Edge.from_dict(e) for e in data["edges"]),
        )


class CompanyGraphBuilder:
    """Builds a CompanyGraph from product records."""

    def rebuild(self, products: Iterable[Product]) -> CompanyGraph:
        """
        Build a fresh graph from a snapshot of products.

        Args:
            products: Products in display order

        Returns:
            New CompanyGraph
        """
        drafts: dict[str, dict] = {}
        edges: list[Edge] = []

        for index, product in enumerate(products):
            if product.id in drafts:
                logger.warning(f"Duplicate product id {product.id!r}; keeping the first")
                continue
            self._add_product(drafts, edges, product, PRODUCT_COLORS[index % len(PRODUCT_COLORS)])

        self._update_coverage(drafts)
        nodes = tuple(
            CompanyNode(id=node_id, **{**draft, "child_ids": tuple(draft["child_ids"])})
            for node_id, draft in drafts.items()
        )
        edges.extend(self._cross_references(nodes))

        logger.info(
            f"Company graph rebuilt: {len(nodes)} nodes, {len(edges)} edges "
            f"from {sum(1 for n in nodes if n.kind == NodeKind.PRODUCT)} products"
        )
        return CompanyGraph(nodes=nodes, edges=tuple(edges))

    def _add_product(
        self,
        drafts: dict[str, dict],
        edges: list[Edge],
        product: Product,
        color: str,
    ) -> None:
        drafts[product.id] = {
            "kind": NodeKind.PRODUCT,
            "name": product.name,
            "description": product.description,
            "tags": self._product_tags(product),
            "product_id": product.id,
            "parent_id": None,
            "child_ids": [],
            "coverage": 0,
            "color": color,
        }

        for k_index, doc in enumerate(product.knowledge_base):
            knowledge_id = f"kb_{product.id}_{k_index}"
            tags = unique_tags(doc.tags)
            category = primary_category(tags)
            category_id = category_node_id(category)

            if category_id not in drafts:
                drafts[category_id] = {
                    "kind": NodeKind.CATEGORY,
                    "name": category,
                    "description": f"Category: {category}",
                    "tags": (category,),
                    "product_id": None,
                    "parent_id": None,
                    "child_ids": [],
                    "coverage": 0,
                    "color": CATEGORY_COLOR,
                }

            drafts[knowledge_id] = {
                "kind": NodeKind.KNOWLEDGE,
                "name": doc.title,
                "description": doc.content[:KNOWLEDGE_DESCRIPTION_CHARS],
                "tags": tags,
                "product_id": product.id,
                "parent_id": category_id,
                "child_ids": [],
                "coverage": 0,
                "color": color,
            }
            edges.append(Edge(product.id, knowledge_id, "contains", PRODUCT_EDGE_WEIGHT))
            edges.append(Edge(category_id, knowledge_id, "contains", CATEGORY_EDGE_WEIGHT))
            drafts[product.id]["child_ids"].append(knowledge_id)
            drafts[category_id]["child_ids"].append(knowledge_id)

    @staticmethod
    def _product_tags(product: Product) -> tuple[str, ...]:
        words = [
            w for w in product.description.lower().split() if len(w) >= MIN_DESCRIPTION_TAG_LENGTH
        ]
        doc_tags = [tag for doc in product.knowledge_base for tag in doc.tags]
        return unique_tags([product.name, *words, *doc_tags])

    @staticmethod
    def _update_coverage(drafts: dict[str, dict]) -> None:
        """
        Knowledge is covered when it sits in a real category, not the fallback.

        Every document is linked to some category node, `other` included, so
        "linked into the taxonomy" alone would always give 100. Documents under
        `other` are therefore counted as uncovered.
        """
        fallback_id = category_node_id(FALLBACK_CATEGORY)

        for draft in drafts.values():
            if draft["kind"] == NodeKind.KNOWLEDGE:
                draft["coverage"] = 0 if draft["parent_id"] == fallback_id else 100

        for draft in drafts.values():
            if draft["kind"] in (NodeKind.PRODUCT, NodeKind.CATEGORY):
                children = draft["child_ids"]
                covered = sum(1 for child in children if drafts[child]["coverage"] > 0)
                draft["coverage"] = round(covered / len(children) * 100) if children else 0

    @staticmethod
    def _cross_references(nodes: tuple[CompanyNode, ...]) -> list[Edge]:
        knowledge = [n for n in nodes if n.kind == NodeKind.KNOWLEDGE]
        edges = []
        for i, node_a in enumerate(knowledge):
            for node_b in knowledge[i + 1 :]:
                if node_a.product_id == node_b.product_id:
                    continue
                overlap = tags_overlap(node_a.tags, node_b.tags)
                if overlap > 0:
                    ratio = min(overlap / max(len(node_a.tags), len(node_b.tags), 1), 1.0)
                    edges.append(
                        Edge(node_a.id, node_b.id, "related", ratio * CROSS_REFERENCE_DAMPING)
                    )
        return edges
