"""
Graph analytics over the merged coverage graph.

Computes:
- Degree Centrality: neighbour count / (n - 1)
- Closeness Centrality: reachable nodes / sum of BFS distances
- Betweenness Centrality: share of shortest paths through a node
- Clustering Coefficient: how many of a node's neighbours are linked
- Label Propagation: communities of densely linked nodes
- Blind spots: isolated questions, thin bridges, sparse communities

All measures run on an undirected simple view of the graph: edge direction,
weight, self-loops and parallel edges are ignored, which keeps every score
and density in [0, 1].
"""

import logging
from collections import Counter
from collections.abc import Iterable

import networkx as nx

from knowledge_coverage_graph.constants import (
    BRIDGE_BETWEENNESS_MIN,
    BRIDGE_DEGREE_MAX,
    COMMUNITY_DENSITY_MIN,
    LABEL_PROPAGATION_ROUNDS,
    LARGE_COMMUNITY_SIZE,
)
from knowledge_coverage_graph.graph.models import (
    BlindSpot,
    CentralityScores,
    Community,
    Edge,
    GraphAnalysisResult,
    KeyInsight,
    MergedNode,
    MergeResult,
)

logger = logging.getLogger(__name__)


def build_undirected_graph(node_ids: Iterable[str], links: Iterable[Edge]) -> nx.Graph:
    """
    Undirected simple graph over `node_ids`.

    Links touching unknown nodes are dropped. Node order is preserved.
    """
    graph = nx.Graph()
    graph.add_nodes_from(node_ids)
    for link in links:
        if link.source == link.target:
            continue
        if link.source in graph and link.target in graph:
            graph.add_edge(link.source, link.target)
    return graph


def degree_centrality(graph: nx.Graph) -> dict[str, float]:
    n = graph.number_of_nodes()
    if n <= 1:
        return {node: 0.0 for node in graph}
    return {node: graph.degree(node) / (n - 1) for node in graph}


def closeness_centrality(graph: nx.Graph) -> dict[str, float]:
    # wf_improved=False gives reachable / sum_of_distances, 0 when nothing is reachable
    return {
        node: float(value)
        for node, value in nx.closeness_centrality(graph, wf_improved=False).items()
    }


def betweenness_centrality(graph: nx.Graph) -> dict[str, float]:
    # Normalized by (n-1)(n-2)/2 for undirected graphs
    return {
        node: float(value)
        for node, value in nx.betweenness_centrality(graph, normalized=True).items()
    }


def clustering_coefficient(graph: nx.Graph) -> dict[str, float]:
    return {node: float(value) for node, value in nx.clustering(graph).items()}


def label_propagation(graph: nx.Graph, rounds: int = LABEL_PROPAGATION_ROUNDS) -> dict[str, str]:
    """
    Node -> community label.

    Every node starts with its own id as label. Each round visits nodes in
    graph order and adopts the most common label among neighbours, using the
    updated labels of nodes already visited this round. Ties go to the
    lexicographically smallest label. Isolated nodes keep their own label.
    """
    labels = {node: node for node in graph}
    for _ in range(rounds):
        changed = False
        for node in graph:
            counts = Counter(labels[neighbor] for neighbor in graph[node])
            if not counts:
                continue
            best = min(counts.items(), key=lambda item: (-item[1], item[0]))[0]
            if best != labels[node]:
                labels[node] = best
                changed = True
        if not changed:
            break
    return labels


def find_communities(graph: nx.Graph, rounds: int = LABEL_PROPAGATION_ROUNDS) -> list[Community]:
    """Label-propagation communities with more than one member."""
    members: dict[str, list[str]] = {}
    for node, label in label_propagation(graph, rounds).items():
        members.setdefault(label, []).append(node)

    communities = []
    for node_ids in members.values():
        if len(node_ids) <= 1:
            continue
        communities.append(
            Community(
                id=f"cluster_{len(communities)}",
                node_ids=node_ids,
                size=len(node_ids),
                density=float(nx.density(graph.subgraph(node_ids))),
            )
        )
    return communities


def _top(scores: dict[str, float]) -> tuple[str, float] | None:
    """Highest score; the earliest node wins ties."""
    if not scores:
        return None
    return max(scores.items(), key=lambda item: item[1])


class GraphAnalysisService:
    """Centrality, community and blind-spot analysis for merged graphs."""

    def __init__(self, rounds: int = LABEL_PROPAGATION_ROUNDS):
        self.rounds = rounds

    def compute_centralities(self, graph: nx.Graph) -> CentralityScores:
        return CentralityScores(
            degree=degree_centrality(graph),
            closeness=closeness_centrality(graph),
            betweenness=betweenness_centrality(graph),
            clustering=clustering_coefficient(graph),
        )

    def analyze(self, nodes: list[MergedNode], links: list[Edge]) -> GraphAnalysisResult:
        """
        Run every measure over a merged graph.

        Args:
            nodes: Merged nodes (ids must be unique)
            links: Links between them

        Returns:
            GraphAnalysisResult; empty collections for an empty graph
        """
        graph = build_undirected_graph((n.id for n in nodes), links)
        logger.info(
            f"Analyzing graph: {graph.number_of_nodes()} nodes, {graph.number_of_edges()} edges"
        )

        centralities = self.compute_centralities(graph)
        communities = find_communities(graph, self.rounds)
        names = {n.id: n.name for n in nodes}

        result = GraphAnalysisResult(
            centralities=centralities,
            communities=communities,
            key_insights=self.key_insights(centralities, communities, names),
        )
        result.blind_spots = self.identify_blind_spots(result, nodes)

        logger.info(
            f"Found {len(communities)} communities, {len(result.key_insights)} insights, "
            f"{len(result.blind_spots)} blind spots"
        )
        return result

    def analyze_merge(self, merge_result: MergeResult) -> GraphAnalysisResult:
        return self.analyze(list(merge_result.nodes), list(merge_result.links))

    @staticmethod
    def key_insights(
        centralities: CentralityScores,
        communities: list[Community],
        names: dict[str, str],
    ) -> list[KeyInsight]:
        """Hub, bridge and cluster-centre nodes plus large communities."""
        insights = []

        for insight_type, scores, label in (
            ("hub_node", centralities.degree, "is the most connected node"),
            ("bridge_node", centralities.betweenness, "links otherwise separate regions"),
            ("cluster_center", centralities.clustering, "sits in the tightest cluster"),
        ):
            top = _top(scores)
            if top is None:
                continue
            node_id, value = top
            insights.append(
                KeyInsight(
                    type=insight_type,
                    node_id=node_id,
                    value=value,
                    description=f'"{names.get(node_id, node_id)}" {label}',
                )
            )

        for community in communities:
            if community.size > LARGE_COMMUNITY_SIZE:
                insights.append(
                    KeyInsight(
                        type="community",
                        node_id=community.id,
                        value=float(community.size),
                        description=f"Tightly linked community of {community.size} nodes",
                    )
                )
        return insights

    @staticmethod
    def identify_blind_spots(
        analysis: GraphAnalysisResult,
        nodes: list[MergedNode],
    ) -> list[BlindSpot]:
        """
        Flag likely knowledge gaps.

        - isolated (high): user question with no links at all
        - bridge_gap (medium): user question on many shortest paths but with few links
        - community_gap (medium): community with density below 0.3
        """
        degree = analysis.centralities.degree
        betweenness = analysis.centralities.betweenness
        blind_spots = []

        for node in nodes:
            if node.source == "user" and degree.get(node.id, 0.0) == 0:
                blind_spots.append(
                    BlindSpot(
                        node_id=node.id,
                        type="isolated",
                        severity="high",
                        description=f'"{node.name}" is not linked to any company knowledge',
                    )
                )

        for node in nodes:
            if node.source != "user":
                continue
            if (
                betweenness.get(node.id, 0.0) > BRIDGE_BETWEENNESS_MIN
                and degree.get(node.id, 0.0) < BRIDGE_DEGREE_MAX
            ):
                blind_spots.append(
                    BlindSpot(
                        node_id=node.id,
                        type="bridge_gap",
                        severity="medium",
                        description=f'"{node.name}" lies on key paths but has few links',
                    )
                )

        for community in analysis.communities:
            if community.density < COMMUNITY_DENSITY_MIN:
                blind_spots.append(
                    BlindSpot(
                        node_id=community.id,
                        type="community_gap",
                        severity="medium",
                        description=(
                            f"Community {community.id} is sparsely linked "
                            f"(density {community.density:.2f})"
                        ),
                    )
                )
        return blind_spots
