"""Cosine similarity and the origin-tagged vector index."""

from knowledge_coverage_graph.similarity.cosine import (
    cosine_similarity,
    l2_normalize,
    validate_embedding,
)
from knowledge_coverage_graph.similarity.vector_index import (
    IndexItem,
    SimilarMatch,
    VectorIndex,
    VectorRecord,
)

__all__ = [
    "cosine_similarity",
    "l2_normalize",
    "validate_embedding",
    "IndexItem",
    "SimilarMatch",
    "VectorIndex",
    "VectorRecord",
]
