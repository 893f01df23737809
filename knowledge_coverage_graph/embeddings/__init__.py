"""Embedding provider with a deterministic offline fallback."""

from knowledge_coverage_graph.constants import EMBEDDING_DIMENSION, EMBEDDING_MODEL
from knowledge_coverage_graph.embeddings.fallback import pseudo_embedding
from knowledge_coverage_graph.embeddings.openai_client import (
    Embedder,
    EmbeddingProvider,
    HashEmbeddingProvider,
    get_openai_client,
    suppress_http_logging,
)

__all__ = [
    "Embedder",
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    "pseudo_embedding",
    "get_openai_client",
    "suppress_http_logging",
    "EMBEDDING_MODEL",
    "EMBEDDING_DIMENSION",
]
