"""
Knowledge Coverage Graph - how well a company knowledge base answers what users ask.

This package provides utilities for:
- Embedding text with an OpenAI-compatible endpoint (deterministic offline fallback)
- Building a company knowledge graph and a user question graph
- Merging the two by embedding similarity and measuring coverage
- Centrality, community and blind-spot analysis of the merged graph
- Tracking coverage over successive runs
- Common CLI utilities for commands
"""

import logging

# Set up NullHandler to prevent "No handler found" warnings
# when used as a library. Applications should configure their own handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

# Re-export commonly used items
from knowledge_coverage_graph.config import (
    get_cache_dir,
    get_embedding_model,
    get_similarity_threshold,
)
from knowledge_coverage_graph.constants import (
    DEFAULT_SIMILARITY_THRESHOLD,
    DEFAULT_TOP_K,
    EMBEDDING_DIMENSION,
    EMBEDDING_MODEL,
)
from knowledge_coverage_graph.pipeline import CoveragePipeline, CoverageReport

__all__ = [
    "__version__",
    # Config
    "get_cache_dir",
    "get_embedding_model",
    "get_similarity_threshold",
    # Constants
    "DEFAULT_SIMILARITY_THRESHOLD",
    "DEFAULT_TOP_K",
    "EMBEDDING_DIMENSION",
    "EMBEDDING_MODEL",
    # Pipeline
    "CoveragePipeline",
    "CoverageReport",
]
