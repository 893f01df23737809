"""
Cosine similarity computation utilities.

Provides cosine similarity, L2 normalization and embedding validation using
NumPy. Invalid inputs (zero vectors, mismatched dimensions) resolve to a
similarity of 0 instead of raising.
"""

import logging
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from knowledge_coverage_graph.constants import EMBEDDING_DIMENSION

logger = logging.getLogger(__name__)


def validate_embedding(
    embedding: Sequence[float] | None,
    expected_dimension: int = EMBEDDING_DIMENSION,
) -> bool:
    """
    Validate an embedding vector.

    Args:
        embedding: Embedding vector to validate
        expected_dimension: Expected dimension (default: 768)

    Returns:
        True if valid, False otherwise
    """
    if embedding is None:
        return False
    if not isinstance(embedding, (list, tuple, np.ndarray)):
        return False
    if len(embedding) != expected_dimension:
        logger.warning(f"Invalid embedding dimension: {len(embedding)} != {expected_dimension}")
        return False
    try:
        arr = np.asarray(embedding, dtype=np.float64)
    except (TypeError, ValueError):
        return False
    if not np.all(np.isfinite(arr)):
        logger.warning("Embedding contains NaN or Inf values")
        return False
    return True


def l2_normalize(vector: Sequence[float]) -> list[float]:
    """
    Scale a vector to unit length.

    A zero vector is returned unchanged; it stays a "no match" vector.
    """
    arr = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(arr)
    if norm == 0:
        return arr.tolist()
    return (arr / norm).tolist()


def cosine_similarity(a: Sequence[float] | NDArray, b: Sequence[float] | NDArray) -> float:
    """
    Cosine similarity clamped to [0, 1].

    Returns 0.0 when either vector is empty or has zero magnitude, or when the
    dimensions differ. The full formula is computed even for unit vectors.
    """
    a_arr = np.asarray(a, dtype=np.float64)
    b_arr = np.asarray(b, dtype=np.float64)

    if a_arr.size == 0 or a_arr.shape != b_arr.shape:
        return 0.0

    norm_a = np.linalg.norm(a_arr)
    norm_b = np.linalg.norm(b_arr)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a_arr, b_arr) / (norm_a * norm_b))
    if not np.isfinite(similarity):
        return 0.0
    return max(0.0, min(1.0, similarity))
