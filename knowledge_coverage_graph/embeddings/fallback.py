"""
Deterministic pseudo-embeddings.

Used whenever the real provider is unavailable. The same text always maps to
the same vector, across processes and machines, so offline runs and tests are
reproducible. Python's built-in hash() is salted per process and is not used.
"""

import hashlib

import numpy as np

from knowledge_coverage_graph.similarity.cosine import l2_normalize


def text_seed(text: str) -> int:
    """32-bit seed from the SHA-256 digest of the text (never 0)."""
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return int(digest[:8], 16) or 1


def pseudo_embedding(text: str, dimension: int) -> list[float]:
    """
    Expand a text hash into a unit vector: v[i] = sin(seed * (i + 1)).

    Args:
        text: Input text (may be empty)
        dimension: Vector length

    Returns:
        L2-normalized list of `dimension` floats
    """
    seed = text_seed(text)
    # seed * i stays well below 2**53, so every argument is an exact integer
    values = np.sin(seed * np.arange(1, dimension + 1, dtype=np.float64))
    return l2_normalize(values)
