"""
Embedding provider backed by an OpenAI-compatible endpoint.

This module provides:
- OpenAI client initialization from settings
- EmbeddingProvider: text -> L2-normalized vector of a fixed dimension
- HashEmbeddingProvider: the same contract with no network I/O
- HTTP logging suppression

The provider never raises to its caller. Missing credentials, network errors,
timeouts, non-2xx responses and malformed payloads all resolve to the
deterministic pseudo-embedding from embeddings.fallback.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from knowledge_coverage_graph.config import Settings, get_settings
from knowledge_coverage_graph.constants import (
    EMBEDDING_DIMENSION,
    EMBEDDING_MAX_CHARS,
    EMBEDDING_MAX_RETRIES,
    EMBEDDING_MODEL,
    EMBEDDING_TIMEOUT_SECONDS,
)
from knowledge_coverage_graph.embeddings.fallback import pseudo_embedding
from knowledge_coverage_graph.similarity.cosine import l2_normalize, validate_embedding
from knowledge_coverage_graph.utils.stats import ExecutionStats

if TYPE_CHECKING:
    from openai import OpenAI

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    """Anything that turns text into a fixed-length vector."""

    dimension: int

    def embed(self, text: str) -> list[float]: ...


def get_openai_client(settings: Settings | None = None) -> OpenAI | None:
    """
    Get an OpenAI client pointed at the configured endpoint.

    Returns None when no API key is configured.
    """
    settings = settings or get_settings()
    if not settings.embedding_api_key:
        return None

    from openai import OpenAI

    return OpenAI(
        api_key=settings.embedding_api_key,
        base_url=settings.embedding_base_url,
        timeout=settings.embedding_timeout,
        max_retries=EMBEDDING_MAX_RETRIES,
    )


class EmbeddingProvider:
    """
    Turns text into a unit-length vector of `dimension` floats.

    Request shape: {model, input: [text], dimensions}. Only the first
    returned embedding is used.
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        model: str = EMBEDDING_MODEL,
        dimension: int = EMBEDDING_DIMENSION,
        timeout: float = EMBEDDING_TIMEOUT_SECONDS,
    ):
        """
        Initialize the provider.

        Args:
            client: OpenAI-compatible client; None means fallback only
            model: Embedding model name
            dimension: Vector length (requested and enforced)
            timeout: Per-call timeout in seconds
        """
        self._client = client
        self.model = model
        self.dimension = dimension
        self.timeout = timeout
        self.stats = ExecutionStats(api=0, fallback=0)

        if client is None:
            self._warn_no_client()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> EmbeddingProvider:
        """Build a provider from application settings."""
        settings = settings or get_settings()
        return cls(
            client=get_openai_client(settings),
            model=settings.embedding_model,
            dimension=settings.embedding_dimension,
            timeout=settings.embedding_timeout,
        )

    def _warn_no_client(self) -> None:
        logger.warning("No embedding API key configured; using deterministic fallback vectors")

    def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Args:
            text: Text to embed

        Returns:
            L2-normalized vector of length self.dimension
        """
        vector = self._request(text) if text and text.strip() else None
        if vector is None:
            self.stats.increment("fallback")
            return pseudo_embedding(text or "", self.dimension)

        self.stats.increment("api")
        return l2_normalize(vector)

    def _request(self, text: str) -> list[float] | None:
        """Call the endpoint; None on any failure."""
        if self._client is None:
            return None

        try:
            response = self._client.embeddings.create(
                model=self.model,
                input=[text.strip()[:EMBEDDING_MAX_CHARS]],
                dimensions=self.dimension,
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(f"Embedding request failed, using fallback: {e}")
            return None

        try:
            embedding = list(response.data[0].embedding)
        except (AttributeError, IndexError, TypeError) as e:
            logger.warning(f"Malformed embedding payload, using fallback: {e}")
            return None

        if not validate_embedding(embedding, self.dimension):
            logger.warning("Embedding failed validation, using fallback")
            return None
        return embedding


class HashEmbeddingProvider(EmbeddingProvider):
    """Offline provider: always returns the deterministic pseudo-embedding."""

    def __init__(self, dimension: int = EMBEDDING_DIMENSION):
        super().__init__(client=None, model="hash", dimension=dimension)

    def _warn_no_client(self) -> None:
        pass


def suppress_http_logging():
    """
    Suppress verbose HTTP logging from OpenAI, httpx, and httpcore.

    Safe to call redundantly; setup_logging() already does this.
    """
    logging.getLogger("httpx").setLevel(logging.ERROR)
    logging.getLogger("openai").setLevel(logging.ERROR)
    logging.getLogger("httpcore").setLevel(logging.ERROR)
