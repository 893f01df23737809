"""
In-memory vector index over company knowledge and user questions.

Records are tagged with their origin ("company" or "user") so a query can be
restricted to one side. Every run of the merge engine builds a fresh index;
nothing here is shared between runs.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from tqdm import tqdm

from knowledge_coverage_graph.constants import DEFAULT_SIMILARITY_THRESHOLD, DEFAULT_TOP_K
from knowledge_coverage_graph.similarity.cosine import cosine_similarity

if TYPE_CHECKING:
    from knowledge_coverage_graph.embeddings.openai_client import Embedder

logger = logging.getLogger(__name__)

OriginType = Literal["company", "user"]
ORIGIN_TYPES = ("company", "user")

# Batches smaller than this embed without a progress bar
PROGRESS_BAR_MIN_ITEMS = 50


@dataclass(frozen=True)
class VectorRecord:
    """An embedded text with its origin tag. Immutable once created."""

    id: str
    text: str
    vector: tuple[float, ...]
    origin_type: OriginType
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SimilarMatch:
    """One hit from find_most_similar()."""

    record: VectorRecord
    similarity: float


@dataclass
class IndexItem:
    """Input for batch_add()."""

    text: str
    origin_type: OriginType
    metadata: dict[str, Any] = field(default_factory=dict)


class VectorIndex:
    """Stores VectorRecords and answers cosine-similarity queries."""

    def __init__(self, embedder: Embedder):
        """
        Args:
            embedder: Provider used for both stored texts and queries
        """
        self._embedder = embedder
        self._records: list[VectorRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def dimension(self) -> int:
        return self._embedder.dimension

    def add(
        self,
        text: str,
        metadata: dict[str, Any] | None = None,
        origin_type: OriginType = "company",
    ) -> VectorRecord:
        """Embed `text` and store it."""
        if origin_type not in ORIGIN_TYPES:
            raise ValueError(f"origin_type must be one of {ORIGIN_TYPES}, got {origin_type!r}")

        vector = self._embedder.embed(text)
        record = VectorRecord(
            id=f"{origin_type}_{uuid.uuid4().hex}",
            text=text,
            vector=tuple(vector),
            origin_type=origin_type,
            metadata=dict(metadata or {}),
        )
        self._records.append(record)
        return record

    def batch_add(self, items: list[IndexItem]) -> list[VectorRecord]:
        """
        Embed and store items one at a time.

        Returns:
            Records in the same order as `items`
        """
        records: list[VectorRecord] = []
        with tqdm(
            total=len(items),
            desc="Embedding texts",
            unit="text",
            disable=len(items) < PROGRESS_BAR_MIN_ITEMS,
        ) as pbar:
            for item in items:
                records.append(self.add(item.text, item.metadata, item.origin_type))
                pbar.update(1)

        logger.debug(f"Indexed {len(records)} texts ({len(self._records)} total)")
        return records

    def find_most_similar(
        self,
        text: str,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        origin_type: OriginType | None = None,
        limit: int = DEFAULT_TOP_K,
    ) -> list[SimilarMatch]:
        """
        Rank stored records by cosine similarity to `text`.

        Args:
            text: Query text (embedded with the same provider)
            threshold: Minimum similarity to keep
            origin_type: Restrict to one origin; None searches all records
            limit: Maximum number of matches

        Returns:
            Matches with similarity >= threshold, best first. Equal scores keep
            insertion order.
        """
        if limit <= 0:
            return []

        candidates = [
            r for r in self._records if origin_type is None or r.origin_type == origin_type
        ]
        if not candidates:
            return []

        query = self._embedder.embed(text)
        matches = []
        for record in candidates:
            similarity = cosine_similarity(query, record.vector)
            if similarity >= threshold:
                matches.append(SimilarMatch(record=record, similarity=similarity))

        # sorted() is stable, so ties stay in insertion order
        matches = sorted(matches, key=lambda m: m.similarity, reverse=True)
        return matches[:limit]

    def count_by_type(self, origin_type: OriginType) -> int:
        """Number of records with the given origin."""
        return sum(1 for r in self._records if r.origin_type == origin_type)

    def find_by_id(self, record_id: str) -> VectorRecord | None:
        """Look up a record by id."""
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def remove_by_id(self, record_id: str) -> bool:
        """Remove a record; True if something was removed."""
        before = len(self._records)
        self._records = [r for r in self._records if r.id != record_id]
        return len(self._records) != before

    def records(self) -> list[VectorRecord]:
        """Copy of all records in insertion order."""
        return list(self._records)

    def clear(self) -> None:
        """Drop every record."""
        self._records = []
