"""
Pytest configuration and shared fixtures for knowledge_coverage_graph tests.

No test talks to a real embedding endpoint: providers are either the fakes
below, the hash fallback, or an EmbeddingProvider with a Mock client.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

from knowledge_coverage_graph.graph.models import KnowledgeDocument, Product, QuestionEvent
from knowledge_coverage_graph.similarity.cosine import l2_normalize

# Keep a developer's real key out of test runs
os.environ.pop("EMBEDDING_API_KEY", None)
os.environ.pop("ZHIPU_API_KEY", None)


class KeywordEmbeddingProvider:
    """
    Embeds text as a bag of known topic words.

    Axis i is 1 when topic i occurs in the (lowercased) text. Texts that mention
    the same topics get identical vectors; texts mentioning no topic all share
    a reserved last axis, orthogonal to every topic.
    """

    def __init__(self, topics):
        self.topics = tuple(t.lower() for t in topics)
        self.dimension = len(self.topics) + 1
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        lowered = (text or "").lower()
        vector = [1.0 if topic in lowered else 0.0 for topic in self.topics]
        vector.append(0.0 if any(vector) else 1.0)
        return l2_normalize(vector)


class FixedClock:
    """Clock that returns a fixed time and can be advanced by hand."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Fixed clock starting 2024-01-01 12:00 UTC."""
    return FixedClock()


@pytest.fixture
def keyword_embedder():
    """Factory for KeywordEmbeddingProvider."""
    return KeywordEmbeddingProvider


@pytest.fixture
def sample_products():
    """Two products with a mix of classified and unclassified documents."""
    return [
        Product(
            id="p1",
            name="Smart Camera",
            description="Indoor security camera with night vision",
            knowledge_base=(
                KnowledgeDocument("Installation guide", "Mount the camera", ("guide", "install")),
                KnowledgeDocument("Reset password", "Hold the button", ("password", "account")),
                KnowledgeDocument("Warranty", "Two years", ("warranty",)),
            ),
        ),
        Product(
            id="p2",
            name="Smart Doorbell",
            description="Video doorbell",
            knowledge_base=(
                KnowledgeDocument("Doorbell setup guide", "Pair with the app", ("guide", "pairing")),
            ),
        ),
    ]


@pytest.fixture
def sample_events():
    """Question events; the first question is asked twice."""
    return [
        QuestionEvent("How do I install the camera?", ("install", "camera"), "usage", "neutral", 4),
        QuestionEvent("How do I install the camera?", ("install", "camera"), "usage", "neutral", 5),
        QuestionEvent("I forgot my password", ("password", "login"), "account", "negative", 2),
        QuestionEvent("Can the camera install outdoors?", ("install", "camera", "outdoor"), "usage"),
        QuestionEvent("What is the refund policy?", ("refund",), "purchase", "negative", 1),
    ]
