"""
Configuration management for knowledge_coverage_graph.

Uses pydantic-settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from knowledge_coverage_graph.constants import (
    DEFAULT_SIMILARITY_THRESHOLD,
    EMBEDDING_BASE_URL,
    EMBEDDING_DIMENSION,
    EMBEDDING_MODEL,
    EMBEDDING_TIMEOUT_SECONDS,
    TIME_SERIES_RETENTION,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every setting has a usable default: without an API key the embedding
    provider runs on its deterministic fallback, so the analysis still works
    offline.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
        populate_by_name=True,
    )

    # Embedding provider
    embedding_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("EMBEDDING_API_KEY", "ZHIPU_API_KEY"),
        description="API key for the OpenAI-compatible embedding endpoint",
    )
    embedding_base_url: str = Field(
        default=EMBEDDING_BASE_URL,
        description="Base URL of the OpenAI-compatible embedding endpoint",
    )
    embedding_model: str = Field(
        default=EMBEDDING_MODEL,
        description="Embedding model name",
    )
    embedding_dimension: int = Field(
        default=EMBEDDING_DIMENSION,
        gt=0,
        description="Vector length requested from the provider",
    )
    embedding_timeout: float = Field(
        default=EMBEDDING_TIMEOUT_SECONDS,
        gt=0,
        description="Per-call timeout in seconds",
    )

    # Analysis
    similarity_threshold: float = Field(
        default=DEFAULT_SIMILARITY_THRESHOLD,
        description="Minimum cosine similarity for a question to count as covered",
    )
    time_series_retention: int = Field(
        default=TIME_SERIES_RETENTION,
        gt=0,
        description="Number of coverage snapshots kept",
    )

    # Storage
    cache_dir: Path = Field(
        default=Path("data/cache"),
        description="Directory for the diskcache-backed store",
    )

    @field_validator("embedding_api_key", "embedding_base_url", "embedding_model", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string values."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("similarity_threshold")
    @classmethod
    def threshold_in_open_unit_interval(cls, v: float) -> float:
        """Threshold must lie strictly between 0 and 1."""
        if not 0.0 < v < 1.0:
            raise ValueError(f"similarity_threshold must be in (0, 1), got {v}")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


def get_embedding_api_key() -> str | None:
    """Get embedding API key from settings (None when unset)."""
    key = get_settings().embedding_api_key
    return key or None


def get_embedding_model() -> str:
    """Get embedding model name from settings."""
    return get_settings().embedding_model


def get_embedding_dimension() -> int:
    """Get embedding dimension from settings."""
    return get_settings().embedding_dimension


def get_similarity_threshold() -> float:
    """Get default similarity threshold from settings."""
    return get_settings().similarity_threshold


def get_cache_dir() -> Path:
    """Get cache directory from settings."""
    return get_settings().cache_dir
