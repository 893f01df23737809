"""
Unit tests for knowledge_coverage_graph.config module.

Note: get_settings() is cached with lru_cache, so these tests mostly build
Settings directly instead of relying on the cached instance.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from knowledge_coverage_graph.config import (
    Settings,
    get_cache_dir,
    get_embedding_dimension,
    get_embedding_model,
    get_settings,
    get_similarity_threshold,
)
from knowledge_coverage_graph.constants import (
    DEFAULT_SIMILARITY_THRESHOLD,
    EMBEDDING_DIMENSION,
    EMBEDDING_MODEL,
)


def test_defaults(monkeypatch):
    for var in ("EMBEDDING_MODEL", "EMBEDDING_DIMENSION", "SIMILARITY_THRESHOLD", "CACHE_DIR"):
        monkeypatch.delenv(var, raising=False)
    settings = Settings(_env_file=None)

    assert settings.embedding_api_key == ""
    assert settings.embedding_model == EMBEDDING_MODEL
    assert settings.embedding_dimension == EMBEDDING_DIMENSION
    assert settings.similarity_threshold == DEFAULT_SIMILARITY_THRESHOLD
    assert settings.time_series_retention == 100
    assert settings.cache_dir == Path("data/cache")


def test_api_key_from_either_env_var(monkeypatch):
    monkeypatch.delenv("EMBEDDING_API_KEY", raising=False)
    monkeypatch.setenv("ZHIPU_API_KEY", "zhipu-key")
    assert Settings(_env_file=None).embedding_api_key == "zhipu-key"

    monkeypatch.delenv("ZHIPU_API_KEY")
    monkeypatch.setenv("EMBEDDING_API_KEY", "generic-key")
    assert Settings(_env_file=None).embedding_api_key == "generic-key"


def test_strings_are_stripped():
    settings = Settings(_env_file=None, embedding_api_key="  key  ", embedding_model=" m ")
    assert settings.embedding_api_key == "key"
    assert settings.embedding_model == "m"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SIMILARITY_THRESHOLD", "0.65")
    monkeypatch.setenv("EMBEDDING_DIMENSION", "1024")
    settings = Settings(_env_file=None)
    assert settings.similarity_threshold == 0.65
    assert settings.embedding_dimension == 1024


@pytest.mark.parametrize("threshold", [0.0, 1.0, -0.2, 1.2])
def test_threshold_must_be_inside_unit_interval(threshold):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, similarity_threshold=threshold)


def test_dimension_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, embedding_dimension=0)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_getters_return_expected_types():
    assert isinstance(get_embedding_model(), str)
    assert isinstance(get_embedding_dimension(), int)
    assert 0 < get_similarity_threshold() < 1
    assert isinstance(get_cache_dir(), Path)
