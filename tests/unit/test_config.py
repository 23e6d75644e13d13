"""Unit tests for Settings configuration."""

import pytest

from vecstore.core.config import Settings
from vecstore.schemas.collection import DistanceMetric, IndexKind


@pytest.mark.unit
class TestSettings:
    def test_default_settings(self) -> None:
        """Check that default values are correct."""
        settings = Settings(
            _env_file=None,  # Prevent reading .env file during tests
        )
        assert settings.app_name == "vecstore"
        assert settings.app_version == "0.1.0"
        assert settings.debug is False
        assert settings.database_url.startswith("postgresql+psycopg://")
        assert settings.vector_store_table == "vector_store"
        assert settings.vector_store_dimensions is None
        assert settings.embedding_dimensions == 768
        assert settings.vector_store_distance == DistanceMetric.COSINE
        assert settings.vector_store_index == IndexKind.HNSW
        assert settings.vector_store_schema_managed is True

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Override env vars and verify settings pick them up."""
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("VECTOR_STORE_TABLE", "docs")
        monkeypatch.setenv("VECTOR_STORE_DIMENSIONS", "768")
        monkeypatch.setenv("VECTOR_STORE_DISTANCE", "euclidean")
        monkeypatch.setenv("VECTOR_STORE_INDEX", "ivfflat")
        monkeypatch.setenv("IVFFLAT_LISTS", "50")
        monkeypatch.setenv("DB_STATEMENT_TIMEOUT_MS", "5000")

        settings = Settings(
            _env_file=None,  # Prevent reading .env file during tests
        )
        assert settings.debug is True
        assert settings.vector_store_table == "docs"
        assert settings.vector_store_dimensions == 768
        assert settings.vector_store_distance == DistanceMetric.EUCLIDEAN
        assert settings.vector_store_index == IndexKind.IVFFLAT
        assert settings.ivfflat_lists == 50
        assert settings.db_statement_timeout_ms == 5000

    def test_collection_config_from_settings(self) -> None:
        """collection_config() carries every vector store option over."""
        settings = Settings(
            _env_file=None,
            vector_store_table="articles",
            vector_store_schema="rag",
            vector_store_dimensions=3,
            vector_store_distance="negative_inner_product",
            hnsw_m=24,
            hnsw_ef_search=100,
            vector_store_schema_managed=False,
        )
        config = settings.collection_config()

        assert config.table_name == "articles"
        assert config.qualified_name == "rag.articles"
        assert config.dimensions == 3
        assert config.distance_metric == DistanceMetric.NEGATIVE_INNER_PRODUCT
        assert config.hnsw.m == 24
        assert config.hnsw.ef_search == 100
        assert config.schema_managed is False

    def test_invalid_distance_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VECTOR_STORE_DISTANCE", "hamming")
        with pytest.raises(ValueError):
            Settings(_env_file=None)
