"""Unit tests for course RAG pipeline configuration."""

import pytest
from pydantic import ValidationError

from src.rag_pipeline.config import CourseRAGConfig, get_config


@pytest.mark.unit
class TestCourseRAGConfig:
    """Test suite for CourseRAGConfig class."""

    def test_config_with_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test config creation with default values."""
        for name in (
            "CHUNK_SIZE",
            "CHUNK_OVERLAP",
            "EMBEDDING_PROVIDER",
            "EMBEDDING_MODEL_CHOICE",
            "EMBEDDING_BATCH_SIZE",
        ):
            monkeypatch.delenv(name, raising=False)

        config = CourseRAGConfig()

        assert config.chunk_size == 1000
        assert config.chunk_overlap == 200
        assert config.embedding_provider == "openai"
        assert config.embedding_model == "text-embedding-3-small"
        assert config.embedding_batch_size == 10

    def test_config_with_explicit_values(self) -> None:
        """Test config creation with explicit parameter values."""
        config = CourseRAGConfig(
            chunk_size=500,
            chunk_overlap=50,
            embedding_provider="ollama",
            embedding_model="nomic-embed-text",
            embedding_batch_size=4,
            supabase_url="https://test.supabase.co",
            supabase_key="test_key",
        )

        assert config.chunk_size == 500
        assert config.chunk_overlap == 50
        assert config.embedding_provider == "ollama"
        assert config.embedding_model == "nomic-embed-text"
        assert config.embedding_batch_size == 4
        assert config.supabase_url == "https://test.supabase.co"
        assert config.supabase_key == "test_key"

    def test_config_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test config loads from environment variables."""
        monkeypatch.setenv("CHUNK_SIZE", "800")
        monkeypatch.setenv("CHUNK_OVERLAP", "100")
        monkeypatch.setenv("EMBEDDING_PROVIDER", "openrouter")
        monkeypatch.setenv("EMBEDDING_MODEL_CHOICE", "custom-model")
        monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")

        config = CourseRAGConfig()

        assert config.chunk_size == 800
        assert config.chunk_overlap == 100
        assert config.embedding_provider == "openrouter"
        assert config.embedding_model == "custom-model"
        assert config.supabase_url == "https://env.supabase.co"

    def test_get_config_function(self) -> None:
        """Test get_config helper function returns valid config."""
        config = get_config()

        assert isinstance(config, CourseRAGConfig)
        assert config.chunk_size > config.chunk_overlap >= 0

    def test_overlap_must_be_smaller_than_chunk_size(self) -> None:
        """Test that an overlap as large as the window is rejected."""
        with pytest.raises(ValidationError, match="chunk_overlap"):
            CourseRAGConfig(chunk_size=100, chunk_overlap=100)

    def test_chunk_size_must_be_positive(self) -> None:
        """Test that a zero chunk size is rejected."""
        with pytest.raises(ValidationError):
            CourseRAGConfig(chunk_size=0, chunk_overlap=0)

    def test_config_empty_strings_allowed(self) -> None:
        """Test that empty strings are allowed for optional API keys."""
        config = CourseRAGConfig(embedding_api_key="", supabase_key="")

        assert config.embedding_api_key == ""
        assert config.supabase_key == ""
