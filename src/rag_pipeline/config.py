"""Configuration module for the course transcript RAG pipeline."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()


class CourseRAGConfig(BaseModel):
    """Configuration for the transcript ingestion pipeline.

    This configuration class manages all settings for transcript chunking,
    embedding, and storage in the vector database. All settings can be
    overridden via environment variables.

    The embedding model must produce 1536-dimensional vectors, the width of
    the course_chunks.embedding column in sql/schema.sql. Choosing a model
    of another width (e.g. nomic-embed-text via Ollama, 768) requires
    recreating that column and match_course_chunks with the new width.
    """

    # Chunking settings (character-based)
    chunk_size: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_SIZE", "1000")), gt=0
    )
    chunk_overlap: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_OVERLAP", "200")), ge=0
    )

    # Embedding settings
    embedding_provider: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_PROVIDER", "openai")
    )
    embedding_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_BASE_URL", "https://api.openai.com/v1"
        )
    )
    embedding_api_key: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_API_KEY", "")
    )
    embedding_model: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_MODEL_CHOICE", "text-embedding-3-small"
        )
    )
    embedding_batch_size: int = Field(
        default_factory=lambda: int(os.getenv("EMBEDDING_BATCH_SIZE", "10")), gt=0
    )

    # Database settings
    supabase_url: str = Field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    supabase_key: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_SERVICE_KEY", "")
    )

    @model_validator(mode="after")
    def check_overlap(self) -> "CourseRAGConfig":
        """Reject overlaps that would stop the chunker from advancing."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


def get_config() -> CourseRAGConfig:
    """Get validated configuration instance.

    Returns:
        CourseRAGConfig: Validated configuration object with all settings.

    Raises:
        ValidationError: If environment variables are missing or invalid.
    """
    return CourseRAGConfig()
