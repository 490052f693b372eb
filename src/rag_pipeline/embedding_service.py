"""Embedding service for turning transcript chunks and questions into vectors."""

import asyncio

from openai import AsyncOpenAI

from src.utils.logging import get_logger

from .config import CourseRAGConfig
from .errors import UpstreamFailure

logger = get_logger(__name__)


class EmbeddingService:
    """Service for generating text embeddings.

    Works with any OpenAI-compatible embeddings endpoint (OpenAI, Ollama,
    OpenRouter). Chunks are embedded in parallel batches during ingestion and
    questions are embedded one at a time during retrieval.
    """

    def __init__(self, config: CourseRAGConfig, client: AsyncOpenAI | None = None):
        """Initialize embedding service with configuration.

        Args:
            config: Configuration object with embedding provider settings.
            client: Pre-built client to share across services. Built from
                config when omitted.
        """
        self.config = config
        self.client = client or self._get_client()
        logger.info(
            "embedding_service_initialized",
            provider=config.embedding_provider,
            model=config.embedding_model,
            base_url=config.embedding_base_url,
        )

    def _get_client(self) -> AsyncOpenAI:
        """Initialize OpenAI-compatible client based on provider.

        Returns:
            Configured AsyncOpenAI client instance.
        """
        if self.config.embedding_provider == "ollama":
            # Ollama doesn't require a real API key
            return AsyncOpenAI(
                base_url=self.config.embedding_base_url,
                api_key="ollama",
            )
        return AsyncOpenAI(
            base_url=self.config.embedding_base_url,
            api_key=self.config.embedding_api_key,
        )

    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Args:
            text: Text content to embed.

        Returns:
            Embedding vector as a list of floats.

        Raises:
            UpstreamFailure: If the embedding API call fails.
        """
        try:
            response = await self.client.embeddings.create(
                input=text,
                model=self.config.embedding_model,
            )
        except Exception as e:
            logger.exception(
                "embedding_failed",
                text_length=len(text),
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(f"Embedding request failed: {e}") from e

        embedding = response.data[0].embedding
        logger.debug(
            "embedding_generated",
            text_length=len(text),
            embedding_dim=len(embedding),
        )
        return embedding

    async def embed_batch(
        self, texts: list[str], batch_size: int | None = None
    ) -> list[list[float]]:
        """Generate embeddings for multiple texts with batching.

        Texts inside a batch are embedded concurrently; batches run one after
        another to stay under provider rate limits.

        Args:
            texts: List of text strings to embed.
            batch_size: Texts per batch. Defaults to config.embedding_batch_size.

        Returns:
            List of embedding vectors in the same order as input texts.

        Raises:
            UpstreamFailure: If any embedding in a batch fails.
        """
        batch_size = batch_size or self.config.embedding_batch_size
        logger.info(
            "batch_embedding_started",
            count=len(texts),
            batch_size=batch_size,
        )

        embeddings: list[list[float]] = []

        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            batch_embeddings = await asyncio.gather(
                *[self.embed_text(text) for text in batch]
            )
            embeddings.extend(batch_embeddings)

            logger.debug(
                "batch_completed",
                batch_num=i // batch_size + 1,
                count=len(batch),
            )

        logger.info(
            "batch_embedding_completed",
            total_embeddings=len(embeddings),
        )
        return embeddings
