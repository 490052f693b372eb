"""Client initialization utilities.

Provides functions for initializing the external service clients (Supabase,
OpenAI-compatible embeddings) shared by the pipeline and the query engine.
"""

import httpx
from openai import AsyncOpenAI
from supabase import Client, create_client

from src.rag_pipeline.config import CourseRAGConfig


def get_clients(
    config: CourseRAGConfig,
    http_client: httpx.AsyncClient | None = None,
) -> tuple[AsyncOpenAI, Client]:
    """Initialize and return embedding and Supabase clients.

    Args:
        config: Pipeline configuration holding credentials and endpoints.
        http_client: Shared HTTP client for the embedding API. The caller
            owns it and closes it on shutdown.

    Returns:
        Tuple of (AsyncOpenAI embedding client, Supabase client).

    Raises:
        ValueError: If required settings are missing.

    Examples:
        >>> embedding_client, supabase = get_clients(get_config())
    """
    if config.embedding_provider == "ollama":
        # Ollama doesn't require a real API key
        api_key = "ollama"
    elif config.embedding_api_key:
        api_key = config.embedding_api_key
    else:
        raise ValueError("EMBEDDING_API_KEY environment variable is required")

    embedding_client = AsyncOpenAI(
        base_url=config.embedding_base_url,
        api_key=api_key,
        http_client=http_client,
    )

    if not config.supabase_url or not config.supabase_key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables are required"
        )

    supabase = create_client(config.supabase_url, config.supabase_key)

    return embedding_client, supabase
