"""Application dependency container.

Holds the process-wide services built once at startup and handed to request
handlers through FastAPI dependencies.
"""

from dataclasses import dataclass

import httpx
from fastapi import Request

from src.query_engine.config import QueryStrategy, build_answer_agent
from src.query_engine.engine import QueryEngine
from src.rag_pipeline.chat_history_store import ChatHistoryStore
from src.rag_pipeline.chunking_service import ChunkingService
from src.rag_pipeline.config import CourseRAGConfig
from src.rag_pipeline.course_store import CourseStore
from src.rag_pipeline.embedding_service import EmbeddingService
from src.rag_pipeline.pipeline import IngestionPipeline
from src.rag_pipeline.vector_index import VectorIndex
from src.utils.clients import get_clients


@dataclass
class AppDeps:
    """Runtime dependencies shared by all requests.

    Attributes:
        pipeline: Ingestion pipeline for transcript uploads and status.
        engine: Query engine answering chat questions.
        chat_history: Store read by the history endpoint.
        http_client: Shared HTTP client, closed on shutdown.
    """

    pipeline: IngestionPipeline
    engine: QueryEngine
    chat_history: ChatHistoryStore
    http_client: httpx.AsyncClient


def build_deps(
    config: CourseRAGConfig,
    strategy: QueryStrategy,
    http_client: httpx.AsyncClient,
) -> AppDeps:
    """Wire every service from configuration.

    Args:
        config: Pipeline configuration.
        strategy: Query engine strategy.
        http_client: Shared HTTP client for the embedding API.

    Returns:
        Fully wired AppDeps.
    """
    embedding_client, supabase = get_clients(config, http_client)

    course_store = CourseStore(supabase)
    chat_history = ChatHistoryStore(supabase)
    vector_index = VectorIndex(supabase, EmbeddingService(config, embedding_client))

    pipeline = IngestionPipeline(
        course_store=course_store,
        chunking_service=ChunkingService(config),
        vector_index=vector_index,
    )
    engine = QueryEngine(
        strategy=strategy,
        course_store=course_store,
        vector_index=vector_index,
        chat_history=chat_history,
        agent=build_answer_agent(),
    )

    return AppDeps(
        pipeline=pipeline,
        engine=engine,
        chat_history=chat_history,
        http_client=http_client,
    )


def get_deps(request: Request) -> AppDeps:
    """FastAPI dependency returning the container built in the lifespan."""
    return request.app.state.deps
