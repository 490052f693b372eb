"""Shared fixtures: in-memory stand-ins for Supabase-backed services and the model."""

import re
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.rag_pipeline.chunking_service import ChunkingService
from src.rag_pipeline.config import CourseRAGConfig
from src.rag_pipeline.errors import UpstreamFailure
from src.rag_pipeline.pipeline import IngestionPipeline
from src.rag_pipeline.schemas import (
    ChatMessage,
    ChatRole,
    Course,
    ProcessingStatus,
    RetrievedChunk,
)


def _words(text: str) -> set[str]:
    return set(re.findall(r"\w+", text.lower()))


class InMemoryCourseStore:
    """CourseStore with the same async interface, backed by a dict."""

    def __init__(self) -> None:
        self.courses: dict[str, Course] = {}
        self.status_history: dict[str, list[ProcessingStatus]] = {}

    def _record(self, course_id: str, status: ProcessingStatus) -> None:
        self.status_history.setdefault(course_id, []).append(status)

    async def create(self, course: Course) -> Course:
        self.courses[course.id] = course.model_copy(deep=True)
        self._record(course.id, course.processing_status)
        return course

    async def get(self, course_id: str) -> Course | None:
        course = self.courses.get(course_id)
        return course.model_copy(deep=True) if course else None

    async def update_status(
        self,
        course_id: str,
        status: ProcessingStatus,
        processed_at: datetime | None = None,
        error_message: str | None = None,
    ) -> None:
        course = self.courses[course_id]
        course.processing_status = status
        course.error_message = error_message
        if processed_at is not None:
            course.processed_at = processed_at
        self._record(course_id, status)

    async def transition_status(
        self,
        course_id: str,
        from_statuses: list[ProcessingStatus],
        to_status: ProcessingStatus,
    ) -> bool:
        course = self.courses.get(course_id)
        if course is None or course.processing_status not in from_statuses:
            return False
        course.processing_status = to_status
        course.error_message = None
        self._record(course_id, to_status)
        return True

    async def list_by_status(self, statuses: list[ProcessingStatus]) -> list[Course]:
        return [
            course.model_copy(deep=True)
            for course in self.courses.values()
            if course.processing_status in statuses
        ]


class InMemoryChatHistory:
    """ChatHistoryStore backed by a list."""

    def __init__(self) -> None:
        self.messages: list[ChatMessage] = []

    async def append(self, course_id: str, role: ChatRole, content: str) -> ChatMessage:
        message = ChatMessage(
            id=len(self.messages) + 1,
            course_id=course_id,
            role=role,
            content=content,
            timestamp=datetime.now(UTC),
        )
        self.messages.append(message)
        return message

    async def list_messages(self, course_id: str) -> list[ChatMessage]:
        return [m for m in self.messages if m.course_id == course_id]


class FakeVectorIndex:
    """VectorIndex ranking points by word overlap with the query.

    distance = 1 - (shared words / query words), so a query sharing no words
    with a chunk has distance 1.0.
    """

    def __init__(self) -> None:
        self.points: dict[str, tuple[str, dict[str, Any]]] = {}
        self.fail_on_add: Exception | None = None
        self.add_calls = 0
        self.deleted_courses: list[str] = []

    async def add(
        self, ids: list[str], texts: list[str], metadatas: list[dict[str, Any]]
    ) -> None:
        self.add_calls += 1
        if self.fail_on_add is not None:
            raise self.fail_on_add
        for chunk_id, text, metadata in zip(ids, texts, metadatas, strict=True):
            self.points[chunk_id] = (text, metadata)

    async def query(
        self,
        text: str,
        top_k: int = 5,
        filter_metadata: dict[str, Any] | None = None,
    ) -> list[RetrievedChunk]:
        query_words = _words(text)
        matches = []
        for point_text, metadata in self.points.values():
            if any(metadata.get(k) != v for k, v in (filter_metadata or {}).items()):
                continue
            shared = len(query_words & _words(point_text))
            distance = 1.0 - shared / max(len(query_words), 1)
            matches.append(RetrievedChunk(text=point_text, distance=distance, metadata=metadata))
        return sorted(matches, key=lambda m: m.distance)[:top_k]

    async def delete_course(self, course_id: str) -> None:
        self.deleted_courses.append(course_id)
        self.points = {
            chunk_id: point
            for chunk_id, point in self.points.items()
            if point[1].get("courseId") != course_id
        }


@pytest.fixture
def course_store() -> InMemoryCourseStore:
    """In-memory course store."""
    return InMemoryCourseStore()


@pytest.fixture
def chat_history() -> InMemoryChatHistory:
    """In-memory chat history."""
    return InMemoryChatHistory()


@pytest.fixture
def vector_index() -> FakeVectorIndex:
    """Word-overlap vector index."""
    return FakeVectorIndex()


@pytest.fixture
def chunking_service() -> ChunkingService:
    """Chunking service with the production window sizes."""
    return ChunkingService(CourseRAGConfig(chunk_size=1000, chunk_overlap=200))


@pytest.fixture
def pipeline(
    course_store: InMemoryCourseStore,
    chunking_service: ChunkingService,
    vector_index: FakeVectorIndex,
) -> IngestionPipeline:
    """Ingestion pipeline wired to in-memory services."""
    return IngestionPipeline(
        course_store=course_store,  # type: ignore[arg-type]
        chunking_service=chunking_service,
        vector_index=vector_index,  # type: ignore[arg-type]
    )


@pytest.fixture
def mock_agent() -> MagicMock:
    """Agent whose run() returns a labelled answer."""
    agent = MagicMock()
    agent.run = AsyncMock(
        return_value=MagicMock(
            output="Answer: A binary search tree keeps smaller keys to the left."
        )
    )
    return agent


@pytest.fixture
def failing_index_error() -> UpstreamFailure:
    """Error raised by a vector index that is down."""
    return UpstreamFailure("Vector index insert failed: connection refused")
