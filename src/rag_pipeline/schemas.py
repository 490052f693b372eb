"""Pydantic schemas for the course transcript RAG pipeline."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ProcessingStatus(str, Enum):
    """Ingestion state of a course."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ChatRole(str, Enum):
    """Author of a chat message."""

    HUMAN = "human"
    AI = "ai"


class Course(BaseModel):
    """Course record with its transcript and processing state.

    The transcript is set once at creation. Only the ingestion pipeline
    changes the processing status and processed_at timestamp.
    """

    id: str
    title: str
    transcript: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    processed_at: datetime | None = None
    error_message: str | None = None
    date_added: datetime | None = None

    @property
    def topic(self) -> str | None:
        """Course topic used in prompts, taken from the metadata title."""
        title = self.metadata.get("title")
        return str(title) if title else None


class Chunk(BaseModel):
    """Chunked transcript span.

    Represents one overlapping window of transcript text with the course
    metadata it inherits. The chunk_id is the vector index primary key.
    """

    chunk_id: str
    course_id: str
    chunk_index: int
    text_content: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class RetrievedChunk(BaseModel):
    """Nearest-neighbour match returned by the vector index."""

    text: str
    distance: float  # Lower is more similar
    metadata: dict[str, Any] = Field(default_factory=dict)


class ChatMessage(BaseModel):
    """Single entry of a course conversation log."""

    id: int | None = None
    course_id: str
    role: ChatRole
    content: str
    timestamp: datetime | None = None


class CourseStatus(BaseModel):
    """Processing status of a course as reported to clients."""

    course_id: str
    status: ProcessingStatus
    processed_at: datetime | None = None


class CourseProcessingResult(BaseModel):
    """Outcome of processing one course.

    Tracks the state a course ended in after a pipeline run, including
    error information and metrics.
    """

    course_id: str
    status: str  # completed, failed, skipped
    chunks_created: int = 0
    error_message: str | None = None
    processed_at: datetime | None = None


class SweepResult(BaseModel):
    """Result of a pending-transcript sweep.

    Summary statistics and error information for a complete sweep.
    Used for reporting and monitoring.
    """

    total_courses: int
    processed: int
    failed: int
    skipped: int
    chunks_created: int
    errors: list[str] = Field(default_factory=list)
