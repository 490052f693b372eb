"""FastAPI application for the course transcript RAG service.

Provides transcript upload, chat, chat history and processing status
endpoints. Services are built once in the lifespan and injected per request.
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from src.api.deps import AppDeps, build_deps, get_deps
from src.query_engine.config import get_strategy
from src.rag_pipeline.config import get_config
from src.rag_pipeline.errors import (
    CourseAlreadyExistsError,
    CourseNotFoundError,
    CourseNotReadyError,
    MissingFieldError,
    QueryTimeoutError,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Most specific first: QueryTimeoutError is an UpstreamFailure
ERROR_STATUS_CODES: list[tuple[type[Exception], int]] = [
    (MissingFieldError, 400),
    (CourseNotFoundError, 404),
    (CourseAlreadyExistsError, 409),
    (CourseNotReadyError, 409),
    (QueryTimeoutError, 504),
]


# ==============================================================================
# Lifespan Management
# ==============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for the FastAPI application.

    Builds the shared services, re-processes transcripts left pending or
    failed by a previous run, and closes the HTTP client on shutdown.
    """
    logger.info("application_startup_started")

    http_client = httpx.AsyncClient(timeout=httpx.Timeout(60.0))
    try:
        app.state.deps = build_deps(get_config(), get_strategy(), http_client)
    except Exception:
        logger.exception("application_startup_failed")
        await http_client.aclose()
        raise

    try:
        sweep_result = await app.state.deps.pipeline.sweep()
        logger.info(
            "startup_sweep_completed",
            processed=sweep_result.processed,
            failed=sweep_result.failed,
        )
    except Exception:
        # Courses stay pending/failed and are retried on the next sweep
        logger.exception("startup_sweep_failed")

    logger.info("application_startup_completed")

    yield  # Application runs here

    logger.info("application_shutdown_started")
    await http_client.aclose()
    logger.info("application_shutdown_completed")


# ==============================================================================
# FastAPI Application Setup
# ==============================================================================

app = FastAPI(
    title="Course Transcript RAG API",
    description="Answers student questions from indexed course transcripts",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==============================================================================
# Request/Response Models
# ==============================================================================


class UploadTranscriptRequest(BaseModel):
    """Request model for the transcript upload endpoint."""

    transcriptText: str | None = None
    courseId: str | None = None


class ChatRequest(BaseModel):
    """Request model for the chat endpoint."""

    question: str | None = None
    courseId: str | None = None


# ==============================================================================
# Helper Functions
# ==============================================================================


def error_response(error: Exception) -> JSONResponse:
    """Map an exception to a JSON error response.

    Args:
        error: Exception raised while handling a request.

    Returns:
        JSONResponse with an error message and matching status code.
    """
    status_code = 500
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            status_code = code
            break

    return JSONResponse(status_code=status_code, content={"error": str(error)})


# ==============================================================================
# API Endpoints
# ==============================================================================


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Liveness check."""
    return "RAG chatbot backend is running"


@app.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Health check endpoint.

    Returns:
        Health status, timestamp and which services are initialized.
    """
    deps: AppDeps | None = getattr(request.app.state, "deps", None)
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "services": {
            "pipeline": deps is not None and deps.pipeline is not None,
            "engine": deps is not None and deps.engine is not None,
            "chat_history": deps is not None and deps.chat_history is not None,
            "http_client": deps is not None and not deps.http_client.is_closed,
        },
    }


@app.post("/uploadTranscript")
async def upload_transcript(
    request: UploadTranscriptRequest,
    deps: AppDeps = Depends(get_deps),
):
    """Store a transcript and index it for retrieval.

    Args:
        request: Transcript text and course id.
        deps: Application services.

    Returns:
        Confirmation message and the course id.
    """
    try:
        if not request.transcriptText or not request.courseId:
            raise MissingFieldError("transcriptText", "courseId")

        logger.info(
            "upload_transcript_started",
            course_id=request.courseId,
            transcript_length=len(request.transcriptText),
        )

        course_id = await deps.pipeline.submit(
            request.transcriptText,
            metadata={
                "courseId": request.courseId,
                "title": f"Course {request.courseId}",
                "dateAdded": datetime.now(UTC).isoformat(),
            },
            course_id=request.courseId,
        )

    except Exception as e:
        logger.warning(
            "upload_transcript_failed",
            course_id=request.courseId,
            error_type=type(e).__name__,
            error=str(e),
        )
        return error_response(e)

    return {"message": "Transcript uploaded successfully", "courseId": course_id}


@app.post("/chat")
async def chat(request: ChatRequest, deps: AppDeps = Depends(get_deps)):
    """Answer a question about a course.

    Args:
        request: Question and course id.
        deps: Application services.

    Returns:
        The answer text.
    """
    try:
        if not request.question or not request.courseId:
            raise MissingFieldError("question", "courseId")

        answer = await deps.engine.answer(request.question, request.courseId)

    except Exception as e:
        logger.warning(
            "chat_failed",
            course_id=request.courseId,
            error_type=type(e).__name__,
            error=str(e),
        )
        return error_response(e)

    return {"answer": answer}


@app.get("/history/{course_id}")
async def chat_history(course_id: str, deps: AppDeps = Depends(get_deps)):
    """Return a course's conversation, oldest message first."""
    try:
        messages = await deps.chat_history.list_messages(course_id)
    except Exception as e:
        logger.warning("chat_history_failed", course_id=course_id, error=str(e))
        return error_response(e)

    return {"history": [message.model_dump(mode="json") for message in messages]}


@app.get("/status/{course_id}")
async def processing_status(course_id: str, deps: AppDeps = Depends(get_deps)):
    """Return a course's processing status and completion time."""
    try:
        status = await deps.pipeline.get_status(course_id)
    except Exception as e:
        logger.warning("status_lookup_failed", course_id=course_id, error=str(e))
        return error_response(e)

    return {
        "status": status.status.value,
        "processedAt": status.processed_at.isoformat() if status.processed_at else None,
    }
