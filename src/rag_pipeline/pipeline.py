"""Ingestion pipeline driving courses through their processing states."""

import uuid
from datetime import UTC, datetime
from typing import Any

from src.utils.logging import get_logger

from .chunking_service import ChunkingService
from .course_store import CourseStore
from .errors import CourseAlreadyExistsError, CourseNotFoundError, IngestionFailure
from .schemas import (
    Course,
    CourseProcessingResult,
    CourseStatus,
    ProcessingStatus,
    SweepResult,
)
from .vector_index import VectorIndex

logger = get_logger(__name__)

# Statuses the pipeline may (re)claim a course from
CLAIMABLE_STATUSES = [ProcessingStatus.PENDING, ProcessingStatus.FAILED]


class IngestionPipeline:
    """Orchestrates transcript ingestion.

    Each course moves pending -> processing -> completed, or to failed when
    chunking or indexing raises. Failed and pending courses are picked up
    again by sweep(). A course is claimed with a compare-and-swap status
    transition, so two callers never index the same course at once.
    """

    def __init__(
        self,
        course_store: CourseStore,
        chunking_service: ChunkingService,
        vector_index: VectorIndex,
    ):
        """Initialize pipeline with its collaborating services.

        Args:
            course_store: Store holding course records and status.
            chunking_service: Service splitting transcripts into chunks.
            vector_index: Index receiving the chunks.
        """
        self.course_store = course_store
        self.chunking_service = chunking_service
        self.vector_index = vector_index

        logger.info(
            "pipeline_initialized",
            chunk_size=chunking_service.config.chunk_size,
            chunk_overlap=chunking_service.config.chunk_overlap,
        )

    async def submit(
        self,
        transcript: str,
        metadata: dict[str, Any] | None = None,
        course_id: str | None = None,
    ) -> str:
        """Create a course from a transcript and process it right away.

        Args:
            transcript: Raw transcript text.
            metadata: Free-form course metadata. Its title key names the
                course topic in prompts.
            course_id: Caller-supplied id. A uuid4 is generated when omitted.

        Returns:
            The course id.

        Raises:
            CourseAlreadyExistsError: If a course with this id already exists.
            IngestionFailure: If processing fails. The course stays recorded
                as failed and will be retried by the next sweep.
        """
        course_id = course_id or str(uuid.uuid4())
        metadata = dict(metadata or {})

        if await self.course_store.get(course_id) is not None:
            logger.warning("course_already_exists", course_id=course_id)
            raise CourseAlreadyExistsError(course_id)

        course = Course(
            id=course_id,
            title=metadata.get("title") or "Untitled Course",
            transcript=transcript,
            metadata=metadata,
            processing_status=ProcessingStatus.PENDING,
            date_added=datetime.now(UTC),
        )
        await self.course_store.create(course)

        logger.info(
            "transcript_submitted",
            course_id=course_id,
            transcript_length=len(transcript),
        )

        await self.process(course)
        return course_id

    async def process(self, course: Course) -> CourseProcessingResult:
        """Chunk and index one course.

        This method:
        1. Claims the course (pending/failed -> processing)
        2. Chunks the transcript
        3. Deletes chunks left behind by an earlier attempt
        4. Writes all chunks to the vector index in one batch
        5. Marks the course completed and stamps processed_at

        Args:
            course: Course to process.

        Returns:
            CourseProcessingResult with status "completed", or "skipped" when
            the course could not be claimed.

        Raises:
            IngestionFailure: If chunking or indexing fails. The course is
                marked failed first, when that write succeeds.
        """
        claimed = await self.course_store.transition_status(
            course.id, CLAIMABLE_STATUSES, ProcessingStatus.PROCESSING
        )
        if not claimed:
            logger.info("course_claim_skipped", course_id=course.id)
            return CourseProcessingResult(course_id=course.id, status="skipped")

        logger.info("course_processing_started", course_id=course.id)

        try:
            chunks = self.chunking_service.chunk_course(course)

            await self.vector_index.delete_course(course.id)
            await self.vector_index.add(
                ids=[chunk.chunk_id for chunk in chunks],
                texts=[chunk.text_content for chunk in chunks],
                metadatas=[chunk.metadata for chunk in chunks],
            )

            processed_at = datetime.now(UTC)
            await self.course_store.update_status(
                course.id,
                ProcessingStatus.COMPLETED,
                processed_at=processed_at,
            )

        except Exception as e:
            logger.exception(
                "course_processing_failed",
                course_id=course.id,
                error_type=type(e).__name__,
            )
            try:
                await self.course_store.update_status(
                    course.id,
                    ProcessingStatus.FAILED,
                    error_message=str(e),
                )
            except Exception:
                # Left in processing; scripts/clear_and_reprocess.py resets it
                logger.exception("course_failed_status_write_failed", course_id=course.id)
            raise IngestionFailure(course.id, str(e)) from e

        logger.info(
            "course_processing_completed",
            course_id=course.id,
            chunks=len(chunks),
        )
        return CourseProcessingResult(
            course_id=course.id,
            status=ProcessingStatus.COMPLETED.value,
            chunks_created=len(chunks),
            processed_at=processed_at,
        )

    async def sweep(self) -> SweepResult:
        """Re-process every course left pending or failed.

        Courses are processed one at a time. A failure is recorded in the
        result and does not stop the remaining courses.

        Returns:
            SweepResult with statistics and any errors encountered.

        Raises:
            UpstreamFailure: If the pending courses cannot be listed.
        """
        courses = await self.course_store.list_by_status(CLAIMABLE_STATUSES)

        result = SweepResult(
            total_courses=len(courses),
            processed=0,
            failed=0,
            skipped=0,
            chunks_created=0,
        )
        logger.info("sweep_started", courses=len(courses))

        for course in courses:
            try:
                course_result = await self.process(course)
            except Exception as e:
                result.failed += 1
                result.errors.append(f"{course.id}: {e}")
                logger.warning(
                    "sweep_course_failed",
                    course_id=course.id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                continue

            if course_result.status == "skipped":
                result.skipped += 1
            else:
                result.processed += 1
                result.chunks_created += course_result.chunks_created

        logger.info(
            "sweep_completed",
            processed=result.processed,
            failed=result.failed,
            skipped=result.skipped,
            chunks_created=result.chunks_created,
        )
        return result

    async def get_status(self, course_id: str) -> CourseStatus:
        """Report a course's processing status.

        Raises:
            CourseNotFoundError: If the course does not exist.
        """
        course = await self.course_store.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)

        return CourseStatus(
            course_id=course.id,
            status=course.processing_status,
            processed_at=course.processed_at,
        )
