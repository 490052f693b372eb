"""Course store for transcripts and their processing status in Supabase."""

from datetime import UTC, datetime
from typing import Any

from supabase import Client

from src.utils.logging import get_logger

from .errors import CourseAlreadyExistsError, UpstreamFailure
from .schemas import Course, ProcessingStatus

logger = get_logger(__name__)

COURSES_TABLE = "courses"

# Postgres error code raised on a duplicate primary key
UNIQUE_VIOLATION = "23505"


class CourseStore:
    """Service for storing course records in Supabase.

    Handles course creation, lookups, status updates and the
    compare-and-swap transition the pipeline uses to claim a course.
    """

    def __init__(self, client: Client):
        """Initialize course store.

        Args:
            client: Supabase client for database operations.
        """
        self.client = client

    async def create(self, course: Course) -> Course:
        """Insert a new course record.

        Args:
            course: Course to insert.

        Returns:
            The stored course.

        Raises:
            CourseAlreadyExistsError: If a course with this id already exists.
            UpstreamFailure: If the insert fails.
        """
        data = {
            "id": course.id,
            "title": course.title,
            "transcript": course.transcript,
            "metadata": course.metadata,
            "processing_status": course.processing_status.value,
            "processed_at": None,
            "date_added": (course.date_added or datetime.now(UTC)).isoformat(),
        }

        try:
            response = self.client.table(COURSES_TABLE).insert(data).execute()
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                logger.warning("course_already_exists", course_id=course.id)
                raise CourseAlreadyExistsError(course.id) from e
            logger.exception(
                "course_create_failed",
                course_id=course.id,
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(f"Failed to create course {course.id}: {e}") from e

        logger.info("course_created", course_id=course.id, title=course.title)
        if response.data:
            return Course.model_validate(response.data[0])
        return course

    async def get(self, course_id: str) -> Course | None:
        """Fetch a course by id.

        Args:
            course_id: Course identifier.

        Returns:
            The course, or None if no course has this id.

        Raises:
            UpstreamFailure: If the query fails.
        """
        try:
            response = (
                self.client.table(COURSES_TABLE)
                .select("*")
                .eq("id", course_id)
                .execute()
            )
        except Exception as e:
            logger.exception(
                "course_fetch_failed",
                course_id=course_id,
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(f"Failed to fetch course {course_id}: {e}") from e

        if not response.data:
            logger.debug("course_not_found", course_id=course_id)
            return None
        return Course.model_validate(response.data[0])

    async def update_status(
        self,
        course_id: str,
        status: ProcessingStatus,
        processed_at: datetime | None = None,
        error_message: str | None = None,
    ) -> None:
        """Set a course's processing status unconditionally.

        Args:
            course_id: Course identifier.
            status: New processing status.
            processed_at: Completion timestamp, only written when given.
            error_message: Failure reason, cleared when omitted.

        Raises:
            UpstreamFailure: If the update fails.
        """
        data: dict[str, Any] = {
            "processing_status": status.value,
            "error_message": error_message,
        }
        if processed_at is not None:
            data["processed_at"] = processed_at.isoformat()

        try:
            self.client.table(COURSES_TABLE).update(data).eq("id", course_id).execute()
        except Exception as e:
            logger.exception(
                "status_update_failed",
                course_id=course_id,
                status=status.value,
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(
                f"Failed to update status of course {course_id}: {e}"
            ) from e

        logger.info("course_status_updated", course_id=course_id, status=status.value)

    async def transition_status(
        self,
        course_id: str,
        from_statuses: list[ProcessingStatus],
        to_status: ProcessingStatus,
    ) -> bool:
        """Move a course to a new status only if it is in one of from_statuses.

        The filter and the write happen in one UPDATE statement, so two
        callers racing for the same course cannot both succeed.

        Args:
            course_id: Course identifier.
            from_statuses: Statuses the course must currently be in.
            to_status: Status to move to.

        Returns:
            True if the course was moved, False if its status did not match.

        Raises:
            UpstreamFailure: If the update fails.
        """
        try:
            response = (
                self.client.table(COURSES_TABLE)
                .update({"processing_status": to_status.value, "error_message": None})
                .eq("id", course_id)
                .in_("processing_status", [s.value for s in from_statuses])
                .execute()
            )
        except Exception as e:
            logger.exception(
                "status_transition_failed",
                course_id=course_id,
                to_status=to_status.value,
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(
                f"Failed to update status of course {course_id}: {e}"
            ) from e

        moved = bool(response.data)
        logger.info(
            "course_status_transition",
            course_id=course_id,
            to_status=to_status.value,
            moved=moved,
        )
        return moved

    async def list_by_status(self, statuses: list[ProcessingStatus]) -> list[Course]:
        """List every course currently in one of the given statuses.

        Args:
            statuses: Statuses to match.

        Returns:
            Matching courses, oldest first.

        Raises:
            UpstreamFailure: If the query fails.
        """
        try:
            response = (
                self.client.table(COURSES_TABLE)
                .select("*")
                .in_("processing_status", [s.value for s in statuses])
                .order("date_added")
                .execute()
            )
        except Exception as e:
            logger.exception(
                "course_list_failed",
                statuses=[s.value for s in statuses],
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(f"Failed to list courses: {e}") from e

        return [Course.model_validate(row) for row in response.data or []]
