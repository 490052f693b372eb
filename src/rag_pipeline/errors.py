"""Error kinds raised by the ingestion pipeline and query engine."""


class CourseRAGError(Exception):
    """Base class for all course RAG errors."""


class CourseNotFoundError(CourseRAGError):
    """Raised when a course id is unknown."""

    def __init__(self, course_id: str):
        self.course_id = course_id
        super().__init__(f"Course not found: {course_id}")


class CourseNotReadyError(CourseRAGError):
    """Raised when a course has not finished processing."""

    def __init__(self, course_id: str, status: str):
        self.course_id = course_id
        self.status = status
        super().__init__(f"Course {course_id} is still being processed (status: {status})")


class CourseAlreadyExistsError(CourseRAGError):
    """Raised when a transcript is submitted for an existing course id."""

    def __init__(self, course_id: str):
        self.course_id = course_id
        super().__init__(f"Course already exists: {course_id}")


class IngestionFailure(CourseRAGError):
    """Raised when chunking or indexing a transcript fails."""

    def __init__(self, course_id: str, message: str):
        self.course_id = course_id
        super().__init__(f"Ingestion failed for course {course_id}: {message}")


class UpstreamFailure(CourseRAGError):
    """Raised when the database, vector index, embedding or chat model fails."""


class QueryTimeoutError(UpstreamFailure):
    """Raised when the language model does not answer in time."""


class MissingFieldError(CourseRAGError):
    """Raised when a request is missing a required field."""

    def __init__(self, *fields: str):
        self.fields = list(fields)
        super().__init__(f"Missing {' or '.join(fields)}")
