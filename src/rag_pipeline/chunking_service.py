"""Chunking service for boundary-aware transcript segmentation."""

import uuid

from src.utils.logging import get_logger

from .config import CourseRAGConfig
from .schemas import Chunk, Course

logger = get_logger(__name__)

# Split points in order of preference. Separators in one group rank equally.
SEPARATOR_GROUPS: list[tuple[str, ...]] = [
    ("\n\n",),
    ("\n",),
    (". ", "? ", "! "),
    (" ",),
]


class ChunkingService:
    """Service for chunking transcripts into overlapping windows.

    This service splits course transcripts into character-bounded chunks that
    prefer paragraph, line, sentence and word boundaries. Each chunk after the
    first repeats the last chunk_overlap characters of the previous one, so
    context that crosses a boundary is preserved.
    """

    def __init__(self, config: CourseRAGConfig):
        """Initialize chunking service with configuration.

        Args:
            config: Configuration object with chunk size and overlap.
        """
        self.config = config
        logger.info(
            "chunking_service_initialized",
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
        )

    def split_text(self, text: str) -> list[str]:
        """Split text into overlapping, size-bounded spans.

        Joining the first span with every later span minus its first
        chunk_overlap characters reproduces the input exactly.

        Args:
            text: Raw transcript text.

        Returns:
            Ordered list of spans, empty for empty or blank text.
        """
        if not text or not text.strip():
            return []

        size = self.config.chunk_size
        overlap = self.config.chunk_overlap
        spans: list[str] = []
        start = 0

        while len(text) - start > size:
            # The cut must land past start + overlap so the next window advances
            end = self._find_split(text, start + overlap + 1, start + size)
            spans.append(text[start:end])
            start = end - overlap

        spans.append(text[start:])
        return spans

    def _find_split(self, text: str, lower: int, upper: int) -> int:
        """Find the preferred cut position within [lower, upper].

        The cut falls just after the last separator of the best-ranked group
        found in the window, or at upper when the window has no separator.

        Args:
            text: Text being split.
            lower: Smallest allowed cut position.
            upper: Largest allowed cut position.

        Returns:
            Index at which the current span ends.
        """
        for group in SEPARATOR_GROUPS:
            best = -1
            for separator in group:
                index = text.rfind(separator, 0, upper)
                if index != -1:
                    best = max(best, index + len(separator))
            if best >= lower:
                return best

        return upper

    def chunk_course(self, course: Course) -> list[Chunk]:
        """Chunk a course transcript and attach per-chunk metadata.

        Every chunk inherits the course metadata plus the course id and a
        freshly generated chunk id.

        Args:
            course: Course whose transcript is chunked.

        Returns:
            List of Chunk objects ready for indexing.
        """
        logger.info(
            "chunking_started",
            course_id=course.id,
            transcript_length=len(course.transcript),
        )

        chunks: list[Chunk] = []
        for chunk_index, span in enumerate(self.split_text(course.transcript)):
            chunk_id = str(uuid.uuid4())
            chunks.append(
                Chunk(
                    chunk_id=chunk_id,
                    course_id=course.id,
                    chunk_index=chunk_index,
                    text_content=span,
                    metadata={
                        **course.metadata,
                        "courseId": course.id,
                        "chunkId": chunk_id,
                    },
                )
            )

        logger.info(
            "chunking_completed",
            course_id=course.id,
            chunks_created=len(chunks),
        )
        return chunks
