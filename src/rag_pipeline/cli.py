"""Command-line interface for ingesting transcripts and sweeping failed courses."""

import argparse
import asyncio
from pathlib import Path

import httpx

from src.utils.clients import get_clients
from src.utils.logging import get_logger

from .chunking_service import ChunkingService
from .config import get_config
from .course_store import CourseStore
from .embedding_service import EmbeddingService
from .errors import CourseRAGError
from .pipeline import IngestionPipeline
from .vector_index import VectorIndex

logger = get_logger(__name__)


def build_pipeline(http_client: httpx.AsyncClient) -> IngestionPipeline:
    """Wire an ingestion pipeline from environment configuration."""
    config = get_config()
    embedding_client, supabase = get_clients(config, http_client)

    return IngestionPipeline(
        course_store=CourseStore(supabase),
        chunking_service=ChunkingService(config),
        vector_index=VectorIndex(supabase, EmbeddingService(config, embedding_client)),
    )


async def main() -> None:
    """CLI entry point for the ingestion pipeline.

    This function parses command-line arguments, runs either a sweep of
    pending/failed courses or a single transcript ingestion, and displays
    results to the user.
    """
    parser = argparse.ArgumentParser(
        description="Course transcript pipeline - ingest and index transcripts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Re-process every pending or failed course
  python -m src.rag_pipeline.cli --sweep

  # Ingest a transcript file as course c1
  python -m src.rag_pipeline.cli --transcript-file lecture1.txt --course-id c1

  # Ingest with an explicit course title
  python -m src.rag_pipeline.cli --transcript-file bst.txt --course-id c2 --title "Binary Search Trees"
        """,
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--sweep",
        action="store_true",
        help="Re-process all courses in pending or failed state",
    )
    mode.add_argument(
        "--transcript-file",
        type=Path,
        help="Path to a UTF-8 transcript file to ingest",
    )
    parser.add_argument(
        "--course-id",
        type=str,
        help="Course id for the ingested transcript (generated if omitted)",
    )
    parser.add_argument(
        "--title",
        type=str,
        help="Course title used in prompts (default: 'Course <course-id>')",
    )

    args = parser.parse_args()

    async with httpx.AsyncClient() as http_client:
        pipeline = build_pipeline(http_client)

        if args.sweep:
            logger.info("cli_sweep_started")
            result = await pipeline.sweep()

            print("\n" + "=" * 60)
            print("Sweep Results")
            print("=" * 60)
            print(f"Courses found: {result.total_courses}")
            print(f"Successfully processed: {result.processed}")
            print(f"Failed: {result.failed}")
            print(f"Skipped (claimed elsewhere): {result.skipped}")
            print(f"Total chunks created: {result.chunks_created}")

            if result.errors:
                print("\nErrors encountered:")
                for error in result.errors:
                    print(f"  ❌ {error}")
            else:
                print("\n✅ No errors encountered")
            print("=" * 60 + "\n")
            return

        transcript = args.transcript_file.read_text(encoding="utf-8")
        metadata = {}
        if args.course_id:
            metadata["courseId"] = args.course_id
        title = args.title or (f"Course {args.course_id}" if args.course_id else None)
        if title:
            metadata["title"] = title

        logger.info(
            "cli_ingest_started",
            transcript_file=str(args.transcript_file),
            course_id=args.course_id,
        )

        try:
            course_id = await pipeline.submit(
                transcript, metadata=metadata, course_id=args.course_id
            )
        except CourseRAGError as e:
            logger.exception("cli_ingest_failed", error_type=type(e).__name__)
            print(f"\n❌ Ingestion failed: {e}")
            return

        status = await pipeline.get_status(course_id)
        print(f"\n✅ Course {course_id} ingested (status: {status.status.value})\n")


if __name__ == "__main__":
    asyncio.run(main())
