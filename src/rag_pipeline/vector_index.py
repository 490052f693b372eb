"""Vector index over transcript chunks backed by Supabase pgvector."""

from typing import Any

from supabase import Client

from src.utils.logging import get_logger

from .embedding_service import EmbeddingService
from .errors import UpstreamFailure
from .schemas import RetrievedChunk

logger = get_logger(__name__)

CHUNKS_TABLE = "course_chunks"
MATCH_FUNCTION = "match_course_chunks"


class VectorIndex:
    """Stores (id, text, metadata) points and answers nearest-neighbour queries.

    Texts are embedded with the EmbeddingService on the way in and queries are
    embedded the same way before calling the match_course_chunks RPC. The RPC
    reports cosine similarity; this class exposes it as a distance
    (1 - similarity) so lower values mean closer matches.
    """

    def __init__(self, client: Client, embedding_service: EmbeddingService):
        """Initialize vector index.

        Args:
            client: Supabase client for database operations.
            embedding_service: Service used to embed chunk texts and queries.
        """
        self.client = client
        self.embedding_service = embedding_service
        logger.info("vector_index_initialized", table=CHUNKS_TABLE)

    async def add(
        self,
        ids: list[str],
        texts: list[str],
        metadatas: list[dict[str, Any]],
    ) -> None:
        """Embed and insert a batch of points in a single write.

        Args:
            ids: Chunk identifiers, used as primary keys.
            texts: Chunk texts, aligned with ids.
            metadatas: Chunk metadata, aligned with ids. The courseId key is
                copied into its own column for filtering and deletion.

        Raises:
            ValueError: If the three lists differ in length.
            UpstreamFailure: If embedding or the database insert fails.
        """
        if not (len(ids) == len(texts) == len(metadatas)):
            raise ValueError(
                f"ids, texts and metadatas must align "
                f"(got {len(ids)}, {len(texts)}, {len(metadatas)})"
            )
        if not ids:
            return

        embeddings = await self.embedding_service.embed_batch(texts)

        rows = [
            {
                "id": chunk_id,
                "course_id": metadata.get("courseId"),
                "chunk_index": index,
                "text_content": text,
                "metadata": metadata,
                "embedding": embedding,
            }
            for index, (chunk_id, text, metadata, embedding) in enumerate(
                zip(ids, texts, metadatas, embeddings, strict=True)
            )
        ]

        try:
            self.client.table(CHUNKS_TABLE).insert(rows).execute()
        except Exception as e:
            logger.exception(
                "chunks_insert_failed",
                count=len(rows),
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(f"Vector index insert failed: {e}") from e

        logger.info(
            "chunks_indexed",
            count=len(rows),
            course_id=rows[0]["course_id"],
        )

    async def query(
        self,
        text: str,
        top_k: int = 5,
        filter_metadata: dict[str, Any] | None = None,
    ) -> list[RetrievedChunk]:
        """Find the chunks closest to a query text.

        Args:
            text: Query text, embedded before searching.
            top_k: Maximum number of results to return.
            filter_metadata: JSONB containment filter on chunk metadata,
                e.g. {"courseId": "c1"}.

        Returns:
            Matches sorted by ascending distance.

        Raises:
            UpstreamFailure: If embedding or the RPC call fails.
        """
        query_embedding = await self.embedding_service.embed_text(text)

        try:
            response = self.client.rpc(
                MATCH_FUNCTION,
                {
                    "query_embedding": query_embedding,
                    "match_count": top_k,
                    "filter": filter_metadata or {},
                },
            ).execute()
        except Exception as e:
            logger.exception(
                "vector_search_failed",
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(f"Vector search failed: {e}") from e

        rows: list[dict[str, Any]] = response.data or []
        results = sorted(
            (
                RetrievedChunk(
                    text=row.get("text_content", ""),
                    distance=1.0 - float(row.get("similarity", 0.0)),
                    metadata=row.get("metadata") or {},
                )
                for row in rows
            ),
            key=lambda match: match.distance,
        )

        logger.info(
            "vector_search_completed",
            results=len(results),
            top_k=top_k,
            best_distance=results[0].distance if results else None,
        )
        return results

    async def delete_course(self, course_id: str) -> None:
        """Remove every indexed chunk of a course.

        Args:
            course_id: Course whose chunks are removed.

        Raises:
            UpstreamFailure: If the delete fails.
        """
        try:
            self.client.table(CHUNKS_TABLE).delete().eq("course_id", course_id).execute()
        except Exception as e:
            logger.exception(
                "chunks_delete_failed",
                course_id=course_id,
                error_type=type(e).__name__,
            )
            raise UpstreamFailure(f"Vector index delete failed: {e}") from e

        logger.info("course_chunks_deleted", course_id=course_id)
