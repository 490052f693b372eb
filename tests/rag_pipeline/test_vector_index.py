"""Unit tests for the Supabase-backed vector index."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.rag_pipeline.errors import UpstreamFailure
from src.rag_pipeline.vector_index import VectorIndex


@pytest.mark.unit
class TestVectorIndex:
    """Test suite for VectorIndex class."""

    @pytest.fixture
    def mock_supabase_client(self) -> MagicMock:
        """Create mock Supabase client."""
        return MagicMock()

    @pytest.fixture
    def mock_embedding_service(self) -> MagicMock:
        """Create mock embedding service."""
        service = MagicMock()
        service.embed_text = AsyncMock(return_value=[0.1, 0.2, 0.3])
        service.embed_batch = AsyncMock(
            side_effect=lambda texts: [[float(i)] * 3 for i in range(len(texts))]
        )
        return service

    @pytest.fixture
    def vector_index(
        self, mock_supabase_client: MagicMock, mock_embedding_service: MagicMock
    ) -> VectorIndex:
        """Create vector index with mocked collaborators."""
        return VectorIndex(mock_supabase_client, mock_embedding_service)

    @pytest.mark.asyncio
    async def test_add_inserts_single_batch(
        self,
        vector_index: VectorIndex,
        mock_supabase_client: MagicMock,
        mock_embedding_service: MagicMock,
    ) -> None:
        """Test that all points are embedded and written in one insert."""
        await vector_index.add(
            ids=["id-1", "id-2"],
            texts=["first chunk", "second chunk"],
            metadatas=[
                {"courseId": "c1", "chunkId": "id-1"},
                {"courseId": "c1", "chunkId": "id-2"},
            ],
        )

        mock_embedding_service.embed_batch.assert_awaited_once_with(
            ["first chunk", "second chunk"]
        )
        mock_supabase_client.table.assert_called_once_with("course_chunks")
        insert = mock_supabase_client.table.return_value.insert
        insert.assert_called_once()
        rows = insert.call_args[0][0]
        assert [row["id"] for row in rows] == ["id-1", "id-2"]
        assert [row["chunk_index"] for row in rows] == [0, 1]
        assert all(row["course_id"] == "c1" for row in rows)
        assert rows[1]["text_content"] == "second chunk"
        assert rows[1]["embedding"] == [1.0, 1.0, 1.0]
        assert rows[0]["metadata"] == {"courseId": "c1", "chunkId": "id-1"}

    @pytest.mark.asyncio
    async def test_add_empty_is_noop(
        self,
        vector_index: VectorIndex,
        mock_supabase_client: MagicMock,
        mock_embedding_service: MagicMock,
    ) -> None:
        """Test that adding nothing touches neither embeddings nor database."""
        await vector_index.add(ids=[], texts=[], metadatas=[])

        mock_embedding_service.embed_batch.assert_not_called()
        mock_supabase_client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_add_mismatched_lengths(self, vector_index: VectorIndex) -> None:
        """Test that misaligned inputs are rejected."""
        with pytest.raises(ValueError, match="must align"):
            await vector_index.add(ids=["id-1"], texts=["a", "b"], metadatas=[{}])

    @pytest.mark.asyncio
    async def test_add_insert_error(
        self, vector_index: VectorIndex, mock_supabase_client: MagicMock
    ) -> None:
        """Test that insert errors surface as UpstreamFailure."""
        mock_supabase_client.table.return_value.insert.return_value.execute.side_effect = (
            Exception("Database error")
        )

        with pytest.raises(UpstreamFailure, match="Database error"):
            await vector_index.add(ids=["id-1"], texts=["a"], metadatas=[{"courseId": "c1"}])

    @pytest.mark.asyncio
    async def test_query_returns_distances_ascending(
        self,
        vector_index: VectorIndex,
        mock_supabase_client: MagicMock,
        mock_embedding_service: MagicMock,
    ) -> None:
        """Test that similarity is converted to distance and sorted."""
        mock_response = MagicMock()
        mock_response.data = [
            {"text_content": "weaker match", "similarity": 0.25, "metadata": {"courseId": "c1"}},
            {"text_content": "best match", "similarity": 0.9, "metadata": {"courseId": "c1"}},
        ]
        mock_supabase_client.rpc.return_value.execute.return_value = mock_response

        results = await vector_index.query("binary trees", top_k=3, filter_metadata={"courseId": "c1"})

        assert [r.text for r in results] == ["best match", "weaker match"]
        assert results[0].distance == pytest.approx(0.1)
        assert results[1].distance == pytest.approx(0.75)
        mock_embedding_service.embed_text.assert_awaited_once_with("binary trees")
        mock_supabase_client.rpc.assert_called_once_with(
            "match_course_chunks",
            {
                "query_embedding": [0.1, 0.2, 0.3],
                "match_count": 3,
                "filter": {"courseId": "c1"},
            },
        )

    @pytest.mark.asyncio
    async def test_query_no_results(
        self, vector_index: VectorIndex, mock_supabase_client: MagicMock
    ) -> None:
        """Test that an empty RPC result yields an empty list."""
        mock_response = MagicMock()
        mock_response.data = None
        mock_supabase_client.rpc.return_value.execute.return_value = mock_response

        assert await vector_index.query("anything") == []

    @pytest.mark.asyncio
    async def test_query_rpc_error(
        self, vector_index: VectorIndex, mock_supabase_client: MagicMock
    ) -> None:
        """Test that RPC errors surface as UpstreamFailure."""
        mock_supabase_client.rpc.return_value.execute.side_effect = Exception("RPC error")

        with pytest.raises(UpstreamFailure, match="RPC error"):
            await vector_index.query("anything")

    @pytest.mark.asyncio
    async def test_delete_course(
        self, vector_index: VectorIndex, mock_supabase_client: MagicMock
    ) -> None:
        """Test deleting every chunk of a course."""
        await vector_index.delete_course("c1")

        mock_supabase_client.table.assert_called_once_with("course_chunks")
        mock_supabase_client.table.return_value.delete.return_value.eq.assert_called_once_with(
            "course_id", "c1"
        )

    @pytest.mark.asyncio
    async def test_delete_course_error(
        self, vector_index: VectorIndex, mock_supabase_client: MagicMock
    ) -> None:
        """Test that delete errors surface as UpstreamFailure."""
        mock_supabase_client.table.return_value.delete.return_value.eq.return_value.execute.side_effect = Exception(
            "Database error"
        )

        with pytest.raises(UpstreamFailure):
            await vector_index.delete_course("c1")
