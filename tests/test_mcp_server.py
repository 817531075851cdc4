"""Tests for the MCP server module."""

from unittest.mock import MagicMock, patch

import pytest

from acadrag.exceptions import VectorStoreError
from acadrag.retrieval.embedding import EmbeddingClient
from acadrag.retrieval.pipeline import RetrievalPipeline
from acadrag.service.database import InMemoryChunkStore
from acadrag.service.mcp_server import (
    ServerServices,
    count_chunks_impl,
    get_services,
    index_course_document_impl,
    search_course_material_impl,
    set_services,
)


@pytest.fixture
def services(create_test_chunk, fake_provider, retrieval_config):
    """Install in-memory services for the MCP tools and remove them afterwards."""
    store = InMemoryChunkStore(
        [
            create_test_chunk("buffers_chunk_0", "Buffers resist changes in pH", [1, 1, 0, 0]),
            create_test_chunk("buffers_chunk_1", "Henderson-Hasselbalch equation", [1, 0.8, 0, 0],
                              professor="Dr. Babbage"),
            create_test_chunk("kinetics_chunk_0", "Rate laws describe reaction speed", [0, 0, 1, 0],
                              course_code="CHEM201", topic="Kinetics"),
        ]
    )
    embedder = EmbeddingClient(fake_provider, dimensions=4, retry_attempts=1, retry_base_delay=0.0)
    installed = ServerServices(
        store=store,
        embedder=embedder,
        pipeline=RetrievalPipeline(store, embedder, retrieval_config),
    )
    set_services(installed)
    yield installed
    set_services(None)


class TestSearchCourseMaterial:
    """Tests for the search_course_material tool."""

    @pytest.mark.asyncio
    async def test_search_returns_response_dict(self, services):
        """Test that the tool returns the serialized search response."""
        result = await search_course_material_impl("buffers", max_chunks=2)

        assert result["searchType"] == "vector"
        assert result["totalResults"] == 2
        assert result["chunks"][0]["text"] == "Buffers resist changes in pH"

    @pytest.mark.asyncio
    async def test_course_filter_applied(self, services):
        """Test that a course filter limits results to that course."""
        result = await search_course_material_impl("rates", course_code="CHEM201", mode="chat")

        assert [chunk["text"] for chunk in result["chunks"]] == ["Rate laws describe reaction speed"]

    @pytest.mark.asyncio
    async def test_quiz_mode(self, services):
        """Test that quiz mode draws from the broad pool."""
        result = await search_course_material_impl("acids", mode="quiz")
        assert result["totalResults"] == 3

    @pytest.mark.asyncio
    async def test_invalid_mode_raises(self, services):
        """Test that an unknown mode is rejected."""
        with pytest.raises(ValueError, match="mode must be one of"):
            await search_course_material_impl("buffers", mode="essay")

    @pytest.mark.asyncio
    async def test_blank_query_raises_value_error(self, services):
        """Test that pipeline validation errors surface as ValueError."""
        with pytest.raises(ValueError):
            await search_course_material_impl("   ")


class TestIndexCourseDocument:
    """Tests for the index_course_document tool."""

    @pytest.mark.asyncio
    async def test_index_document(self, services):
        """Test that a document is chunked and stored."""
        result = await index_course_document_impl(
            document_id="lecture-7",
            title="Electrochemistry",
            content="Galvanic cells convert chemical energy into electrical energy.",
            course_code="CHEM101",
            professor="Dr. Curie",
        )

        assert result == {
            "success": True,
            "documentId": "lecture-7",
            "chunksCreated": 1,
            "error": None,
        }
        assert services.store.count() == 4

    @pytest.mark.asyncio
    async def test_reindex_replaces_chunks(self, services):
        """Test that indexing the same id twice does not duplicate chunks."""
        for _ in range(2):
            await index_course_document_impl("lecture-7", "Electrochemistry", "Cells and potentials")

        assert services.store.count() == 4

    @pytest.mark.asyncio
    async def test_empty_document_reported(self, services):
        """Test that an empty document is reported as a failure."""
        result = await index_course_document_impl("blank", "Blank", "   ")

        assert result["success"] is False
        assert result["error"]


class TestCountChunks:
    """Tests for the count_chunks tool."""

    @pytest.mark.asyncio
    async def test_count(self, services):
        """Test the chunk count."""
        assert await count_chunks_impl() == {"success": True, "count": 3}

    @pytest.mark.asyncio
    async def test_count_store_error(self, services):
        """Test that store errors are returned, not raised."""
        services.store = MagicMock()
        services.store.count.side_effect = VectorStoreError("RavenDB unavailable")

        result = await count_chunks_impl()

        assert result["success"] is False
        assert "RavenDB unavailable" in result["message"]


class TestServices:
    """Tests for lazy service construction."""

    @patch("acadrag.service.mcp_server.create_pipeline")
    @patch("acadrag.service.mcp_server.create_embedding_client")
    @patch("acadrag.service.mcp_server.RavenDBChunkStore")
    def test_services_built_once(self, mock_store_class, mock_embedder, mock_pipeline):
        """Test that get_services builds the services on first use and caches them."""
        set_services(None)
        try:
            first = get_services()
            second = get_services()
        finally:
            set_services(None)

        assert first is second
        mock_store_class.assert_called_once()
        mock_pipeline.assert_called_once_with(mock_store_class.return_value, mock_embedder.return_value)
