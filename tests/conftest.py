"""Pytest configuration and shared fixtures for the test suite."""

import requests

import pytest

from acadrag.config import QuizConfig, RetrievalConfig
from acadrag.retrieval.embedding import EmbeddingClient
from acadrag.retrieval.pipeline import RetrievalPipeline
from acadrag.service.database.chunk_store import InMemoryChunkStore
from acadrag.service.database.models import Chunk, ChunkMetadata

DIMENSIONS = 4
QUERY_VECTOR = [1.0, 1.0, 0.0, 0.0]


# Service availability checks
def ollama_available() -> bool:
    """Check if Ollama server is running and accessible.

    Returns:
        True if Ollama is available, False otherwise
    """
    try:
        response = requests.get("http://localhost:11434/api/tags", timeout=2)
        return response.status_code == 200
    except requests.RequestException:
        return False


def ravendb_available() -> bool:
    """Check if RavenDB server is running and accessible.

    Returns:
        True if RavenDB is available, False otherwise
    """
    try:
        response = requests.get("http://localhost:8080/databases", timeout=2)
        return response.status_code in (200, 401)  # Auth required is OK
    except requests.RequestException:
        return False


class FakeProvider:
    """In-process stand-in for an LLM/embedding provider.

    Texts listed in ``vectors`` embed to the given vector, anything else to
    ``default``. ``responses`` are returned by ``generate_response`` in order.
    """

    def __init__(self, vectors=None, default=None, responses=None):
        self.vectors = vectors or {}
        self.default = default or QUERY_VECTOR
        self.responses = list(responses or [])
        self.embedding_calls: list[list[str]] = []
        self.prompts: list[tuple[list[dict], object]] = []

    def generate_embeddings(self, texts, model=None):
        self.embedding_calls.append(list(texts))
        return [list(self.vectors.get(text, self.default)) for text in texts]

    async def generate_response(self, messages, options=None):
        self.prompts.append((messages, options))
        return self.responses.pop(0) if self.responses else ""


# Service fixtures with skip markers
@pytest.fixture
def ollama_service():
    """Provide OllamaService instance, skip if Ollama not available."""
    if not ollama_available():
        pytest.skip("Ollama server not running on localhost:11434")

    from acadrag.llm import OllamaService

    return OllamaService(host="http://localhost:11434", model="llama3")


@pytest.fixture
def ravendb_store():
    """Provide a RavenDBChunkStore on a scratch collection, skip if RavenDB not available."""
    if not ravendb_available():
        pytest.skip("RavenDB server not running on localhost:8080")

    from acadrag.service.database import RavenDBChunkStore

    store = RavenDBChunkStore(collection="TestChunks")
    yield store
    store.close()


# Test data generators
@pytest.fixture
def create_test_chunk():
    """Factory fixture to create chunks with canonical metadata.

    Returns:
        Function that creates a Chunk with custom parameters
    """

    def _create_chunk(
        chunk_id: str = "doc1_chunk_0",
        text: str = "Test chunk text",
        embedding: list[float] | None = None,
        course_code: str | None = "CHEM101",
        professor: str | None = "Dr. Ada Lovelace",
        topic: str | None = "Titration",
        level: str | None = "100",
        source: str | None = None,
        section: str | None = None,
        document_type: str | None = "notes",
        title: str | None = "Acids and Bases",
        document_id: str | None = None,
    ) -> Chunk:
        document_id = document_id or chunk_id.split("_chunk_")[0]
        return Chunk(
            id=chunk_id,
            document_id=document_id,
            text=text,
            embedding=list(embedding) if embedding is not None else [0.5, 0.5, 0.5, 0.5],
            metadata=ChunkMetadata(
                course_code=course_code,
                course_title="General Chemistry",
                topic=topic,
                professor=professor,
                document_type=document_type,
                level=level,
                section=section,
                date="2024-09-01",
                title=title,
                source=source or (f"{professor}'s notes" if professor else None),
                document_id=document_id,
            ),
        )

    return _create_chunk


@pytest.fixture
def fake_provider():
    """Provide a FakeProvider embedding every text to QUERY_VECTOR."""
    return FakeProvider()


@pytest.fixture
def retrieval_config():
    """Retrieval settings sized for 4-dimensional test vectors and short timeouts."""
    return RetrievalConfig(embedding_dimensions=DIMENSIONS, call_timeout=2.0, request_timeout=5.0)


@pytest.fixture
def quiz_config():
    """Quiz settings without backoff between attempts."""
    return QuizConfig(retry_base_delay=0.0)


@pytest.fixture
def make_pipeline(retrieval_config):
    """Factory fixture building a pipeline over an in-memory store.

    Returns:
        Function taking (chunks, provider) and returning a RetrievalPipeline;
        a provider of None disables vector search
    """

    def _make(chunks, provider=None, config=None):
        embedder = None
        if provider is not None:
            embedder = EmbeddingClient(
                provider, dimensions=DIMENSIONS, retry_attempts=1, retry_base_delay=0.0
            )
        return RetrievalPipeline(InMemoryChunkStore(chunks), embedder, config or retrieval_config)

    return _make


@pytest.fixture
def provider_factory():
    """Provide the FakeProvider class for tests needing custom vectors or responses."""
    return FakeProvider
