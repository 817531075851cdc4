"""Chunk storage for course material on RavenDB.

This package provides a unified interface for the chunk store:
- Configuration management (RavenDBConfig)
- Document store creation, index management and database administration
- The ChunkStore contract with RavenDB and in-memory implementations
- Canonical chunk metadata and its normalization
- Document chunking and indexing

Usage:
    from acadrag.service.database import (
        RavenDBChunkStore,
        SearchFilters,
        index_document,
    )
"""

# Re-export public API
from acadrag.service.database.chunk_store import (
    ChunkStore,
    InMemoryChunkStore,
    RavenDBChunkStore,
    chunk_from_record,
)
from acadrag.service.database.config import RavenDBConfig
from acadrag.service.database.indexing import (
    IndexingResult,
    chunk_text,
    index_document,
    reindex_documents,
)
from acadrag.service.database.metadata import normalize_metadata
from acadrag.service.database.models import (
    Chunk,
    ChunkMetadata,
    DocumentChunk,
    SearchFilters,
    SourceDocument,
)
from acadrag.service.database.operations import (
    create_database,
    create_document_store,
    database_exists,
    delete_database,
    ensure_index_exists,
)
from acadrag.service.database.utils import cosine_similarity

__all__ = [
    # Config
    "RavenDBConfig",
    # Models
    "Chunk",
    "ChunkMetadata",
    "DocumentChunk",
    "SearchFilters",
    "SourceDocument",
    "normalize_metadata",
    # Stores
    "ChunkStore",
    "InMemoryChunkStore",
    "RavenDBChunkStore",
    "chunk_from_record",
    # Operations
    "create_document_store",
    "ensure_index_exists",
    "database_exists",
    "create_database",
    "delete_database",
    # Indexing
    "IndexingResult",
    "chunk_text",
    "index_document",
    "reindex_documents",
    # Utils
    "cosine_similarity",
]
