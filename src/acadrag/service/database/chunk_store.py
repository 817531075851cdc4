"""Chunk stores: the vector-store contract and its RavenDB and in-memory implementations."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Protocol

from ravendb import DocumentStore

from acadrag.exceptions import VectorStoreError
from acadrag.retry import retry_call
from acadrag.service.database.config import RavenDBConfig
from acadrag.service.database.metadata import normalize_metadata
from acadrag.service.database.models import Chunk, DocumentChunk, SearchFilters
from acadrag.service.database.operations import create_document_store, ensure_index_exists
from acadrag.service.database.utils import cosine_similarity

logger = logging.getLogger(__name__)


class ChunkStore(Protocol):
    """Interface every chunk store implements.

    Filters are passed as :class:`SearchFilters`; only the metadata fields are
    used here, ``max_chunks``/``diversity_lambda`` are ignored.
    """

    def find_similar(
        self, embedding: list[float], filters: SearchFilters | None, limit: int
    ) -> list[tuple[Chunk, float]]:
        """Return up to ``limit`` chunks by descending similarity with their scores."""
        ...

    def scan(self, filters: SearchFilters | None = None) -> list[Chunk]:
        """Return every stored chunk in storage order, optionally filtered."""
        ...

    def replace_document_chunks(self, document_id: str, chunks: list[Chunk]) -> int:
        """Delete all chunks of a document, then store the given ones."""
        ...

    def delete_document_chunks(self, document_id: str) -> int:
        """Delete all chunks of a document and return how many were removed."""
        ...

    def count(self) -> int:
        """Return the number of stored chunks."""
        ...


class _DocumentLocks:
    """Per-document locks so writes for one document are serialized.

    An entry lives only while some thread holds or waits for it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    @contextmanager
    def for_document(self, document_id: str) -> Iterator[None]:
        with self._guard:
            lock, holders = self._locks.get(document_id, (None, 0))
            lock = lock or threading.Lock()
            self._locks[document_id] = (lock, holders + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                _, holders = self._locks[document_id]
                if holders == 1:
                    del self._locks[document_id]
                else:
                    self._locks[document_id] = (lock, holders - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def chunk_from_record(record: dict[str, Any]) -> Chunk:
    """Convert a raw stored record into a Chunk with canonical metadata.

    Accepts the current layout (``text``/``embedding``) and the legacy one
    (``chunk_text``/``$vector``).
    """
    raw_metadata = record.get("@metadata", {})
    document_id = record.get("document_id") or ""
    metadata = normalize_metadata(record.get("metadata"), document_id=document_id or None)
    if record.get("chunk_index") is not None:
        metadata.chunk_index = int(record["chunk_index"])
    chunk_id = raw_metadata.get("@id") or record.get("Id") or record.get("id") or ""

    return Chunk(
        id=chunk_id,
        document_id=document_id or metadata.document_id or "",
        text=record.get("text") or record.get("chunk_text") or "",
        embedding=list(record.get("embedding") or record.get("$vector") or []),
        metadata=metadata,
    )


class RavenDBChunkStore:
    """Chunk store backed by a RavenDB collection with vector search."""

    def __init__(
        self,
        url: str | None = None,
        database: str | None = None,
        collection: str | None = None,
        document_store: DocumentStore | None = None,
        retry_attempts: int = 2,
        retry_base_delay: float = 0.5,
    ) -> None:
        """Initialize the store.

        Args:
            url: RavenDB server URL (defaults to RavenDBConfig.get_url())
            database: Database name (defaults to RavenDBConfig.get_database_name())
            collection: Chunk collection (defaults to RavenDBConfig.get_collection())
            document_store: Pre-initialized DocumentStore, mainly for tests
            retry_attempts: Attempts per read before giving up
            retry_base_delay: Initial backoff between read attempts in seconds
        """
        self.url = url or RavenDBConfig.get_url()
        self.database = database or RavenDBConfig.get_database_name()
        self.collection = collection or RavenDBConfig.get_collection()
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay
        self._document_store = document_store
        self._store_lock = threading.Lock()
        self._document_locks = _DocumentLocks()

    @property
    def document_store(self) -> DocumentStore:
        with self._store_lock:
            if self._document_store is None:
                self._document_store = create_document_store(self.url, self.database)
            return self._document_store

    def close(self) -> None:
        """Close the underlying DocumentStore."""
        with self._store_lock:
            if self._document_store is not None:
                self._document_store.close()
                self._document_store = None

    def _read(self, label: str, operation):
        """Run a read through the shared retry policy, wrapping failures."""
        try:
            return retry_call(
                lambda attempt: operation(),
                max_attempts=self.retry_attempts,
                base_delay=self.retry_base_delay,
                label=f"RavenDB {label}",
            )
        except Exception as e:
            logger.error(f"❌ RavenDB {label} failed: {e}")
            raise VectorStoreError(f"RavenDB {label} failed: {e}") from e

    @staticmethod
    def _score(record: dict[str, Any], embedding: list[float]) -> float:
        """Prefer the index score; fall back to computing cosine similarity."""
        index_score = record.get("@metadata", {}).get("@index-score")
        if index_score is not None:
            return float(index_score)
        return cosine_similarity(embedding, record.get("embedding") or [])

    def find_similar(
        self, embedding: list[float], filters: SearchFilters | None, limit: int
    ) -> list[tuple[Chunk, float]]:
        """Vector search, optionally constrained by exact metadata matches."""
        conditions = filters.to_store_filter() if filters else {}

        def _query() -> list[dict[str, Any]]:
            with self.document_store.open_session() as session:
                query = session.query_collection(self.collection, object_type=dict)
                for position, (path, value) in enumerate(conditions.items()):
                    if position:
                        query = query.and_also()
                    query = query.where_equals(path, value)
                if conditions:
                    query = query.and_also()
                return list(
                    query.vector_search("embedding", embedding).order_by_score().take(limit)
                )

        records = self._read("vector search", _query)
        results = [(chunk_from_record(record), self._score(record, embedding)) for record in records]
        results.sort(key=lambda item: item[1], reverse=True)
        logger.debug(f"🔎 RavenDB vector search returned {len(results)} records ({conditions})")
        return results[:limit]

    def scan(self, filters: SearchFilters | None = None) -> list[Chunk]:
        """Full collection scan in storage order."""

        def _query() -> list[dict[str, Any]]:
            with self.document_store.open_session() as session:
                return list(
                    session.advanced.raw_query(f"from {self.collection}", object_type=dict)
                )

        chunks = [chunk_from_record(record) for record in self._read("scan", _query)]
        if filters is not None and filters.has_metadata_filters:
            chunks = [chunk for chunk in chunks if filters.matches(chunk.metadata)]
        return chunks

    def _existing_ids(self, session, document_id: str) -> list[str]:
        records = list(
            session.query_collection(self.collection, object_type=dict)
            .no_tracking()
            .where_equals("document_id", document_id)
        )
        return [
            record.get("@metadata", {}).get("@id") or record.get("Id")
            for record in records
            if record.get("@metadata", {}).get("@id") or record.get("Id")
        ]

    def delete_document_chunks(self, document_id: str) -> int:
        """Delete every chunk belonging to ``document_id``."""
        with self._document_locks.for_document(document_id):
            try:
                with self.document_store.open_session() as session:
                    chunk_ids = self._existing_ids(session, document_id)
                    for chunk_id in chunk_ids:
                        session.delete(chunk_id)
                    session.save_changes()
            except Exception as e:
                raise VectorStoreError(f"Failed to delete chunks of {document_id}: {e}") from e
        logger.info(f"🗑️  Deleted {len(chunk_ids)} existing chunks for document {document_id}")
        return len(chunk_ids)

    def replace_document_chunks(self, document_id: str, chunks: list[Chunk]) -> int:
        """Swap a document's chunks in one session, serialized per document.

        Stale chunks are deleted and the new ones stored in a single
        ``save_changes`` batch; chunks keeping their id are overwritten.
        """
        ensure_index_exists(self.document_store)
        created_at = datetime.now(timezone.utc).isoformat()
        new_ids = {chunk.id for chunk in chunks}
        with self._document_locks.for_document(document_id):
            try:
                with self.document_store.open_session() as session:
                    stale = [
                        chunk_id
                        for chunk_id in self._existing_ids(session, document_id)
                        if chunk_id not in new_ids
                    ]
                    for chunk_id in stale:
                        session.delete(chunk_id)
                    for chunk in chunks:
                        entity = DocumentChunk(
                            Id=chunk.id,
                            document_id=document_id,
                            chunk_index=chunk.metadata.chunk_index,
                            text=chunk.text,
                            embedding=list(chunk.embedding),
                            metadata=chunk.metadata.to_dict(),
                            collection=self.collection,
                            created_at=created_at,
                        )
                        session.store(entity, chunk.id)
                        session.advanced.get_metadata_for(entity)["@collection"] = self.collection
                    session.save_changes()
            except Exception as e:
                raise VectorStoreError(f"Failed to replace chunks of {document_id}: {e}") from e
        logger.info(
            f"💾 Stored {len(chunks)} chunks for document {document_id} ({len(stale)} stale removed)"
        )
        return len(chunks)

    def count(self) -> int:
        """Count the chunks in the collection."""

        def _query() -> int:
            with self.document_store.open_session() as session:
                return session.query_collection(self.collection, object_type=dict).count()

        return self._read("count", _query)


class InMemoryChunkStore:
    """Process-local chunk store with brute-force cosine search.

    Filter semantics mirror the RavenDB store: exact matches on canonical
    metadata fields.
    """

    def __init__(self, chunks: list[Chunk] | None = None) -> None:
        self._chunks: list[Chunk] = list(chunks or [])
        self._lock = threading.Lock()
        self._document_locks = _DocumentLocks()

    @staticmethod
    def _exact_match(chunk: Chunk, filters: SearchFilters | None) -> bool:
        if filters is None:
            return True
        stored = chunk.metadata.to_dict()
        return all(
            stored.get(path.removeprefix("metadata.")) == value
            for path, value in filters.to_store_filter().items()
        )

    def find_similar(
        self, embedding: list[float], filters: SearchFilters | None, limit: int
    ) -> list[tuple[Chunk, float]]:
        with self._lock:
            candidates = [chunk for chunk in self._chunks if self._exact_match(chunk, filters)]
        scored = [(chunk, cosine_similarity(embedding, chunk.embedding)) for chunk in candidates]
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[:limit]

    def scan(self, filters: SearchFilters | None = None) -> list[Chunk]:
        with self._lock:
            chunks = list(self._chunks)
        if filters is not None and filters.has_metadata_filters:
            chunks = [chunk for chunk in chunks if filters.matches(chunk.metadata)]
        return chunks

    def delete_document_chunks(self, document_id: str) -> int:
        with self._document_locks.for_document(document_id):
            with self._lock:
                before = len(self._chunks)
                self._chunks = [c for c in self._chunks if c.document_id != document_id]
                return before - len(self._chunks)

    def replace_document_chunks(self, document_id: str, chunks: list[Chunk]) -> int:
        with self._document_locks.for_document(document_id):
            with self._lock:
                self._chunks = [c for c in self._chunks if c.document_id != document_id]
                self._chunks.extend(chunks)
        return len(chunks)

    def count(self) -> int:
        with self._lock:
            return len(self._chunks)
