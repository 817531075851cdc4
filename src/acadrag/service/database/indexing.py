"""Indexing of course documents: chunking, embedding and storage."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from acadrag.constants import CHUNK_OVERLAP, CHUNK_SIZE
from acadrag.service.database.chunk_store import ChunkStore
from acadrag.service.database.models import Chunk, ChunkMetadata, SourceDocument

if TYPE_CHECKING:
    from acadrag.retrieval.embedding import EmbeddingClient

logger = logging.getLogger(__name__)


@dataclass
class IndexingResult:
    """Outcome of indexing one document."""

    success: bool
    document_id: str
    chunks_created: int = 0
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "documentId": self.document_id,
            "chunksCreated": self.chunks_created,
            "error": self.error,
        }


def chunk_text(text: str, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> list[str]:
    """Split text into overlapping character windows.

    A window ends at the last whitespace inside it when there is one in its
    second half, so words are not cut in two.

    Args:
        text: The text to chunk
        chunk_size: Maximum characters per chunk (default: 1000)
        overlap: Characters shared by consecutive chunks (default: 200)

    Returns:
        list[str]: Non-empty, stripped chunks in document order

    Raises:
        ValueError: If overlap is not smaller than chunk_size
    """
    if overlap >= chunk_size:
        raise ValueError("overlap must be smaller than chunk_size")

    text = text.strip()
    if not text:
        return []
    if len(text) <= chunk_size:
        return [text]

    chunks = []
    start = 0
    while start < len(text):
        end = min(start + chunk_size, len(text))
        if end < len(text):
            split_at = text.rfind(" ", start + chunk_size // 2, end)
            if split_at == -1:
                split_at = max(
                    text.rfind("\n", start + chunk_size // 2, end),
                    text.rfind("\t", start + chunk_size // 2, end),
                )
            if split_at > start:
                end = split_at

        piece = text[start:end].strip()
        if piece:
            chunks.append(piece)

        if end >= len(text):
            break
        # Ensure we always move forward
        start = max(end - overlap, start + 1)

    return chunks


def build_chunk_metadata(document: SourceDocument, chunk_index: int, total_chunks: int) -> ChunkMetadata:
    """Canonical metadata for one chunk of ``document``."""
    return ChunkMetadata(
        course_code=document.course_code or None,
        course_title=document.course_title or None,
        topic=document.topic or None,
        professor=document.professor or None,
        document_type=document.document_type or None,
        level=document.level or None,
        date=document.date or document.uploaded_at,
        title=document.title or None,
        source=f"{document.professor}'s notes" if document.professor else document.title,
        document_id=document.id,
        chunk_index=chunk_index,
        total_chunks=total_chunks,
    )


def index_document(
    document: SourceDocument,
    store: ChunkStore,
    embedder: "EmbeddingClient",
    chunk_size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> IndexingResult:
    """Chunk, embed and store a document, replacing any previous chunks.

    Errors are reported in the result rather than raised.

    Args:
        document: The document to index
        store: Chunk store receiving the chunks
        embedder: Embedding client for the chunk texts
        chunk_size: Maximum characters per chunk
        overlap: Characters shared by consecutive chunks

    Returns:
        IndexingResult: Success flag, number of chunks created and any error
    """
    logger.info(f"📄 Indexing document {document.id} ({document.title})")
    try:
        texts = chunk_text(document.content, chunk_size=chunk_size, overlap=overlap)
        if not texts:
            return IndexingResult(
                success=False, document_id=document.id, error="Document has no text content"
            )

        embeddings = embedder.embed(texts)
        chunks = [
            Chunk(
                id=f"{document.id}_chunk_{index}",
                document_id=document.id,
                text=text,
                embedding=embedding,
                metadata=build_chunk_metadata(document, index, len(texts)),
            )
            for index, (text, embedding) in enumerate(zip(texts, embeddings))
        ]
        stored = store.replace_document_chunks(document.id, chunks)
    except Exception as e:
        logger.error(f"❌ Failed to index document {document.id}: {e}", exc_info=True)
        return IndexingResult(success=False, document_id=document.id, error=str(e))

    logger.info(f"✅ Indexed document {document.id}: {stored} chunks")
    return IndexingResult(success=True, document_id=document.id, chunks_created=stored)


def reindex_documents(
    documents: list[SourceDocument], store: ChunkStore, embedder: "EmbeddingClient"
) -> list[IndexingResult]:
    """Index documents one after another, collecting a result for each."""
    results = [index_document(document, store, embedder) for document in documents]
    succeeded = sum(1 for result in results if result.success)
    logger.info(f"📚 Re-indexed {succeeded}/{len(results)} documents")
    return results
