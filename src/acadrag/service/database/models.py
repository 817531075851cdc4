"""Data models for course documents, chunks and search filters."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from acadrag.exceptions import InvalidQueryError


@dataclass
class ChunkMetadata:
    """Canonical chunk metadata.

    Every chunk read from or written to the store carries metadata in this one
    shape; :func:`acadrag.service.database.metadata.normalize_metadata` maps
    older record layouts onto it.
    """

    course_code: str | None = None
    course_title: str | None = None
    topic: str | None = None
    professor: str | None = None
    document_type: str | None = None
    level: str | None = None
    section: str | None = None
    date: str | None = None
    title: str | None = None
    source: str | None = None
    document_id: str | None = None
    chunk_index: int = 0
    total_chunks: int | None = None
    related_concepts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the stored representation."""
        return {
            "course_code": self.course_code,
            "course_title": self.course_title,
            "topic": self.topic,
            "professor": self.professor,
            "document_type": self.document_type,
            "level": self.level,
            "section": self.section,
            "date": self.date,
            "title": self.title,
            "source": self.source,
            "document_id": self.document_id,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
            "related_concepts": list(self.related_concepts),
        }


@dataclass
class Chunk:
    """A unit of retrievable text with its embedding."""

    id: str
    document_id: str
    text: str
    embedding: list[float] = field(default_factory=list)
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(eq=False)
class DocumentChunk:
    """RavenDB entity for a stored chunk.

    Note: eq=False ensures each instance is unique and hashable by identity,
    which is required for RavenDB's session entity tracking.

    Attributes:
        Id: RavenDB document ID, ``{document_id}_chunk_{chunk_index}``
        document_id: Owning source document
        chunk_index: Position of this chunk in the document
        text: The text content of the chunk
        embedding: Vector embedding of the text
        metadata: Canonical metadata dict (see ChunkMetadata.to_dict)
        collection: Collection name for grouping documents
        created_at: ISO timestamp of indexing
    """

    Id: str | None = None
    document_id: str = ""
    chunk_index: int = 0
    text: str = ""
    embedding: list[float] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    collection: str = "DocumentChunks"
    created_at: str = ""

    def __hash__(self) -> int:
        """Hash by object identity for RavenDB session tracking."""
        return id(self)


@dataclass
class SourceDocument:
    """Metadata record for an uploaded course document."""

    id: str
    title: str
    content: str
    course_code: str = ""
    course_title: str = ""
    professor: str = ""
    topic: str = ""
    level: str = ""
    document_type: str = "notes"
    date: str | None = None
    uploaded_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


@dataclass
class SearchFilters:
    """Optional metadata filters and tuning knobs for a search request."""

    course_code: str | None = None
    topic: str | None = None
    level: str | None = None
    author: str | None = None
    max_chunks: int | None = None
    diversity_lambda: float | None = None

    def __post_init__(self) -> None:
        if self.topic is not None:
            self.topic = self.topic.strip() or None
        if self.course_code is not None:
            self.course_code = self.course_code.strip() or None
        if self.level is not None:
            self.level = str(self.level).strip() or None
        if self.max_chunks is not None and self.max_chunks < 1:
            raise InvalidQueryError("max_chunks must be a positive integer")
        if self.diversity_lambda is not None and not 0.0 <= self.diversity_lambda <= 1.0:
            raise InvalidQueryError("diversity_lambda must be between 0 and 1")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SearchFilters":
        """Build filters from a request body, accepting snake or camel case keys.

        Raises:
            InvalidQueryError: If a numeric field cannot be parsed
        """
        data = data or {}

        def pick(*keys: str) -> Any:
            for key in keys:
                value = data.get(key)
                if value not in (None, ""):
                    return value
            return None

        max_chunks = pick("max_chunks", "maxChunks")
        diversity_lambda = pick("diversity_lambda", "diversityLambda")
        try:
            return cls(
                course_code=pick("course_code", "courseCode"),
                topic=pick("topic"),
                level=pick("level"),
                author=pick("author"),
                max_chunks=int(max_chunks) if max_chunks is not None else None,
                diversity_lambda=(
                    float(diversity_lambda) if diversity_lambda is not None else None
                ),
            )
        except (TypeError, ValueError) as e:
            if isinstance(e, InvalidQueryError):
                raise
            raise InvalidQueryError(f"Invalid filter value: {e}") from e

    @property
    def has_metadata_filters(self) -> bool:
        return any((self.course_code, self.topic, self.level, self.author))

    def to_store_filter(self) -> dict[str, str]:
        """Return the filter as dotted metadata paths for the vector store."""
        conditions: dict[str, str] = {}
        if self.course_code:
            conditions["metadata.course_code"] = self.course_code
        if self.topic:
            conditions["metadata.topic"] = self.topic
        if self.level:
            conditions["metadata.level"] = self.level
        if self.author:
            conditions["metadata.professor"] = self.author
        return conditions

    def matches(self, metadata: ChunkMetadata) -> bool:
        """Check a chunk's metadata against the filters in memory.

        Course code, topic and level must match exactly; the author filter is a
        case-insensitive substring of the professor name.
        """
        if self.course_code and metadata.course_code != self.course_code:
            return False
        if self.topic and (metadata.topic or "").strip() != self.topic:
            return False
        if self.level and metadata.level != self.level:
            return False
        if self.author:
            professor = (metadata.professor or "").lower()
            if self.author.lower() not in professor:
                return False
        return True
