"""Result types produced by the retrieval pipeline."""

from dataclasses import dataclass, field, replace
from typing import Any

from acadrag.service.database.models import Chunk, ChunkMetadata

SEARCH_TYPE_VECTOR = "vector"
SEARCH_TYPE_FALLBACK = "fallback_text"


def source_key(metadata: ChunkMetadata) -> str:
    """Label identifying the source a chunk came from."""
    if metadata.course_code and metadata.professor:
        return f"{metadata.course_code} - {metadata.professor}"
    return (
        metadata.course_code
        or metadata.professor
        or metadata.source
        or metadata.document_id
        or "Unknown"
    )


@dataclass
class SearchResult:
    """A chunk returned for a query, with its relevance to that query.

    Attributes:
        chunk: The matched chunk
        score: Similarity to the query embedding, in [0, 1]
        query_index: Which expanded query variant produced this result
        query_text: The text of that variant
    """

    chunk: Chunk
    score: float
    query_index: int = 0
    query_text: str = ""

    def tagged(self, query_index: int, query_text: str) -> "SearchResult":
        return replace(self, query_index=query_index, query_text=query_text)

    @property
    def source_label(self) -> str:
        metadata = self.chunk.metadata
        return metadata.source or metadata.title or metadata.document_id or "Unknown"

    def to_dict(self) -> dict[str, Any]:
        """Serialize as the chunk shape returned by the search endpoints."""
        metadata = self.chunk.metadata
        return {
            "text": self.chunk.text,
            "metadata": {
                "relevance_score": self.score,
                "source": self.source_label,
                "topic": metadata.topic,
                "type": metadata.document_type,
                "author": metadata.professor,
                "query_index": self.query_index,
                "query_text": self.query_text,
                "context": {
                    "section": metadata.section,
                    "topic_area": metadata.topic,
                    "document_type": metadata.document_type,
                    "course_info": {
                        "code": metadata.course_code,
                        "title": metadata.course_title,
                    },
                    "professor": metadata.professor,
                    "date": metadata.date,
                    "level": metadata.level,
                    "related_concepts": list(metadata.related_concepts),
                },
            },
        }


@dataclass
class SearchResponse:
    """The outcome of one search request."""

    query: str
    results: list[SearchResult] = field(default_factory=list)
    search_type: str = SEARCH_TYPE_VECTOR
    expanded_queries: list[str] = field(default_factory=list)

    @property
    def chunks(self) -> list[Chunk]:
        return [result.chunk for result in self.results]

    def _distinct(self, values) -> list[str]:
        return sorted({value for value in values if value})

    @property
    def sources(self) -> list[str]:
        return self._distinct(source_key(result.chunk.metadata) for result in self.results)

    @property
    def topic_areas(self) -> list[str]:
        return self._distinct(result.chunk.metadata.topic for result in self.results)

    @property
    def document_types(self) -> list[str]:
        return self._distinct(result.chunk.metadata.document_type for result in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunks": [result.to_dict() for result in self.results],
            "totalResults": len(self.results),
            "searchType": self.search_type,
            "sources": self.sources,
            "topicAreas": self.topic_areas,
            "documentTypes": self.document_types,
            "query": self.query,
            "expandedQueries": list(self.expanded_queries),
        }
