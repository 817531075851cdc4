"""Mapping of stored chunk metadata onto the canonical ChunkMetadata shape.

Records written by older indexers use camelCase keys at the top level
(``courseCode``, ``professorName``, ``type``); others nest the same fields
under a ``context`` object (``context.course_info.code``,
``context.topic_area``). Both are read here and nowhere else.
"""

from typing import Any

from acadrag.service.database.models import ChunkMetadata


def _lookup(raw: dict[str, Any], *paths: str) -> Any:
    """Return the first non-empty value found at any of the dotted paths."""
    for path in paths:
        current: Any = raw
        for key in path.split("."):
            if not isinstance(current, dict):
                current = None
                break
            current = current.get(key)
        if current not in (None, ""):
            return current
    return None


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _as_int(value: Any, default: int | None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_metadata(raw: dict[str, Any] | None, document_id: str | None = None) -> ChunkMetadata:
    """Build canonical metadata from a stored metadata mapping.

    Args:
        raw: Metadata as stored (canonical, legacy flat, or nested context shape)
        document_id: Owning document id when it is stored outside the metadata

    Returns:
        ChunkMetadata: The normalized metadata
    """
    raw = raw or {}
    concepts = _lookup(
        raw, "related_concepts", "relatedConcepts", "context.related_concepts"
    )

    return ChunkMetadata(
        course_code=_as_str(
            _lookup(raw, "course_code", "courseCode", "context.course_info.code", "course_info.code")
        ),
        course_title=_as_str(
            _lookup(
                raw, "course_title", "courseTitle", "context.course_info.title", "course_info.title"
            )
        ),
        topic=_as_str(_lookup(raw, "topic", "context.topic_area")),
        professor=_as_str(
            _lookup(raw, "professor", "professorName", "author", "context.professor")
        ),
        document_type=_as_str(
            _lookup(raw, "document_type", "type", "documentType", "context.document_type")
        ),
        level=_as_str(_lookup(raw, "level", "context.level")),
        section=_as_str(_lookup(raw, "section", "context.section")),
        date=_as_str(_lookup(raw, "date", "context.date")),
        title=_as_str(_lookup(raw, "title")),
        source=_as_str(_lookup(raw, "source")),
        document_id=_as_str(_lookup(raw, "document_id", "documentId")) or document_id,
        chunk_index=_as_int(_lookup(raw, "chunk_index", "chunkIndex"), 0),
        total_chunks=_as_int(_lookup(raw, "total_chunks", "totalChunks"), None),
        related_concepts=list(concepts) if isinstance(concepts, list) else [],
    )
