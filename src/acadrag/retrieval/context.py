"""Assembly of ranked chunks into labeled, length-bounded LLM context."""

import logging
from dataclasses import dataclass, field

from acadrag.constants import (
    CONTEXT_MAX_CHARS,
    DEFAULT_SECTION,
    SOURCE_SEPARATOR,
    TRUNCATION_MARKER,
)
from acadrag.retrieval.models import SearchResult, source_key
from acadrag.service.database.models import Chunk, ChunkMetadata

logger = logging.getLogger(__name__)


@dataclass
class AssembledContext:
    """Context text plus the summary metadata shown to prompts and the UI."""

    text: str = ""
    sources: list[str] = field(default_factory=list)
    topic_areas: list[str] = field(default_factory=list)
    document_types: list[str] = field(default_factory=list)
    truncated: bool = False

    @property
    def has_content(self) -> bool:
        return bool(self.text)


def _header(key: str, metadata: ChunkMetadata) -> str:
    header = f"Source: {key}"
    if metadata.title:
        header += f" ({metadata.title})"
    if metadata.professor:
        header += f" by {metadata.professor}"
    if metadata.date:
        header += f" - {metadata.date}"
    if metadata.document_type:
        header += f" [{metadata.document_type}]"
    return header


def _source_block(key: str, chunks: list[Chunk]) -> str:
    sections: dict[str, list[str]] = {}
    for chunk in chunks:
        section = chunk.metadata.section or DEFAULT_SECTION
        sections.setdefault(section, []).append(chunk.text.strip())

    lines = [_header(key, chunks[0].metadata)]
    if len(sections) == 1:
        lines.append("\n\n".join(next(iter(sections.values()))))
    else:
        for section, texts in sections.items():
            lines.append(f"\nSection: {section}")
            lines.append("\n\n".join(texts))
    return "\n".join(lines)


def truncate_context(text: str, max_chars: int) -> tuple[str, bool]:
    """Cut ``text`` to ``max_chars`` including the truncation marker.

    Raises:
        ValueError: When ``max_chars`` cannot hold the marker itself
    """
    if max_chars < len(TRUNCATION_MARKER):
        raise ValueError(
            f"max_chars must be at least {len(TRUNCATION_MARKER)} to fit the truncation marker"
        )
    if len(text) <= max_chars:
        return text, False
    return text[: max_chars - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER, True


def assemble_context(results: list[SearchResult], max_chars: int = CONTEXT_MAX_CHARS) -> AssembledContext:
    """Group results by source and build the labeled context block.

    Args:
        results: Ranked results, best first
        max_chars: Upper bound on the length of the returned text

    Returns:
        AssembledContext: Text no longer than ``max_chars`` and summary metadata
    """
    if not results:
        return AssembledContext()

    groups: dict[str, list[Chunk]] = {}
    topic_areas: list[str] = []
    document_types: list[str] = []
    for result in results:
        metadata = result.chunk.metadata
        groups.setdefault(source_key(metadata), []).append(result.chunk)
        if metadata.topic and metadata.topic not in topic_areas:
            topic_areas.append(metadata.topic)
        if metadata.document_type and metadata.document_type not in document_types:
            document_types.append(metadata.document_type)

    blocks = [_source_block(key, chunks) for key, chunks in groups.items()]
    text, truncated = truncate_context(SOURCE_SEPARATOR.join(blocks), max_chars)
    if truncated:
        logger.info(f"✂️  Context truncated to {max_chars} characters")

    return AssembledContext(
        text=text,
        sources=list(groups),
        topic_areas=topic_areas,
        document_types=document_types,
        truncated=truncated,
    )


def format_source_material(chunks: list[Chunk]) -> str:
    """Number chunks as separate sources for quiz generation prompts."""
    sections = []
    for number, chunk in enumerate(chunks, 1):
        label = chunk.metadata.source or source_key(chunk.metadata)
        sections.append(f"--- SOURCE {number}: {label} ---\n{chunk.text.strip()}")
    return "\n\n--- END SOURCE ---\n\n".join(sections)
