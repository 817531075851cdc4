"""Substring search used when vector search is unavailable."""

from acadrag.retrieval.models import SearchResult
from acadrag.service.database.models import Chunk, SearchFilters


def fallback_text_search(
    chunks: list[Chunk], query: str, filters: SearchFilters | None, limit: int
) -> list[SearchResult]:
    """Return chunks containing ``query`` (case-insensitive) in storage order.

    There is no ranking; every hit gets a score of 0.
    """
    needle = query.strip().lower()
    if not needle or limit <= 0:
        return []

    hits = []
    for chunk in chunks:
        if needle not in chunk.text.lower():
            continue
        if filters is not None and not filters.matches(chunk.metadata):
            continue
        hits.append(SearchResult(chunk=chunk, score=0.0, query_text=query))
        if len(hits) >= limit:
            break
    return hits
