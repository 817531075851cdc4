"""Nearest-neighbor search against the chunk store, with filter relaxation."""

import logging

from acadrag.retrieval.models import SearchResult
from acadrag.service.database.chunk_store import ChunkStore
from acadrag.service.database.models import SearchFilters

logger = logging.getLogger(__name__)


def _clamp(score: float) -> float:
    return min(max(score, 0.0), 1.0)


class VectorSearchGateway:
    """Issues vector searches and applies filters the store cannot satisfy."""

    def __init__(self, store: ChunkStore) -> None:
        self.store = store

    def _unfiltered(self, embedding: list[float], limit: int) -> list[SearchResult]:
        return [
            SearchResult(chunk=chunk, score=_clamp(score))
            for chunk, score in self.store.find_similar(embedding, None, limit)
        ]

    def search(
        self, embedding: list[float], filters: SearchFilters | None, limit: int
    ) -> list[SearchResult]:
        """Return up to ``limit`` results by descending similarity.

        When a filtered search finds nothing, the search is repeated without
        the filter and the filter is applied to those results in memory.
        Store errors propagate.
        """
        if limit <= 0:
            return []

        if filters is None or not filters.has_metadata_filters:
            return self._unfiltered(embedding, limit)

        results = [
            SearchResult(chunk=chunk, score=_clamp(score))
            for chunk, score in self.store.find_similar(embedding, filters, limit)
        ]
        results = [result for result in results if filters.matches(result.chunk.metadata)]
        if results:
            return results

        logger.info(f"🔓 No results with filters {filters.to_store_filter()}, relaxing filter")
        relaxed = [
            result
            for result in self._unfiltered(embedding, limit)
            if filters.matches(result.chunk.metadata)
        ]
        logger.info(f"🔓 Relaxed search kept {len(relaxed)} results after in-memory filtering")
        return relaxed

    def broad_search(
        self, embedding: list[float], filters: SearchFilters | None, limit: int
    ) -> list[SearchResult]:
        """Unfiltered search of ``limit`` candidates, then in-memory filtering."""
        if limit <= 0:
            return []
        results = self._unfiltered(embedding, limit)
        if filters is not None and filters.has_metadata_filters:
            results = [result for result in results if filters.matches(result.chunk.metadata)]
        return results
