"""The retrieval pipeline: expand, embed, search, diversify, with a text-search fallback.

The three entry points serve the general search endpoint, chat and quiz
generation. Each one tries the vector path first; any embedding or
vector-store failure (a per-call timeout included) drops to a substring
search over the stored chunks. The whole request runs under a single
deadline.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from acadrag.config import RetrievalConfig
from acadrag.constants import (
    QUIZ_BROAD_LIMIT_FACTOR,
    QUIZ_BROAD_LIMIT_FLOOR,
    QUIZ_MIN_UNIQUE_RESULTS,
    QUIZ_RESULTS_PER_QUERY,
    QUIZ_WIDENING_LIMIT,
    SEARCH_CANDIDATE_FACTOR,
)
from acadrag.exceptions import InvalidQueryError, SearchTimeoutError
from acadrag.retrieval.diversity import blend_results, deduplicate_by_text, mmr_rerank
from acadrag.retrieval.embedding import EmbeddingClient
from acadrag.retrieval.fallback import fallback_text_search
from acadrag.retrieval.gateway import VectorSearchGateway
from acadrag.retrieval.models import (
    SEARCH_TYPE_FALLBACK,
    SEARCH_TYPE_VECTOR,
    SearchResponse,
    SearchResult,
)
from acadrag.retrieval.query_expansion import expand_query
from acadrag.service.database.chunk_store import ChunkStore
from acadrag.service.database.models import SearchFilters

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetrievalPipeline:
    """Coordinates retrieval for search, chat and quiz callers."""

    def __init__(
        self,
        store: ChunkStore,
        embedder: EmbeddingClient | None,
        config: RetrievalConfig | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            store: Chunk store used for vector search and the fallback scan
            embedder: Embedding client, or None when vector search is not configured
            config: Tuning values (defaults from the environment)
        """
        self.store = store
        self.embedder = embedder
        self.config = config or RetrievalConfig.from_env()
        self.gateway = VectorSearchGateway(store)

    async def _call(self, func: Callable[..., T], *args) -> T:
        """Run a blocking collaborator call in a worker thread with the per-call timeout."""
        return await asyncio.wait_for(asyncio.to_thread(func, *args), self.config.call_timeout)

    async def _run(
        self,
        query: str,
        filters: SearchFilters,
        expanded: list[str],
        limit: int,
        vector_path: Callable[[], Awaitable[list[SearchResult]]],
        fallback_when_empty: bool = False,
    ) -> SearchResponse:
        try:
            async with asyncio.timeout(self.config.request_timeout):
                if self.embedder is not None:
                    try:
                        results = await vector_path()
                        logger.info(f"✅ Vector search returned {len(results)} results")
                        if results or not fallback_when_empty:
                            return SearchResponse(
                                query=query,
                                results=results,
                                search_type=SEARCH_TYPE_VECTOR,
                                expanded_queries=expanded,
                            )
                        logger.info("ℹ️ No vector results, trying text search")
                    except Exception as e:
                        logger.warning(f"⚠️ Vector search failed, falling back to text search: {e}")
                else:
                    logger.info("ℹ️ Vector search not configured, using text search")

                results = await self._fallback(query, filters, limit)
                return SearchResponse(
                    query=query,
                    results=results,
                    search_type=SEARCH_TYPE_FALLBACK,
                    expanded_queries=expanded,
                )
        except TimeoutError as e:
            logger.error(f"⏱️ Search for '{query[:50]}' exceeded {self.config.request_timeout}s")
            raise SearchTimeoutError(
                f"Search exceeded the {self.config.request_timeout}s time budget"
            ) from e

    async def _fallback(
        self, query: str, filters: SearchFilters, limit: int
    ) -> list[SearchResult]:
        try:
            chunks = await self._call(self.store.scan, None)
        except Exception as e:
            logger.error(f"❌ Fallback text search failed: {e}")
            return []
        results = fallback_text_search(chunks, query, filters, limit)
        logger.info(f"📝 Fallback text search matched {len(results)} chunks")
        return results

    @staticmethod
    def _prepare(query: str, filters: SearchFilters | None) -> tuple[str, SearchFilters]:
        if query is None or not query.strip():
            raise InvalidQueryError("Query must not be empty")
        return query.strip(), filters or SearchFilters()

    async def search(self, query: str, filters: SearchFilters | None = None) -> SearchResponse:
        """General search: expanded queries, equal share per variant, MMR blend.

        Each variant fetches a candidate pool of several times ``max_chunks``;
        after deduplication every variant keeps an equal share of that pool and
        MMR picks ``max_chunks`` from it. When the vector path finds nothing,
        the text search runs as well.

        Raises:
            InvalidQueryError: For a blank query
            SearchTimeoutError: When the request deadline expires
        """
        query, filters = self._prepare(query, filters)
        max_chunks = filters.max_chunks or self.config.search_max_chunks
        lambda_ = (
            filters.diversity_lambda
            if filters.diversity_lambda is not None
            else self.config.search_lambda
        )
        expanded = expand_query(query, filters.topic, filters.course_code)
        logger.info(f"🔍 Search '{query[:80]}' ({len(expanded)} variants, max {max_chunks})")

        async def vector_path() -> list[SearchResult]:
            embeddings = await self._call(self.embedder.embed, expanded)
            pool_size = max_chunks * SEARCH_CANDIDATE_FACTOR
            batches = await asyncio.gather(
                *(
                    self._call(self.gateway.search, embedding, filters, pool_size)
                    for embedding in embeddings
                )
            )
            tagged = [
                result.tagged(index, expanded[index])
                for index, batch in enumerate(batches)
                for result in batch
            ]
            return blend_results(tagged, embeddings[0], lambda_, max_chunks, pool_size)

        return await self._run(
            query, filters, expanded, max_chunks, vector_path, fallback_when_empty=True
        )

    async def search_for_chat(
        self, query: str, filters: SearchFilters | None = None
    ) -> SearchResponse:
        """Single-embedding search for chat answers."""
        query, filters = self._prepare(query, filters)
        max_chunks = filters.max_chunks or self.config.chat_max_chunks
        lambda_ = (
            filters.diversity_lambda
            if filters.diversity_lambda is not None
            else self.config.chat_lambda
        )
        logger.info(f"💬 Chat search '{query[:80]}' (max {max_chunks})")

        async def vector_path() -> list[SearchResult]:
            embedding = await self._call(self.embedder.embed_one, query)
            results = await self._call(self.gateway.search, embedding, filters, max_chunks)
            tagged = [result.tagged(0, query) for result in results]
            return mmr_rerank(deduplicate_by_text(tagged), embedding, lambda_, max_chunks)

        return await self._run(query, filters, [query], max_chunks, vector_path)

    async def search_for_quiz(
        self, query: str, filters: SearchFilters | None = None
    ) -> SearchResponse:
        """Broad, diversity-weighted search for quiz source material.

        Each variant draws a wide unfiltered candidate pool that is filtered in
        memory. When too few unique chunks survive, an unfiltered search on the
        original query widens the pool.
        """
        query, filters = self._prepare(query, filters)
        max_chunks = filters.max_chunks or self.config.quiz_max_chunks
        lambda_ = (
            filters.diversity_lambda
            if filters.diversity_lambda is not None
            else self.config.quiz_lambda
        )
        expanded = expand_query(query, filters.topic, filters.course_code)
        broad_limit = max(QUIZ_BROAD_LIMIT_FLOOR, max_chunks * QUIZ_BROAD_LIMIT_FACTOR)
        logger.info(f"🎯 Quiz search '{query[:80]}' (pool {broad_limit}, max {max_chunks})")

        async def vector_path() -> list[SearchResult]:
            embeddings = await self._call(self.embedder.embed, expanded)
            batches = await asyncio.gather(
                *(
                    self._call(self.gateway.broad_search, embedding, filters, broad_limit)
                    for embedding in embeddings
                )
            )
            pool = [
                result.tagged(index, expanded[index])
                for index, batch in enumerate(batches)
                for result in batch[:QUIZ_RESULTS_PER_QUERY]
            ]
            unique = deduplicate_by_text(pool)

            if len(unique) < QUIZ_MIN_UNIQUE_RESULTS:
                logger.info(f"🔭 Only {len(unique)} unique chunks, widening without filters")
                wider = await self._call(
                    self.gateway.broad_search, embeddings[0], None, QUIZ_WIDENING_LIMIT
                )
                unique = deduplicate_by_text(
                    unique + [result.tagged(0, expanded[0]) for result in wider]
                )

            return mmr_rerank(unique, embeddings[0], lambda_, max_chunks)

        return await self._run(query, filters, expanded, max_chunks, vector_path)
