"""Retrieval and diversification of course material.

Usage:
    from acadrag.retrieval import EmbeddingClient, RetrievalPipeline

    pipeline = RetrievalPipeline(store, EmbeddingClient(get_llm_service()))
    response = await pipeline.search("acid base titration", SearchFilters(course_code="CHEM101"))
"""

from acadrag.retrieval.context import (
    AssembledContext,
    assemble_context,
    format_source_material,
)
from acadrag.retrieval.diversity import (
    blend_results,
    cap_per_query,
    deduplicate_by_text,
    mmr_rerank,
)
from acadrag.retrieval.embedding import EmbeddingClient, TTLCache
from acadrag.retrieval.fallback import fallback_text_search
from acadrag.retrieval.gateway import VectorSearchGateway
from acadrag.retrieval.models import (
    SEARCH_TYPE_FALLBACK,
    SEARCH_TYPE_VECTOR,
    SearchResponse,
    SearchResult,
    source_key,
)
from acadrag.retrieval.pipeline import RetrievalPipeline
from acadrag.retrieval.query_expansion import expand_query
from acadrag.retrieval.similarity import cosine_similarity, vector_similarity

__all__ = [
    "AssembledContext",
    "EmbeddingClient",
    "RetrievalPipeline",
    "SEARCH_TYPE_FALLBACK",
    "SEARCH_TYPE_VECTOR",
    "SearchResponse",
    "SearchResult",
    "TTLCache",
    "VectorSearchGateway",
    "assemble_context",
    "blend_results",
    "cap_per_query",
    "cosine_similarity",
    "deduplicate_by_text",
    "expand_query",
    "fallback_text_search",
    "format_source_material",
    "mmr_rerank",
    "source_key",
    "vector_similarity",
]
