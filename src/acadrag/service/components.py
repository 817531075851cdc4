"""Construction of the shared service objects from environment configuration.

The Flask app, the MCP server and the CLI each call these once at startup
and pass the resulting objects down; nothing here is cached at module level.
"""

import asyncio
import logging
import os
from typing import Any

from dotenv import load_dotenv

from acadrag.config import RetrievalConfig
from acadrag.constants import EMBEDDING_BATCH_SIZE, get_embedding_model
from acadrag.llm import LLMService, get_llm_service
from acadrag.retrieval.embedding import EmbeddingClient, TTLCache
from acadrag.retrieval.pipeline import RetrievalPipeline
from acadrag.service.database.chunk_store import ChunkStore, RavenDBChunkStore

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def create_embedding_client(
    llm_service: LLMService | None = None,
    health_cache: TTLCache | None = None,
    config: RetrievalConfig | None = None,
) -> EmbeddingClient:
    """Build the embedding client for the configured provider.

    Args:
        llm_service: Provider to embed with (default: from LLM_SERVICE env)
        health_cache: Cache for health probes, owned by the caller
        config: Retrieval settings supplying the embedding dimension
    """
    config = config or RetrievalConfig.from_env()
    provider = llm_service or get_llm_service()
    model = get_embedding_model(os.getenv("LLM_SERVICE", "ollama"))
    batch_size = int(os.getenv("EMBEDDING_BATCH_SIZE", str(EMBEDDING_BATCH_SIZE)))
    logger.info(
        f"🧮 Embedding client: model={model}, dimensions={config.embedding_dimensions}, "
        f"batch_size={batch_size}"
    )
    return EmbeddingClient(
        provider,
        model=model,
        dimensions=config.embedding_dimensions,
        batch_size=batch_size,
        health_cache=health_cache,
    )


def create_pipeline(
    store: ChunkStore | None = None,
    embedder: EmbeddingClient | None = None,
    config: RetrievalConfig | None = None,
) -> RetrievalPipeline:
    """Build a retrieval pipeline on RavenDB with the configured embedding provider."""
    config = config or RetrievalConfig.from_env()
    store = store or RavenDBChunkStore()
    embedder = embedder or create_embedding_client(config=config)
    return RetrievalPipeline(store, embedder, config)


def run_async(coro: Any) -> Any:
    """Run an async coroutine in a new event loop.

    This is useful for calling async functions from synchronous Flask routes.
    Creates a new event loop, runs the coroutine, and properly cleans up.

    Args:
        coro: An awaitable coroutine to execute

    Returns:
        The result of the coroutine
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()
