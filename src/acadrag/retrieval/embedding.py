"""Embedding client wrapping an LLM provider's embedding endpoint."""

import logging
import threading
import time
from collections.abc import Callable

from acadrag.constants import (
    DEFAULT_EMBEDDING_DIMENSIONS,
    EMBEDDING_BATCH_SIZE,
    EMBEDDING_HEALTH_TTL,
    EMBEDDING_RETRY_ATTEMPTS,
    EMBEDDING_RETRY_BASE_DELAY,
)
from acadrag.exceptions import EmbeddingServiceError
from acadrag.llm.base import LLMService
from acadrag.retry import retry_call

logger = logging.getLogger(__name__)

HEALTH_PROBE_TEXT = "health check"


class TTLCache:
    """A tiny thread-safe key/value cache whose entries expire after ``ttl`` seconds."""

    def __init__(self, ttl: float = EMBEDDING_HEALTH_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, object]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> object | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: object) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class EmbeddingClient:
    """Batching, retrying embedding client with dimension validation."""

    def __init__(
        self,
        provider: LLMService,
        model: str | None = None,
        dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS,
        batch_size: int = EMBEDDING_BATCH_SIZE,
        retry_attempts: int = EMBEDDING_RETRY_ATTEMPTS,
        retry_base_delay: float = EMBEDDING_RETRY_BASE_DELAY,
        health_cache: TTLCache | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            provider: Service implementing ``generate_embeddings``
            model: Embedding model name (None lets the provider pick its default)
            dimensions: Expected vector length
            batch_size: Texts sent per provider call
            retry_attempts: Attempts per batch before giving up
            retry_base_delay: Initial backoff in seconds, doubled per retry
            health_cache: Cache for health-probe results
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.provider = provider
        self.model = model
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay
        self.health_cache = health_cache

    def _validate(self, vectors: list[list[float]], expected: int) -> list[list[float]]:
        if len(vectors) != expected:
            raise EmbeddingServiceError(
                f"Embedding provider returned {len(vectors)} vectors for {expected} texts"
            )
        for vector in vectors:
            if len(vector) != self.dimensions:
                raise EmbeddingServiceError(
                    f"Embedding has {len(vector)} dimensions, expected {self.dimensions}"
                )
        return vectors

    def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        def _call(attempt: int) -> list[list[float]]:
            vectors = self.provider.generate_embeddings(batch, self.model)
            return [list(vector) for vector in vectors]

        try:
            vectors = retry_call(
                _call,
                max_attempts=self.retry_attempts,
                base_delay=self.retry_base_delay,
                label="embedding batch",
            )
        except Exception as e:
            raise EmbeddingServiceError(f"Embedding request failed: {e}") from e
        return self._validate(vectors, len(batch))

    def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in batches, preserving order.

        Raises:
            EmbeddingServiceError: When a batch still fails after retries or a
                vector has the wrong dimension
        """
        embeddings: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            embeddings.extend(self._embed_batch(batch))
        logger.debug(f"🧮 Embedded {len(texts)} texts in batches of {self.batch_size}")
        return embeddings

    def embed_one(self, text: str) -> list[float]:
        return self.embed([text])[0]

    def is_healthy(self) -> bool:
        """Probe the provider, caching the answer when a cache is configured."""
        if self.health_cache is not None:
            cached = self.health_cache.get("embedding")
            if cached is not None:
                return bool(cached)

        try:
            vectors = self.provider.generate_embeddings([HEALTH_PROBE_TEXT], self.model)
            healthy = len(vectors) == 1 and len(vectors[0]) == self.dimensions
        except Exception as e:
            logger.warning(f"⚠️ Embedding health probe failed: {e}")
            healthy = False

        if self.health_cache is not None:
            self.health_cache.set("embedding", healthy)
        return healthy
