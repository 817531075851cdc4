"""Application-wide constants and defaults for acadrag.

This module provides a single source of truth for configuration defaults,
magic numbers, and other constants used throughout the application.
"""

import os

# =============================================================================
# LLM Settings
# =============================================================================
DEFAULT_LLM_MODELS = {
    "ollama": "llama3",
    "gemini": "gemini-2.5-flash",
}

# =============================================================================
# Default URLs and Hosts
# =============================================================================
DEFAULT_OLLAMA_HOST = "http://localhost:11434"
DEFAULT_LLM_TIMEOUT = 120.0  # seconds, per generation or embedding request
DEFAULT_RAVENDB_URL = "http://localhost:8080"
DEFAULT_RAVENDB_DATABASE = "acadrag"
DEFAULT_CHUNK_COLLECTION = "DocumentChunks"
DEFAULT_MCP_HOST = "0.0.0.0"
DEFAULT_MCP_PORT = 8001

# =============================================================================
# Embedding Model Defaults
# =============================================================================
EMBEDDING_DEFAULTS = {
    "ollama": "qwen3-embedding:0.6b",
    "gemini": "text-embedding-004",
}

DEFAULT_EMBEDDING_DIMENSIONS = 1024
EMBEDDING_BATCH_SIZE = 5
EMBEDDING_RETRY_ATTEMPTS = 3
EMBEDDING_RETRY_BASE_DELAY = 2.0  # seconds
EMBEDDING_HEALTH_TTL = 30.0  # seconds

# =============================================================================
# Search Settings
# =============================================================================
SEARCH_MAX_CHUNKS = 10
CHAT_MAX_CHUNKS = 5
QUIZ_SEARCH_MAX_CHUNKS = 20
SEARCH_LAMBDA = 0.3  # favours novelty over relevance
CHAT_LAMBDA = 0.5
QUIZ_SEARCH_LAMBDA = 0.7
QUIZ_SOURCE_LAMBDA = 0.8

QUIZ_BROAD_LIMIT_FLOOR = 200
QUIZ_BROAD_LIMIT_FACTOR = 10
QUIZ_RESULTS_PER_QUERY = 20
QUIZ_MIN_UNIQUE_RESULTS = 10
QUIZ_WIDENING_LIMIT = 100

SEARCH_CALL_TIMEOUT = 15.0  # seconds, per embedding/vector-store call
SEARCH_REQUEST_TIMEOUT = 60.0  # seconds, whole pipeline

QUERY_EXPANSION_SUFFIX = "concepts principles examples"
SEARCH_CANDIDATE_FACTOR = 3  # general search fetches this many times max_chunks per variant

# =============================================================================
# Context Assembly
# =============================================================================
CONTEXT_MAX_CHARS = 2000
TRUNCATION_MARKER = "...\n\n[Context truncated for length]"
SOURCE_SEPARATOR = "\n\n---\n\n"
DEFAULT_SECTION = "main"

# =============================================================================
# Quiz Generation
# =============================================================================
QUIZ_SOURCE_CHUNKS = 40
QUIZ_CONTEXT_SIZE_WITH_TOPIC = 40
QUIZ_CONTEXT_SIZE = 30
QUIZ_DIVERSITY_THRESHOLD = 0.9
QUIZ_MAX_ATTEMPTS = 3
QUIZ_BASE_TEMPERATURE = 0.8
QUIZ_TEMPERATURE_STEP = 0.1
QUIZ_MAX_OUTPUT_TOKENS = 4096
QUIZ_TOP_K = 40
QUIZ_TOP_P = 0.95
QUIZ_MIN_QUESTIONS = 1
QUESTION_TYPES = ("MCQ", "OBJECTIVE", "TRUE_FALSE", "SHORT_ANSWER")

# =============================================================================
# Indexing
# =============================================================================
CHUNK_SIZE = 1000  # characters
CHUNK_OVERLAP = 200

# =============================================================================
# Display Settings
# =============================================================================
CONTENT_PREVIEW_LENGTH = 200  # Characters to show in content previews


def get_embedding_model(service: str | None = None) -> str:
    """Get the default embedding model for a given LLM service.

    Checks the EMBEDDING_MODEL environment variable first, then falls back
    to service-specific defaults.

    Args:
        service: The LLM service name ("ollama" or "gemini").
                If None, uses LLM_SERVICE env var or defaults to "ollama".

    Returns:
        str: The embedding model name to use.
    """
    env_model = os.getenv("EMBEDDING_MODEL")
    if env_model:
        return env_model

    if service is None:
        service = os.getenv("LLM_SERVICE", "ollama")

    return EMBEDDING_DEFAULTS.get(service, EMBEDDING_DEFAULTS["ollama"])
