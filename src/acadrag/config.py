"""Runtime configuration for retrieval and quiz generation.

Values come from environment variables (loaded from ``.env`` via python-dotenv)
with defaults from :mod:`acadrag.constants`. The diversity weights and the
quiz source-diversity threshold are tuning knobs, so they live here rather
than being hard-coded at call sites.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from acadrag import constants

# Load environment variables
load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass
class RetrievalConfig:
    """Settings for the retrieval pipeline."""

    embedding_dimensions: int = constants.DEFAULT_EMBEDDING_DIMENSIONS
    search_lambda: float = constants.SEARCH_LAMBDA
    chat_lambda: float = constants.CHAT_LAMBDA
    quiz_lambda: float = constants.QUIZ_SEARCH_LAMBDA
    search_max_chunks: int = constants.SEARCH_MAX_CHUNKS
    chat_max_chunks: int = constants.CHAT_MAX_CHUNKS
    quiz_max_chunks: int = constants.QUIZ_SEARCH_MAX_CHUNKS
    call_timeout: float = constants.SEARCH_CALL_TIMEOUT
    request_timeout: float = constants.SEARCH_REQUEST_TIMEOUT
    context_max_chars: int = constants.CONTEXT_MAX_CHARS

    def __post_init__(self) -> None:
        # The chat context must at least fit the truncation marker
        if self.context_max_chars < len(constants.TRUNCATION_MARKER):
            raise ValueError(
                f"context_max_chars must be at least {len(constants.TRUNCATION_MARKER)}"
            )

    @classmethod
    def from_env(cls) -> "RetrievalConfig":
        """Build a config from environment variables."""
        return cls(
            embedding_dimensions=_env_int(
                "EMBEDDING_DIMENSIONS", constants.DEFAULT_EMBEDDING_DIMENSIONS
            ),
            search_lambda=_env_float("SEARCH_LAMBDA", constants.SEARCH_LAMBDA),
            chat_lambda=_env_float("CHAT_LAMBDA", constants.CHAT_LAMBDA),
            quiz_lambda=_env_float("QUIZ_LAMBDA", constants.QUIZ_SEARCH_LAMBDA),
            call_timeout=_env_float("SEARCH_CALL_TIMEOUT", constants.SEARCH_CALL_TIMEOUT),
            request_timeout=_env_float(
                "SEARCH_REQUEST_TIMEOUT", constants.SEARCH_REQUEST_TIMEOUT
            ),
            context_max_chars=_env_int("CONTEXT_MAX_CHARS", constants.CONTEXT_MAX_CHARS),
        )


@dataclass
class QuizConfig:
    """Settings for quiz generation."""

    source_chunks: int = constants.QUIZ_SOURCE_CHUNKS
    source_lambda: float = constants.QUIZ_SOURCE_LAMBDA
    context_size: int = constants.QUIZ_CONTEXT_SIZE
    context_size_with_topic: int = constants.QUIZ_CONTEXT_SIZE_WITH_TOPIC
    diversity_threshold: float = constants.QUIZ_DIVERSITY_THRESHOLD
    max_attempts: int = constants.QUIZ_MAX_ATTEMPTS
    retry_base_delay: float = 0.0
    base_temperature: float = constants.QUIZ_BASE_TEMPERATURE
    temperature_step: float = constants.QUIZ_TEMPERATURE_STEP
    max_output_tokens: int = constants.QUIZ_MAX_OUTPUT_TOKENS
    top_k: int = constants.QUIZ_TOP_K
    top_p: float = constants.QUIZ_TOP_P
    min_questions: int = constants.QUIZ_MIN_QUESTIONS

    @classmethod
    def from_env(cls) -> "QuizConfig":
        """Build a config from environment variables."""
        return cls(
            source_lambda=_env_float("QUIZ_SOURCE_LAMBDA", constants.QUIZ_SOURCE_LAMBDA),
            diversity_threshold=_env_float(
                "QUIZ_DIVERSITY_THRESHOLD", constants.QUIZ_DIVERSITY_THRESHOLD
            ),
            max_attempts=_env_int("QUIZ_MAX_ATTEMPTS", constants.QUIZ_MAX_ATTEMPTS),
        )
