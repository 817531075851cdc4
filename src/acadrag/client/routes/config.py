"""Shared configuration for route modules."""

from dataclasses import dataclass
from typing import Any

from acadrag.constants import CONTEXT_MAX_CHARS


@dataclass
class RouteConfig:
    """Configuration container for Flask route dependencies.

    This replaces global variables with a proper configuration object
    that can be passed around and tested more easily.
    """

    pipeline: Any = None
    llm_service: Any = None
    quiz_generator: Any = None
    embedder: Any = None
    context_max_chars: int = CONTEXT_MAX_CHARS


# Single shared config instance
_config = RouteConfig()


def get_config() -> RouteConfig:
    """Get the shared route configuration.

    Returns:
        RouteConfig instance with current settings
    """
    return _config


def init_config(
    pipeline: Any = None,
    llm_service: Any = None,
    quiz_generator: Any = None,
    embedder: Any = None,
    context_max_chars: int | None = None,
) -> None:
    """Initialize the shared route configuration.

    Args:
        pipeline: RetrievalPipeline instance
        llm_service: LLM service instance
        quiz_generator: QuizGenerator instance
        embedder: EmbeddingClient used for health reporting
        context_max_chars: Character budget for chat context
    """
    if pipeline is not None:
        _config.pipeline = pipeline
    if llm_service is not None:
        _config.llm_service = llm_service
    if quiz_generator is not None:
        _config.quiz_generator = quiz_generator
    if embedder is not None:
        _config.embedder = embedder
    if context_max_chars is not None:
        _config.context_max_chars = context_max_chars
