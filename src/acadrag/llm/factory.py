"""Factory function for creating LLM service instances."""

import logging
import os

from dotenv import load_dotenv

from acadrag.constants import DEFAULT_LLM_MODELS, DEFAULT_LLM_TIMEOUT, DEFAULT_OLLAMA_HOST
from acadrag.llm.base import LLMService
from acadrag.llm.gemini import GeminiService
from acadrag.llm.ollama import OllamaService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def get_llm_service(config: dict | None = None) -> LLMService:
    """Factory function to create an LLM service instance.

    Args:
        config: Optional configuration dictionary. If None, uses environment variables.
                Expected keys:
                - 'service': Service type (default: from LLM_SERVICE env, or "ollama")
                - 'host': Ollama host URL (default: from OLLAMA_HOST env)
                - 'model': Model name (default: from LLM_MODEL env)
                - 'timeout': Per-request timeout in seconds

    Returns:
        LLMService: An instance implementing the LLMService protocol.

    Raises:
        ValueError: If the service type is not supported
    """
    if config is None:
        config = {}

    service_type = config.get("service", os.getenv("LLM_SERVICE", "ollama"))
    timeout = float(config.get("timeout", os.getenv("LLM_TIMEOUT", DEFAULT_LLM_TIMEOUT)))

    if service_type == "ollama":
        host = config.get("host", os.getenv("OLLAMA_HOST", DEFAULT_OLLAMA_HOST))
        model = config.get("model", os.getenv("LLM_MODEL", DEFAULT_LLM_MODELS["ollama"]))
        return OllamaService(host=host, model=model, timeout=timeout)

    if service_type == "gemini":
        model = config.get("model", os.getenv("LLM_MODEL", DEFAULT_LLM_MODELS["gemini"]))
        return GeminiService(model=model, timeout=timeout)

    raise ValueError(f"Unsupported service type: {service_type}")
