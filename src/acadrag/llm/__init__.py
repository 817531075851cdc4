"""LLM and embedding provider layer for acadrag.

This package provides a unified interface for multiple providers:
- OllamaService: Local LLM and embeddings via Ollama
- GeminiService: Google Gemini API

All services implement the LLMService protocol.

Usage:
    from acadrag.llm import get_llm_service, GenerationOptions

    # Create service from environment config
    service = get_llm_service()

    # Or with explicit config
    service = get_llm_service({"service": "gemini", "model": "gemini-2.5-flash"})
"""

from acadrag.llm.base import GenerationOptions, LLMService
from acadrag.llm.factory import get_llm_service
from acadrag.llm.gemini import GeminiService
from acadrag.llm.ollama import OllamaService

__all__ = [
    "GenerationOptions",
    "LLMService",
    "OllamaService",
    "GeminiService",
    "get_llm_service",
]
