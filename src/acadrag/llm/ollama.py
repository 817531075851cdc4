"""Ollama LLM service implementation."""

import asyncio
import logging
from typing import Any

import ollama

from acadrag.constants import get_embedding_model
from acadrag.llm.base import GenerationOptions

logger = logging.getLogger(__name__)


class OllamaService:
    """Ollama LLM service implementation.

    This service uses the Ollama API to generate responses and embeddings from
    locally served models.
    """

    def __init__(self, host: str, model: str, timeout: float | None = None) -> None:
        """Initialize the Ollama service.

        Args:
            host: The Ollama server host URL (e.g., "http://localhost:11434")
            model: The model name to use (e.g., "llama3")
            timeout: Optional per-request timeout in seconds
        """
        self.host = host
        self.model = model
        logger.info(f"🤖 Initializing OllamaService: host={host}, model={model}")
        # Configure the Ollama client with the specified host
        self.client = ollama.Client(host=host, timeout=timeout)

    @staticmethod
    def _convert_options(options: GenerationOptions | None) -> dict[str, Any]:
        """Map generic sampling options onto Ollama's option names."""
        if options is None:
            return {}
        converted = {
            "temperature": options.temperature,
            "num_predict": options.max_output_tokens,
            "top_k": options.top_k,
            "top_p": options.top_p,
        }
        return {key: value for key, value in converted.items() if value is not None}

    async def generate_response(
        self, messages: list[dict], options: GenerationOptions | None = None
    ) -> str:
        """Generate a response using Ollama.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
            options: Optional sampling parameters

        Returns:
            str: The generated response content from the model.
        """
        logger.info(f"🗣️  Generating response with {self.model}")
        logger.debug(f"Messages: {len(messages)} messages")

        chat_kwargs: dict[str, Any] = {"model": self.model, "messages": messages}
        ollama_options = self._convert_options(options)
        if ollama_options:
            chat_kwargs["options"] = ollama_options

        try:
            response = await asyncio.to_thread(self.client.chat, **chat_kwargs)
        except Exception as e:
            logger.error(f"❌ Ollama API error: {e}", exc_info=True)
            raise

        content = response.message.content or ""
        logger.info(f"✅ Response generated: {len(content)} characters")
        return content

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Generate embeddings for a list of texts using Ollama.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses EMBEDDING_MODEL env var
                   or service-specific default.

        Returns:
            list[list[float]]: List of embedding vectors, one per text
        """
        embedding_model = model or get_embedding_model("ollama")
        response = self.client.embed(model=embedding_model, input=texts)
        embeddings = [list(vector) for vector in response["embeddings"]]

        logger.info(f"✅ Generated {len(embeddings)} embeddings with {embedding_model}")
        return embeddings
