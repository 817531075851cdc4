"""Google Gemini LLM service implementation."""

import asyncio
import logging
from typing import Any

from google import genai

from acadrag.constants import get_embedding_model
from acadrag.llm.base import GenerationOptions

logger = logging.getLogger(__name__)


class GeminiService:
    """Google Gemini LLM service implementation.

    This service uses the Google Gemini API to generate responses and embeddings.
    The API key is automatically retrieved from the GEMINI_API_KEY environment variable.
    """

    def __init__(self, model: str, timeout: float | None = None) -> None:
        """Initialize the Gemini service.

        Args:
            model: The model name to use (e.g., "gemini-2.5-flash")
            timeout: Optional per-request timeout in seconds
        """
        self.model = model
        logger.info(f"🤖 Initializing GeminiService: model={model}")
        # The client gets the API key from the GEMINI_API_KEY environment variable
        if timeout:
            http_options = genai.types.HttpOptions(timeout=int(timeout * 1000))
            self.client = genai.Client(http_options=http_options)
        else:
            self.client = genai.Client()

    @staticmethod
    def _build_config(
        options: GenerationOptions | None, system_instruction: str | None
    ) -> genai.types.GenerateContentConfig | None:
        """Build a GenerateContentConfig from generic options."""
        config_kwargs: dict[str, Any] = {}
        if system_instruction:
            config_kwargs["system_instruction"] = system_instruction
        if options is not None:
            if options.temperature is not None:
                config_kwargs["temperature"] = options.temperature
            if options.max_output_tokens is not None:
                config_kwargs["max_output_tokens"] = options.max_output_tokens
            if options.top_k is not None:
                config_kwargs["top_k"] = options.top_k
            if options.top_p is not None:
                config_kwargs["top_p"] = options.top_p
        if not config_kwargs:
            return None
        return genai.types.GenerateContentConfig(**config_kwargs)

    async def generate_response(
        self, messages: list[dict], options: GenerationOptions | None = None
    ) -> str:
        """Generate a response using Gemini.

        System messages become the system instruction; the remaining messages
        are joined into a single prompt.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
            options: Optional sampling parameters

        Returns:
            str: The generated response content from the model.
        """
        logger.info(f"🗣️  Generating response with {self.model}")
        logger.debug(f"Messages: {len(messages)} messages")

        system_instruction = "\n".join(
            msg.get("content", "") for msg in messages if msg.get("role") == "system"
        )
        contents = "\n".join(
            msg.get("content", "") for msg in messages if msg.get("role") != "system"
        )

        generate_kwargs: dict[str, Any] = {"model": self.model, "contents": contents}
        config = self._build_config(options, system_instruction)
        if config is not None:
            generate_kwargs["config"] = config

        try:
            response = await asyncio.to_thread(
                self.client.models.generate_content, **generate_kwargs
            )
        except Exception as e:
            logger.error(f"❌ Gemini API error: {e}", exc_info=True)
            raise

        content = response.text or ""
        logger.info(f"✅ Response generated: {len(content)} characters")
        return content

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Generate embeddings for a list of texts using Gemini.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses EMBEDDING_MODEL env var
                   or service-specific default.

        Returns:
            list[list[float]]: List of embedding vectors
        """
        embedding_model = model or get_embedding_model("gemini")
        try:
            response = self.client.models.embed_content(model=embedding_model, contents=texts)
        except Exception as e:
            logger.error(f"❌ Gemini embedding error: {e}", exc_info=True)
            raise

        embeddings = [list(embedding.values) for embedding in response.embeddings]
        logger.info(f"✅ Generated {len(embeddings)} embeddings with {embedding_model}")
        return embeddings
