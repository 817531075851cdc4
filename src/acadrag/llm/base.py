"""Base classes and protocols for LLM services."""

from dataclasses import dataclass
from typing import Protocol


@dataclass
class GenerationOptions:
    """Sampling parameters passed through to the provider.

    Attributes:
        temperature: Sampling temperature
        max_output_tokens: Upper bound on generated tokens
        top_k: Top-k sampling cutoff
        top_p: Nucleus sampling cutoff
    """

    temperature: float | None = None
    max_output_tokens: int | None = None
    top_k: int | None = None
    top_p: float | None = None


class LLMService(Protocol):
    """Protocol defining the interface for LLM services.

    This protocol ensures type safety and allows for multiple LLM provider
    implementations while maintaining a consistent interface.
    """

    async def generate_response(
        self, messages: list[dict], options: GenerationOptions | None = None
    ) -> str:
        """Generate a response from the LLM based on the provided messages.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
                     Example: [{"role": "user", "content": "Hello"}]
            options: Optional sampling parameters (temperature, max tokens, top-k/p)

        Returns:
            str: The generated response content from the LLM.
        """
        ...

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses a default for the service.

        Returns:
            list[list[float]]: List of embedding vectors
        """
        ...
