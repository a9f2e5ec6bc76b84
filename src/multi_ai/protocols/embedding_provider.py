"""Embedding provider protocol.

Defines the interface for any embedding generation service that can
convert text to vector embeddings.

Implementations can include:
- Ollama (local HTTP API)
- Gemini embeddings (API)
- sentence-transformers (local, optional extra)
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding generation services.

    Example:
        ```python
        provider: EmbeddingProvider = OllamaEmbeddingProvider.create()
        vector = await provider.encode("what is a semantic cache")
        ```
    """

    @property
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors."""
        ...

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The embedding vector as a list of floats
        """
        ...

    async def is_available(self) -> bool:
        """Check if the embedding provider is available."""
        ...
