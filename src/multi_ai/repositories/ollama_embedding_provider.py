"""Ollama-based embedding provider.

Uses Ollama's local API to generate prompt embeddings for the semantic
cache fallback tier.

Requirements:
    - Ollama installed: https://ollama.com
    - Model pulled: `ollama pull embeddinggemma`
    - Ollama running: `ollama serve`

Models available:
- embeddinggemma (308M params, 768 dims, 2K context)
- nomic-embed-text (137M params, 768 dims)
- mxbai-embed-large (335M params, 1024 dims)
- all-minilm (22M params, 384 dims)
"""

import httpx
import structlog

from multi_ai.config import settings

log = structlog.get_logger()


class OllamaEmbeddingProvider:
    """Ollama-based implementation of the EmbeddingProvider protocol.

    Example:
        ```python
        provider = OllamaEmbeddingProvider.create(base_url="http://localhost:11434")
        vector = await provider.encode("what is a semantic cache")
        len(vector)  # 768
        ```
    """

    MODEL_DIMENSIONS = {
        "embeddinggemma": 768,
        "embeddinggemma:300m": 768,
        "nomic-embed-text": 768,
        "mxbai-embed-large": 1024,
        "all-minilm": 384,
    }

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Ollama embedding provider.

        Args:
            model_name: Name of the Ollama model. Defaults to settings.embedding_model.
            base_url: Ollama API base URL. Defaults to settings.ollama_base_url.
            timeout: Request timeout in seconds.
            client: Pre-built httpx client
        """
        self._model_name = model_name or settings.embedding_model
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(cls, model_name: str | None = None, base_url: str | None = None) -> "OllamaEmbeddingProvider":
        """Factory method to create OllamaEmbeddingProvider with defaults."""
        return cls(model_name=model_name, base_url=base_url)

    @property
    def dimension(self) -> int:
        """Vector dimension; unknown models fall back to the configured size."""
        return self.MODEL_DIMENSIONS.get(self._model_name, settings.embedding_dimension)

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Raises:
            RuntimeError: If the Ollama API request fails
            ValueError: If response format is invalid
        """
        payload = {"model": self._model_name, "input": text}
        try:
            response = await self.client.post(f"{self._base_url}/api/embed", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            error_msg = f"Ollama API error: {e}"
            if "connection refused" in str(e).lower():
                error_msg += " (is Ollama running? try: ollama serve)"
            elif response_not_found(e):
                error_msg += f" (model not found, try: ollama pull {self._model_name})"
            raise RuntimeError(error_msg) from e

        # Ollama returns {"embeddings": [[...]]} for single input
        if data.get("embeddings"):
            return data["embeddings"][0]
        if "embedding" in data:
            return data["embedding"]
        raise ValueError(f"Unexpected response format: {data}")

    async def is_available(self) -> bool:
        """Check if Ollama is running and the model answers."""
        try:
            await self.encode("test")
            return True
        except (RuntimeError, ValueError) as e:
            log.warning("embedding_unavailable", backend="ollama", error=str(e))
            return False

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def response_not_found(error: httpx.HTTPError) -> bool:
    return isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 404
