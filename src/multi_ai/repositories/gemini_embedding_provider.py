"""Gemini API embedding provider (text-embedding-004)."""

import httpx
import structlog

from multi_ai.config import settings

log = structlog.get_logger()


class GeminiEmbeddingProvider:
    """EmbeddingProvider backed by the Gemini ``embedContent`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str = "text-embedding-004",
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key or settings.gemini_api_key
        self._model_name = model_name
        self._base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self._timeout = timeout
        self._client = client

    @classmethod
    def create(cls, api_key: str | None = None) -> "GeminiEmbeddingProvider":
        """Factory method to create GeminiEmbeddingProvider with defaults."""
        return cls(api_key=api_key)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def dimension(self) -> int:
        return 768

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Raises:
            RuntimeError: If the key is missing or the API request fails
        """
        if not self._api_key:
            raise RuntimeError("Gemini API key not configured")

        url = f"{self._base_url}/models/{self._model_name}:embedContent"
        payload = {
            "model": f"models/{self._model_name}",
            "content": {"parts": [{"text": text}]},
        }
        try:
            response = await self.client.post(url, json=payload, headers={"x-goog-api-key": self._api_key})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise RuntimeError(f"Gemini embedding error: {e}") from e

        values = (data.get("embedding") or {}).get("values")
        if not values:
            raise RuntimeError("Gemini embedding response had no values")
        return values

    async def is_available(self) -> bool:
        try:
            await self.encode("test")
            return True
        except RuntimeError as e:
            log.warning("embedding_unavailable", backend="gemini", error=str(e))
            return False

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
