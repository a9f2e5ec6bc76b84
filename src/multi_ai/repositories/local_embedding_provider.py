"""Local sentence-transformers embedding provider.

Requires the ``local`` extra (``pip install multi-ai[local]``). Encoding
runs in a worker thread so the event loop keeps serving requests.
"""

import asyncio
import time

import numpy as np
import structlog
from sentence_transformers import SentenceTransformer

from multi_ai.config import settings

log = structlog.get_logger()


class LocalEmbeddingProvider:
    """Local sentence-transformers implementation of EmbeddingProvider.

    Default model: paraphrase-multilingual-MiniLM-L12-v2 (384 dimensions)
    """

    DEFAULT_MODEL = "paraphrase-multilingual-MiniLM-L12-v2"

    def __init__(self, model_name: str | None = None) -> None:
        """Initialize the local embedding provider.

        Args:
            model_name: Name of the sentence-transformers model
        """
        self._model_name = model_name or self.DEFAULT_MODEL
        self._model: SentenceTransformer | None = None
        self._dimension: int | None = None

    @classmethod
    def create(cls, model_name: str | None = None) -> "LocalEmbeddingProvider":
        """Factory method to create LocalEmbeddingProvider with defaults.

        Only an explicitly configured model name that is not the Ollama
        default is passed through.
        """
        if model_name is None and settings.embedding_model != "embeddinggemma":
            model_name = settings.embedding_model
        return cls(model_name=model_name)

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the embedding model."""
        if self._model is None:
            log.info("embedding_model_loading", model=self._model_name)
            start_time = time.time()
            self._model = SentenceTransformer(self._model_name)
            log.info("embedding_model_loaded", model=self._model_name, seconds=round(time.time() - start_time, 2))
        return self._model

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        if self._dimension is None:
            self._dimension = int(self.model.get_sentence_embedding_dimension() or 0)
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    def _encode_sync(self, text: str) -> list[float]:
        embedding = self.model.encode(text, show_progress_bar=False, normalize_embeddings=True)
        if isinstance(embedding, np.ndarray):
            if embedding.ndim == 1:
                return embedding.tolist()
            return embedding[0].tolist()
        return list(embedding)

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text."""
        return await asyncio.to_thread(self._encode_sync, text)

    async def is_available(self) -> bool:
        """Check if the model can be loaded."""
        try:
            await asyncio.to_thread(lambda: self.model)
            return True
        except Exception as e:
            log.warning("embedding_unavailable", backend="local", error=str(e))
            return False
