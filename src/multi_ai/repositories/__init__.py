"""Repository layer for data access.

This layer abstracts external dependencies (Redis, embedding APIs)
behind protocol-based interfaces. The repositories are protocol-based
(structural typing), not inheritance-based.

LocalEmbeddingProvider is not re-exported here because it needs the
optional sentence-transformers extra; import it from its module.
"""

from multi_ai.protocols import ConversationStore, EmbeddingProvider

from .gemini_embedding_provider import GeminiEmbeddingProvider
from .ollama_embedding_provider import OllamaEmbeddingProvider
from .redis_repository import RedisConversationRepository

__all__ = [
    "ConversationStore",
    "EmbeddingProvider",
    "GeminiEmbeddingProvider",
    "OllamaEmbeddingProvider",
    "RedisConversationRepository",
]
