"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis -> another store, Ollama -> Gemini, etc.)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .conversation_store import ConversationStore
from .embedding_provider import EmbeddingProvider
from .match_judge import MatchJudge
from .provider_client import ProviderClient

__all__ = [
    "ConversationStore",
    "EmbeddingProvider",
    "MatchJudge",
    "ProviderClient",
]
