"""Multi-AI - send one prompt to several LLM providers, with an answer cache.

This package provides a layered architecture:

Layers:
    - protocols: Interface contracts (ProviderClient, ConversationStore,
      EmbeddingProvider, MatchJudge)
    - providers: HTTP clients per LLM API, key rotation, lazy registry
    - repositories: Data access implementations (Redis, embeddings)
    - services: Business logic (fan-out, cache matching, orchestration)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from multi_ai.providers import ProviderRegistry
    from multi_ai.services import FanoutDispatcher

    registry = ProviderRegistry.create(settings)
    dispatcher = FanoutDispatcher.create(registry, settings)
    aggregate = await dispatcher.dispatch(PromptRequest.parse("hello"))
    ```

For HTTP API:
    ```python
    from multi_ai.api.app import app
    ```
"""

from multi_ai.config import get_redis_client, settings
from multi_ai.entities import AggregateResponse, CacheMatch, PromptRequest, ProviderFailure, ProviderSuccess
from multi_ai.errors import AggregateDispatchError, InvalidInputError, MultiAIError
from multi_ai.handlers import AskHandler
from multi_ai.protocols import ConversationStore, EmbeddingProvider, MatchJudge, ProviderClient
from multi_ai.providers import KeyRotator, ProviderRegistry
from multi_ai.repositories import RedisConversationRepository
from multi_ai.services import ConversationService, FanoutDispatcher, SemanticCacheResolver, SimilarityMatcher

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Errors
    "MultiAIError",
    "InvalidInputError",
    "AggregateDispatchError",
    # Protocols (interfaces)
    "ConversationStore",
    "EmbeddingProvider",
    "MatchJudge",
    "ProviderClient",
    # Providers
    "KeyRotator",
    "ProviderRegistry",
    # Services (business logic)
    "ConversationService",
    "FanoutDispatcher",
    "SemanticCacheResolver",
    "SimilarityMatcher",
    # Handlers (HTTP)
    "AskHandler",
    # Repositories (data access)
    "RedisConversationRepository",
    # Entities (domain models)
    "AggregateResponse",
    "CacheMatch",
    "PromptRequest",
    "ProviderFailure",
    "ProviderSuccess",
]
