"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services built once in lifespan and stored in app.state
    - Dependency functions retrieve from request.app.state
    - Provider clients stay lazy: they are constructed on first use
"""

from contextlib import asynccontextmanager
from typing import Annotated

import structlog
from fastapi import Depends, FastAPI, Request

from multi_ai.config import Settings, get_settings
from multi_ai.handlers import AskHandler
from multi_ai.logging import configure_logging
from multi_ai.protocols import ConversationStore, EmbeddingProvider
from multi_ai.providers import ProviderRegistry
from multi_ai.repositories import (
    GeminiEmbeddingProvider,
    OllamaEmbeddingProvider,
    RedisConversationRepository,
)
from multi_ai.services import (
    MULTIBOT,
    ConversationService,
    FanoutDispatcher,
    LLMMatchJudge,
    SemanticCacheResolver,
    SimilarityMatcher,
)

log = structlog.get_logger()


def get_conversation_service(request: Request) -> ConversationService:
    """Dependency injection for ConversationService from app.state.

    Raises:
        RuntimeError: If service is not initialized
    """
    service = getattr(request.app.state, "conversation_service", None)
    if service is None:
        raise RuntimeError("ConversationService not initialized. Check lifespan setup.")
    return service


def get_handler(request: Request) -> AskHandler:
    """Dependency injection for AskHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "ask_handler", None)
    if handler is None:
        raise RuntimeError("AskHandler not initialized. Check lifespan setup.")
    return handler


def build_embedding_provider(cfg: Settings) -> EmbeddingProvider | None:
    """Embedding provider selected by EMBEDDING_BACKEND, or None."""
    if cfg.embedding_backend == "ollama":
        return OllamaEmbeddingProvider.create(model_name=cfg.embedding_model, base_url=cfg.ollama_base_url)
    if cfg.embedding_backend == "gemini":
        return GeminiEmbeddingProvider.create(api_key=cfg.gemini_api_key)
    if cfg.embedding_backend == "local":
        # Needs the optional sentence-transformers extra
        from multi_ai.repositories.local_embedding_provider import LocalEmbeddingProvider

        return LocalEmbeddingProvider.create()
    return None


def build_store(cfg: Settings, embeddings: EmbeddingProvider | None) -> ConversationStore | None:
    """Conversation store, or None when REDIS_URL is not configured."""
    if not cfg.persistence_enabled:
        return None
    dimension = embeddings.dimension if embeddings is not None else cfg.embedding_dimension
    return RedisConversationRepository.create(cfg, vector_dimension=dimension)


def build_service(cfg: Settings) -> tuple[ConversationService, ProviderRegistry, EmbeddingProvider | None]:
    """Wire every layer from settings."""
    embeddings = build_embedding_provider(cfg)
    store = build_store(cfg, embeddings)
    registry = ProviderRegistry.create(cfg)
    dispatcher = FanoutDispatcher.create(registry, cfg)

    judge = None
    if cfg.ai_judge_enabled:
        judge = LLMMatchJudge(
            lambda: registry.get(cfg.ai_judge_provider),
            timeout=cfg.deadline_for(cfg.ai_judge_provider),
        )

    resolver = SemanticCacheResolver(
        judge=judge,
        embeddings=embeddings,
        store=store,
        threshold=cfg.embedding_similarity_threshold,
        max_candidates=cfg.ai_judge_candidates,
        conversation_type=MULTIBOT,
    )
    service = ConversationService(
        dispatcher=dispatcher,
        registry=registry,
        matcher=SimilarityMatcher(cfg.lexical_similarity_threshold),
        resolver=resolver,
        store=store,
        embeddings=embeddings,
        chatbot_provider=cfg.chatbot_provider,
        chatbot_deadline=cfg.chatbot_deadline_seconds,
        history_limit=cfg.history_limit,
    )
    return service, registry, embeddings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores them in app.state:
    1. Store and embedding provider (data access)
    2. Provider registry and dispatcher (lazy clients)
    3. Service (business logic) - app.state.conversation_service
    4. Handler (HTTP endpoints) - app.state.ask_handler
    """
    cfg = get_settings()
    configure_logging(cfg.log_level, cfg.log_format, secrets=cfg.secrets)

    service, registry, embeddings = build_service(cfg)
    app.state.conversation_service = service
    app.state.ask_handler = AskHandler(conversation_service=service)

    log.info(
        "service_started",
        providers=",".join(cfg.providers),
        persistence=service.persistence_enabled,
        embedding_backend=cfg.embedding_backend,
        ai_judge=cfg.ai_judge_enabled,
    )
    if service.persistence_enabled and not await service.health():
        log.warning("store_unreachable", hint="requests will run without cache or history")

    yield

    await registry.aclose()
    close = getattr(embeddings, "close", None)
    if close is not None:
        await close()
    del app.state.ask_handler
    del app.state.conversation_service
    log.info("service_stopped")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[AskHandler, Depends(get_handler)]
ServiceDep = Annotated[ConversationService, Depends(get_conversation_service)]
