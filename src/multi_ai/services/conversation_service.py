"""Conversation service for the core request flows.

Orchestrates validation, cache lookup (lexical, then semantic), provider
fan-out and persistence. Store and cache failures never escape this
layer; they are logged and the request carries on as a cache miss.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from multi_ai.entities import (
    AggregateResponse,
    CacheMatch,
    ConversationPage,
    ConversationRecord,
    PromptRequest,
    ProviderResult,
    ProviderSuccess,
    SaveResult,
)
from multi_ai.errors import AggregateDispatchError
from multi_ai.protocols import ConversationStore, EmbeddingProvider
from multi_ai.providers import ProviderRegistry
from multi_ai.utils import normalize_prompt

from .dispatcher import FanoutDispatcher, ProviderRoute, call_with_deadline
from .semantic_resolver import SemanticCacheResolver
from .similarity_matcher import SimilarityMatcher

log = structlog.get_logger()

MULTIBOT = "multibot"
CHATBOT = "chatbot"
QA = "qa"

MAX_PAGE_SIZE = 100
NO_ANSWER = "Sorry, no answer available."


def result_entry(result: ProviderResult) -> dict[str, Any]:
    """Wire-format entry for one provider result."""
    if isinstance(result, ProviderSuccess):
        entry: dict[str, Any] = {"success": True, "response": result.text, "model": result.model_label}
        if result.token_count is not None:
            entry["tokens"] = result.token_count
        return entry
    return {"success": False, "error": result.message, "model": result.model_label}


def failure_summary(aggregate: AggregateResponse) -> str | None:
    failures = aggregate.failures
    if not failures:
        return None
    return "; ".join(f"{key}: {failure.message}" for key, failure in failures.items())


@dataclass(frozen=True)
class AskOutcome:
    """Result of the multibot flow: a fresh aggregate or a cache hit."""

    prompt: str
    aggregate: AggregateResponse | None = None
    cache_match: CacheMatch | None = None

    @property
    def cached(self) -> bool:
        return self.cache_match is not None


@dataclass(frozen=True)
class ChatOutcome:
    prompt: str
    result: ProviderResult
    elapsed_ms: int
    cached: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class QAOutcome:
    question: str
    answer: str
    cached: bool = False
    result: ProviderResult | None = None


class ConversationService:
    """Core orchestration service.

    Depends on protocols for the store and the embedding provider, so
    either can be absent (persistence disabled, embeddings disabled) or
    swapped for a fake in tests.

    Example:
        ```python
        registry = ProviderRegistry.create(settings)
        service = ConversationService(
            dispatcher=FanoutDispatcher.create(registry, settings),
            registry=registry,
            matcher=SimilarityMatcher(),
            resolver=SemanticCacheResolver(),
        )
        outcome = await service.ask("what is a semantic cache?")
        ```
    """

    def __init__(
        self,
        dispatcher: FanoutDispatcher,
        registry: ProviderRegistry,
        matcher: SimilarityMatcher,
        resolver: SemanticCacheResolver,
        store: ConversationStore | None = None,
        embeddings: EmbeddingProvider | None = None,
        *,
        chatbot_provider: str = "gemini",
        chatbot_deadline: float = 15.0,
        history_limit: int = 150,
    ) -> None:
        """Initialize the service.

        Args:
            dispatcher: Fan-out dispatcher for the multibot flow
            registry: Provider registry (status and single-provider flows)
            matcher: Lexical cache matcher
            resolver: Semantic cache resolver
            store: Conversation store; None disables persistence and caching
            embeddings: Embedding provider; None disables prompt embeddings
            chatbot_provider: Provider key for the chatbot and Q&A flows
            chatbot_deadline: Deadline in seconds for those flows
            history_limit: How many recent multibot records the cache considers
        """
        self._dispatcher = dispatcher
        self._registry = registry
        self._matcher = matcher
        self._resolver = resolver
        self._store = store
        self._embeddings = embeddings
        self._chatbot_provider = chatbot_provider
        self._chatbot_deadline = chatbot_deadline
        self._history_limit = history_limit

    @property
    def routes(self) -> tuple[ProviderRoute, ...]:
        return self._dispatcher.routes

    @property
    def provider_keys(self) -> tuple[str, ...]:
        return self._dispatcher.keys

    @property
    def persistence_enabled(self) -> bool:
        return self._store is not None

    def _chatbot_route(self) -> ProviderRoute:
        spec = self._registry.spec(self._chatbot_provider)
        return ProviderRoute(
            key=spec.key,
            display_name=spec.display_name,
            model_label=spec.model_label,
            deadline=self._chatbot_deadline,
        )

    async def _ask_chatbot(self, prompt: str) -> ProviderResult:
        route = self._chatbot_route()
        try:
            client = self._registry.get(route.key)
        except Exception as e:
            raise AggregateDispatchError(f"Failed to load provider {route.key}: {e}") from e
        return await call_with_deadline(client, route, prompt)

    async def ask(self, prompt: Any) -> AskOutcome:
        """Answer a prompt from cache or by fanning out to every provider.

        Raises:
            InvalidInputError: If the prompt is missing or blank
            AggregateDispatchError: If the dispatch machinery fails
        """
        request = PromptRequest.parse(prompt)

        match = await self.lookup(request.text)
        if match is not None:
            log.info(
                "cache_hit",
                method=match.method.value,
                score=round(match.score, 3),
                record_key=match.record.id,
            )
            return AskOutcome(prompt=request.text, cache_match=match)

        aggregate = await self._dispatcher.dispatch(request)
        return AskOutcome(prompt=request.text, aggregate=aggregate)

    async def _servable_history(self) -> list[ConversationRecord]:
        page = await asyncio.to_thread(
            self._store.fetch_conversations, 1, self._history_limit, MULTIBOT
        )
        if page.error:
            log.warning("history_unavailable", error=page.error)
            return []
        keys = self.provider_keys
        return [record for record in page.data if record.all_succeeded(keys)]

    async def lookup(self, prompt: str) -> CacheMatch | None:
        """Find a cached multibot answer for this prompt. Never raises."""
        if self._store is None:
            return None

        try:
            history = await self._servable_history()
            match = self._matcher.find_lexical_match(prompt, history)
            if match is None:
                match = await self._resolver.resolve(prompt, history)
        except Exception as e:
            log.warning("cache_lookup_failed", error=str(e))
            return None

        # The embedding tier searches beyond the history window
        if match is not None and not match.record.all_succeeded(self.provider_keys):
            return None
        return match

    async def _index_prompt(self, record_id: str, type: str, prompt: str) -> None:
        if self._embeddings is None or self._store is None:
            return
        try:
            vector = await self._embeddings.encode(normalize_prompt(prompt))
            stored = await asyncio.to_thread(self._store.store_embedding, record_id, type, vector)
        except Exception as e:
            log.warning("embedding_index_failed", record_key=record_id, error=str(e))
            return
        if not stored:
            log.warning("embedding_index_failed", record_key=record_id)

    async def _save(self, **fields: Any) -> SaveResult:
        if self._store is None:
            return SaveResult(saved=False, error="Persistence disabled")
        try:
            result = await asyncio.to_thread(lambda: self._store.save_conversation(**fields))
        except Exception as e:
            log.error("conversation_save_failed", type=fields.get("type"), error=str(e))
            return SaveResult(saved=False, error=str(e))
        if not result.saved:
            log.error("conversation_save_failed", type=fields.get("type"), error=result.error)
        return result

    async def remember(self, aggregate: AggregateResponse) -> SaveResult:
        """Persist a completed multibot aggregate. Never raises."""
        result = await self._save(
            type=MULTIBOT,
            prompt=aggregate.prompt,
            responses={key: result_entry(r) for key, r in aggregate.results.items()},
            processing_time_ms=aggregate.elapsed_ms,
            error=failure_summary(aggregate),
        )
        if result.saved and result.record_id:
            await self._index_prompt(result.record_id, MULTIBOT, aggregate.prompt)
        return result

    async def chat(self, prompt: Any) -> ChatOutcome:
        """Single-provider chatbot with exact normalized caching.

        Raises:
            InvalidInputError: If the prompt is missing or blank
        """
        request = PromptRequest.parse(prompt)
        started = time.perf_counter()

        if self._store is not None:
            try:
                found = await asyncio.to_thread(
                    self._store.find_conversation_by_prompt, request.text, CHATBOT
                )
            except Exception as e:
                log.warning("cache_lookup_failed", type=CHATBOT, error=str(e))
            else:
                record = found.data
                if record is not None and record.response:
                    log.info("cache_hit", method="exact", type=CHATBOT, record_key=record.id)
                    cached = ProviderSuccess(
                        text=record.response,
                        model_label=record.model or self._chatbot_route().model_label,
                    )
                    return ChatOutcome(prompt=request.text, result=cached, elapsed_ms=0, cached=True)

        result = await self._ask_chatbot(request.text)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        return ChatOutcome(prompt=request.text, result=result, elapsed_ms=elapsed_ms)

    async def remember_chat(self, outcome: ChatOutcome) -> SaveResult | None:
        """Persist a fresh successful chatbot answer. Never raises."""
        if outcome.cached or not isinstance(outcome.result, ProviderSuccess):
            return None
        return await self._save(
            type=CHATBOT,
            prompt=outcome.prompt,
            response=outcome.result.text,
            model=outcome.result.model_label,
            processing_time_ms=outcome.elapsed_ms,
        )

    async def answer_question(self, question: Any) -> QAOutcome:
        """Embedding-backed Q&A: reuse a close enough earlier answer.

        Raises:
            InvalidInputError: If the question is missing or blank
        """
        request = PromptRequest.parse(question)

        try:
            match = await self._resolver.match_embedding(request.text, QA)
        except Exception as e:
            log.warning("cache_lookup_failed", type=QA, error=str(e))
            match = None

        if match is not None and match.record.response:
            log.info("cache_hit", method=match.method.value, type=QA, score=round(match.score, 3))
            return QAOutcome(question=request.text, answer=match.record.response, cached=True)

        result = await self._ask_chatbot(request.text)
        answer = result.text if isinstance(result, ProviderSuccess) else NO_ANSWER
        return QAOutcome(question=request.text, answer=answer, result=result)

    async def remember_answer(self, outcome: QAOutcome) -> SaveResult | None:
        """Persist a fresh Q&A answer and its question embedding. Never raises."""
        if outcome.cached or not isinstance(outcome.result, ProviderSuccess):
            return None
        result = await self._save(
            type=QA,
            prompt=outcome.question,
            response=outcome.answer,
            model=outcome.result.model_label,
        )
        if result.saved and result.record_id:
            await self._index_prompt(result.record_id, QA, outcome.question)
        return result

    def provider_status(self) -> dict[str, dict[str, Any]]:
        """Configured flag and model label per provider, without calling them."""
        status = {}
        for key in self._registry.order:
            spec = self._registry.spec(key)
            status[key] = {"configured": spec.configured, "model": spec.model_label}
        return status

    async def history(self, page: int = 1, limit: int = 20, type: str | None = None) -> ConversationPage:
        """One page of stored conversations. Never raises."""
        if self._store is None:
            return ConversationPage(error="Persistence disabled")
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        try:
            return await asyncio.to_thread(self._store.fetch_conversations, max(page, 1), limit, type)
        except Exception as e:
            log.error("conversation_fetch_failed", error=str(e))
            return ConversationPage(error=str(e))

    async def health(self) -> bool | None:
        """Store reachability, or None when persistence is disabled."""
        if self._store is None:
            return None
        try:
            return await asyncio.to_thread(self._store.health_check)
        except Exception as e:
            log.warning("store_health_failed", error=str(e))
            return False
