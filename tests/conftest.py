"""Shared fakes for the test suite.

Nothing here touches the network or Redis: providers, the conversation
store and the embedding provider are replaced by in-memory doubles.
"""

import asyncio
import math
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from multi_ai.entities import (
    ConversationPage,
    ConversationRecord,
    FailureReason,
    LookupResult,
    ProviderFailure,
    ProviderSuccess,
    SaveResult,
)
from multi_ai.providers import ProviderRegistry, ProviderSpec
from multi_ai.services import (
    ConversationService,
    FanoutDispatcher,
    ProviderRoute,
    SemanticCacheResolver,
    SimilarityMatcher,
)
from multi_ai.utils import normalize_prompt

PROVIDER_KEYS = ("gemini", "cohere", "openrouter")


class FakeProviderClient:
    """ProviderClient double with scripted behaviour."""

    def __init__(
        self,
        name: str,
        reply: str | None = None,
        *,
        delay: float = 0.0,
        failure: ProviderFailure | None = None,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.model_label = f"{name}-model"
        self.reply = reply or f"answer from {name}"
        self.delay = delay
        self.failure = failure
        self.error = error
        self.calls: list[str] = []

    async def generate(self, prompt: str, model_hint: str | None = None, *, api_key: str | None = None):
        self.calls.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.failure is not None:
            return self.failure
        return ProviderSuccess(text=self.reply, model_label=self.model_label, token_count=3)


def failure(reason: FailureReason, message: str = "nope", model_label: str = "fake-model") -> ProviderFailure:
    return ProviderFailure(reason=reason, message=message, model_label=model_label)


def make_record(
    record_id: str,
    prompt: str,
    *,
    keys: tuple[str, ...] = PROVIDER_KEYS,
    failed: tuple[str, ...] = (),
    type: str = "multibot",
    response: str | None = None,
    age_minutes: int = 0,
) -> ConversationRecord:
    responses = {}
    for key in keys:
        if key in failed:
            responses[key] = {"success": False, "error": "Request failed", "model": f"{key}-model"}
        else:
            responses[key] = {"success": True, "response": f"cached {key}", "model": f"{key}-model"}
    return ConversationRecord(
        id=record_id,
        type=type,
        prompt=prompt,
        created_at=datetime.now(timezone.utc) - timedelta(minutes=age_minutes),
        response=response,
        responses=responses if type == "multibot" else None,
        processing_time_ms=10,
    )


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class FakeStore:
    """In-memory ConversationStore, newest record first."""

    def __init__(self, records: list[ConversationRecord] | None = None) -> None:
        self.records: list[ConversationRecord] = list(records or [])
        self.vectors: dict[str, tuple[str, list[float]]] = {}
        self.saved: list[dict[str, Any]] = []

    def save_conversation(self, *, type, prompt, response=None, responses=None, model=None, processing_time_ms=0, error=None):
        record_id = str(len(self.saved) + len(self.records) + 1)
        self.saved.append({"type": type, "prompt": prompt, "response": response, "responses": responses, "error": error})
        record = ConversationRecord(
            id=record_id,
            type=type,
            prompt=prompt,
            created_at=datetime.now(timezone.utc),
            response=response,
            responses=responses,
            model=model,
            processing_time_ms=processing_time_ms,
            error=error,
        )
        self.records.insert(0, record)
        return SaveResult(saved=True, record_id=record_id)

    def fetch_conversations(self, page=1, limit=20, type=None):
        matching = [r for r in self.records if type is None or r.type == type]
        start = (page - 1) * limit
        return ConversationPage(data=matching[start : start + limit], total=len(matching))

    def find_conversation_by_prompt(self, prompt, type=None):
        target = normalize_prompt(prompt)
        for record in self.records:
            if (type is None or record.type == type) and normalize_prompt(record.prompt) == target:
                return LookupResult(data=record)
        return LookupResult()

    def store_embedding(self, record_id, type, vector):
        self.vectors[record_id] = (type, list(vector))
        return True

    def find_by_vector(self, vector, threshold, limit=1, type=None):
        by_id = {r.id: r for r in self.records}
        scored = []
        for record_id, (record_type, stored) in self.vectors.items():
            if type is not None and record_type != type:
                continue
            score = _cosine(vector, stored)
            if score >= threshold and record_id in by_id:
                scored.append((by_id[record_id], score))
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[:limit]

    def health_check(self):
        return True


class BrokenStore:
    """ConversationStore whose every call blows up."""

    def _fail(self, *args, **kwargs):
        raise ConnectionError("store is down")

    save_conversation = _fail
    fetch_conversations = _fail
    find_conversation_by_prompt = _fail
    store_embedding = _fail
    find_by_vector = _fail
    health_check = _fail


class FakeEmbeddings:
    """EmbeddingProvider returning fixed vectors per normalized text."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, default: list[float] | None = None) -> None:
        self.vectors = vectors or {}
        self.default = default or [0.0, 0.0, 1.0]
        self.calls: list[str] = []

    @property
    def dimension(self) -> int:
        return 3

    @property
    def model_name(self) -> str:
        return "fake-embeddings"

    async def encode(self, text: str) -> list[float]:
        self.calls.append(text)
        return self.vectors.get(text, self.default)

    async def is_available(self) -> bool:
        return True


class ScriptedJudge:
    """MatchJudge returning a fixed verdict, or raising."""

    def __init__(self, verdict: int | None = None, error: Exception | None = None) -> None:
        self.verdict = verdict
        self.error = error
        self.calls: list[tuple[str, list[str]]] = []

    async def judge_match(self, prompt: str, candidates: list[str]) -> int | None:
        self.calls.append((prompt, candidates))
        if self.error is not None:
            raise self.error
        return self.verdict


def make_registry(clients: dict[str, Any]) -> ProviderRegistry:
    specs = {
        key: ProviderSpec(
            key=key,
            display_name=key.title(),
            model_label=f"{key}-model",
            configured=True,
            build=lambda client=client: client,
        )
        for key, client in clients.items()
    }
    return ProviderRegistry(specs)


def make_dispatcher(registry: ProviderRegistry, deadline: float = 1.0) -> FanoutDispatcher:
    routes = [
        ProviderRoute(key=key, display_name=key.title(), model_label=f"{key}-model", deadline=deadline)
        for key in registry.order
    ]
    return FanoutDispatcher(routes, registry)


def make_service(
    clients: dict[str, Any] | None = None,
    *,
    store=None,
    judge=None,
    embeddings=None,
    deadline: float = 1.0,
) -> ConversationService:
    clients = clients or {key: FakeProviderClient(key) for key in PROVIDER_KEYS}
    registry = make_registry(clients)
    resolver = SemanticCacheResolver(
        judge=judge,
        embeddings=embeddings,
        store=store,
        conversation_type="multibot",
    )
    return ConversationService(
        dispatcher=make_dispatcher(registry, deadline),
        registry=registry,
        matcher=SimilarityMatcher(),
        resolver=resolver,
        store=store,
        embeddings=embeddings,
        chatbot_provider=next(iter(clients)),
        chatbot_deadline=deadline,
    )


@pytest.fixture
def clients() -> dict[str, FakeProviderClient]:
    return {key: FakeProviderClient(key) for key in PROVIDER_KEYS}


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
