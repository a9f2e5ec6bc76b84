"""Tests for AI-judged and embedding cache resolution."""

import pytest

from conftest import FakeEmbeddings, FakeProviderClient, FakeStore, ScriptedJudge, failure, make_record
from multi_ai.entities import FailureReason, MatchMethod
from multi_ai.errors import CacheLookupError
from multi_ai.services import LLMMatchJudge, SemanticCacheResolver, parse_verdict

HISTORY = [
    make_record("3", "how do plants make food"),
    make_record("2", "what is the boiling point of water"),
    make_record("1", "who wrote hamlet"),
]


@pytest.fixture
def indexed_store() -> FakeStore:
    store = FakeStore(list(HISTORY))
    store.store_embedding("2", "multibot", [1.0, 0.0, 0.0])
    return store


@pytest.mark.parametrize(
    ("reply", "expected"),
    [
        ("MATCH: 2", 1),
        ("MATCH:1", 0),
        ("Sure.\nMATCH: 3\n", 2),
        ("NO_MATCH", None),
        ("MATCH: 4", None),
        ("MATCH: 0", None),
        ("I am not sure", None),
    ],
)
def test_parse_verdict(reply, expected):
    assert parse_verdict(reply, 3) == expected


@pytest.mark.asyncio
async def test_llm_judge_reply_selects_second_record():
    judge = LLMMatchJudge.for_client(FakeProviderClient("gemini", reply="MATCH: 2"))
    resolver = SemanticCacheResolver(judge=judge)

    match = await resolver.resolve("at what temperature does water boil", HISTORY)

    assert match is not None
    assert match.record.id == "2"
    assert match.method is MatchMethod.AI_JUDGED


@pytest.mark.asyncio
async def test_llm_judge_prompt_lists_numbered_candidates():
    client = FakeProviderClient("gemini", reply="NO_MATCH")
    judge = LLMMatchJudge.for_client(client)

    await judge.judge_match("q", ["first", "second"])

    assert "1. first" in client.calls[0]
    assert "2. second" in client.calls[0]


@pytest.mark.asyncio
async def test_no_match_does_not_fall_through_to_embeddings(indexed_store):
    embeddings = FakeEmbeddings(default=[1.0, 0.0, 0.0])
    resolver = SemanticCacheResolver(judge=ScriptedJudge(None), embeddings=embeddings, store=indexed_store)

    match = await resolver.resolve("at what temperature does water boil", HISTORY)

    assert match is None
    assert embeddings.calls == []


@pytest.mark.asyncio
async def test_judge_error_falls_back_to_embeddings(indexed_store):
    embeddings = FakeEmbeddings(default=[0.99, 0.05, 0.0])
    judge = ScriptedJudge(error=CacheLookupError("judge down"))
    resolver = SemanticCacheResolver(judge=judge, embeddings=embeddings, store=indexed_store)

    match = await resolver.resolve("at what temperature does water boil", HISTORY)

    assert match is not None
    assert match.method is MatchMethod.EMBEDDING
    assert match.record.id == "2"
    assert match.score > 0.8


@pytest.mark.asyncio
async def test_provider_failure_in_judge_falls_back_to_embeddings(indexed_store):
    client = FakeProviderClient("gemini", failure=failure(FailureReason.RATE_LIMITED))
    embeddings = FakeEmbeddings(default=[1.0, 0.0, 0.0])
    resolver = SemanticCacheResolver(
        judge=LLMMatchJudge.for_client(client),
        embeddings=embeddings,
        store=indexed_store,
    )

    match = await resolver.resolve("boiling water temperature", HISTORY)

    assert match is not None
    assert match.method is MatchMethod.EMBEDDING
    assert len(embeddings.calls) == 1


@pytest.mark.asyncio
async def test_llm_judge_raises_on_provider_failure():
    client = FakeProviderClient("gemini", failure=failure(FailureReason.TIMEOUT, "Gemini timeout"))

    with pytest.raises(CacheLookupError):
        await LLMMatchJudge.for_client(client).judge_match("q", ["a"])


@pytest.mark.asyncio
async def test_embedding_score_must_exceed_threshold(indexed_store):
    # cosine of [1, 0, 0] and [3, 4, 0] is exactly 0.6
    embeddings = FakeEmbeddings(default=[3.0, 4.0, 0.0])
    resolver = SemanticCacheResolver(embeddings=embeddings, store=indexed_store, threshold=0.6)

    assert await resolver.resolve("anything", HISTORY) is None


@pytest.mark.asyncio
async def test_invalid_index_is_discarded():
    resolver = SemanticCacheResolver(judge=ScriptedJudge(7))

    assert await resolver.resolve("anything", HISTORY) is None


@pytest.mark.asyncio
async def test_judge_sees_at_most_max_candidates():
    judge = ScriptedJudge(None)
    history = [make_record(str(i), f"question number {i}") for i in range(15)]
    resolver = SemanticCacheResolver(judge=judge, max_candidates=10)

    await resolver.resolve("anything", history)

    assert len(judge.calls[0][1]) == 10


@pytest.mark.asyncio
async def test_store_errors_are_swallowed():
    class ExplodingStore(FakeStore):
        def find_by_vector(self, *args, **kwargs):
            raise ConnectionError("index gone")

    resolver = SemanticCacheResolver(embeddings=FakeEmbeddings(), store=ExplodingStore())

    assert await resolver.resolve("anything", HISTORY) is None
