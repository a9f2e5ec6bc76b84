"""Tests for the embedding providers, stored-record decoding and vector search scores."""

import json

import httpx
import pytest

from conftest import make_record
from multi_ai.repositories import GeminiEmbeddingProvider, OllamaEmbeddingProvider, RedisConversationRepository
from multi_ai.repositories.redis_repository import _decode, _to_record


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_ollama_encode():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/embed"
        assert json.loads(request.content) == {"model": "embeddinggemma", "input": "hello"}
        return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3]]})

    provider = OllamaEmbeddingProvider("embeddinggemma", "http://ollama:11434", client=_client(handler))

    assert await provider.encode("hello") == [0.1, 0.2, 0.3]
    assert provider.dimension == 768


@pytest.mark.asyncio
async def test_ollama_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "model not found"})

    provider = OllamaEmbeddingProvider("missing-model", "http://ollama:11434", client=_client(handler))

    with pytest.raises(RuntimeError, match="ollama pull missing-model"):
        await provider.encode("hello")
    assert await provider.is_available() is False


@pytest.mark.asyncio
async def test_gemini_embedding_encode():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/models/text-embedding-004:embedContent")
        assert request.headers["x-goog-api-key"] == "g-key"
        assert "key" not in request.url.params
        return httpx.Response(200, json={"embedding": {"values": [1.0, 0.0]}})

    provider = GeminiEmbeddingProvider("g-key", base_url="https://example.test/v1beta", client=_client(handler))

    assert await provider.encode("hello") == [1.0, 0.0]


@pytest.mark.asyncio
async def test_gemini_embedding_requires_key():
    provider = GeminiEmbeddingProvider("", base_url="https://example.test/v1beta")
    provider._api_key = None

    with pytest.raises(RuntimeError):
        await provider.encode("hello")


def test_stored_hash_decodes_to_record():
    raw = {
        b"id": b"7",
        b"type": b"multibot",
        b"prompt": b"what is redis",
        b"created_at": b"2026-10-18T09:30:00+00:00",
        b"processing_time_ms": b"1234",
        b"responses": json.dumps({"gemini": {"success": True, "response": "a store", "model": "g"}}).encode(),
        b"error": b"",
    }

    record = _to_record(_decode(raw))

    assert record.id == "7"
    assert record.processing_time_ms == 1234
    assert record.responses["gemini"]["response"] == "a store"
    assert record.error is None
    assert record.all_succeeded(["gemini"])
    assert not record.all_succeeded(["gemini", "cohere"])


class _RoundedIndex:
    """Search index returning COSINE distances with float32 rounding error."""

    def __init__(self, distances: dict[str, str]) -> None:
        self.distances = distances

    def query(self, query):
        return [{"record_id": record_id, "vector_distance": d} for record_id, d in self.distances.items()]


def test_vector_scores_are_clamped_to_unit_range():
    repo = RedisConversationRepository(redis_client=object(), namespace="test", vector_dimension=3)
    repo._index = _RoundedIndex({"1": "-1.2e-07", "2": "0.35"})
    repo._load = lambda ids: [make_record(record_id, f"prompt {record_id}") for record_id in ids]

    matches = repo.find_by_vector([1.0, 0.0, 0.0], threshold=0.5, limit=2)

    assert [(record.id, score) for record, score in matches] == [("1", 1.0), ("2", pytest.approx(0.65))]
