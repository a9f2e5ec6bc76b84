"""Redis implementation of ConversationStore.

Conversations are plain hashes indexed by sorted sets (score = creation
time), so history pages come back newest first without a search module.
Prompt embeddings live in separate hashes covered by a Redis Stack HNSW
vector index that is created on first use.
"""

import json
from datetime import datetime, timezone
from typing import Any

import numpy as np
import redis
import structlog
from redisvl.index import SearchIndex
from redisvl.query import VectorQuery
from redisvl.query.filter import Tag

from multi_ai.config import Settings, get_redis_client, settings
from multi_ai.entities import ConversationPage, ConversationRecord, LookupResult, SaveResult
from multi_ai.utils import normalize_prompt

log = structlog.get_logger()

# Exact lookups only scan the most recent conversations
PROMPT_LOOKUP_WINDOW = 100


def _decode(raw: dict[bytes, bytes]) -> dict[str, str]:
    return {k.decode(): v.decode() for k, v in raw.items()}


def _to_record(fields: dict[str, str]) -> ConversationRecord:
    responses = json.loads(fields["responses"]) if fields.get("responses") else None
    processing_time = fields.get("processing_time_ms")
    return ConversationRecord(
        id=fields["id"],
        type=fields["type"],
        prompt=fields["prompt"],
        created_at=datetime.fromisoformat(fields["created_at"]),
        response=fields.get("response") or None,
        responses=responses,
        model=fields.get("model") or None,
        processing_time_ms=int(processing_time) if processing_time else None,
        error=fields.get("error") or None,
    )


class RedisConversationRepository:
    """Redis implementation of the ConversationStore protocol.

    Key layout (``ns`` is the configured namespace):
    - ``ns:conv:seq``          INCR counter for record ids
    - ``ns:conv:<id>``         hash holding one conversation
    - ``ns:history``           sorted set of every record id
    - ``ns:history:<type>``    sorted set of record ids of one type
    - ``ns:vec:<id>``          hash holding one prompt embedding
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        namespace: str | None = None,
        vector_dimension: int | None = None,
        index_name: str | None = None,
    ) -> None:
        """Initialize the repository.

        Args:
            redis_client: Redis client instance. If None, creates default.
            namespace: Key prefix. Defaults to settings.conversation_namespace.
            vector_dimension: Embedding size for the vector index
            index_name: Name of the Redis search index
        """
        self._client = redis_client or get_redis_client()
        self._namespace = namespace or settings.conversation_namespace
        self._dimension = vector_dimension or settings.embedding_dimension
        self._index_name = index_name or f"{self._namespace}_prompts"
        self._index: SearchIndex | None = None

    @classmethod
    def create(cls, cfg: Settings | None = None, vector_dimension: int | None = None) -> "RedisConversationRepository":
        """Factory method to create the repository from settings."""
        cfg = cfg or settings
        return cls(
            redis_client=get_redis_client(cfg),
            namespace=cfg.conversation_namespace,
            vector_dimension=vector_dimension or cfg.embedding_dimension,
        )

    def _record_key(self, record_id: str) -> str:
        return f"{self._namespace}:conv:{record_id}"

    def _history_key(self, type: str | None = None) -> str:
        if type:
            return f"{self._namespace}:history:{type}"
        return f"{self._namespace}:history"

    def _vector_key(self, record_id: str) -> str:
        return f"{self._namespace}:vec:{record_id}"

    def _ensure_index(self) -> SearchIndex:
        """Ensure the Redis vector index exists."""
        if self._index is not None:
            return self._index

        index_schema = {
            "index": {
                "name": self._index_name,
                "prefix": f"{self._namespace}:vec:",
                "storage_type": "hash",
            },
            "fields": [
                {"name": "record_id", "type": "tag"},
                {"name": "type", "type": "tag"},
                {"name": "prompt", "type": "text"},
                {
                    "name": "prompt_vector",
                    "type": "vector",
                    "attrs": {
                        "dims": self._dimension,
                        "algorithm": "HNSW",
                        "metric": "COSINE",
                    },
                },
                {"name": "created_at", "type": "numeric"},
            ],
        }

        index = SearchIndex.from_dict(index_schema)
        index.set_client(self._client)
        try:
            index.create(overwrite=False)
            log.info("vector_index_created", index=self._index_name, dims=self._dimension)
        except Exception as e:
            if "already exists" not in str(e):
                raise
            log.debug("vector_index_exists", index=self._index_name)

        self._index = index
        return index

    def save_conversation(
        self,
        *,
        type: str,
        prompt: str,
        response: str | None = None,
        responses: dict[str, dict[str, Any]] | None = None,
        model: str | None = None,
        processing_time_ms: int = 0,
        error: str | None = None,
    ) -> SaveResult:
        """Append a conversation record and index it by type and time."""
        created_at = datetime.now(timezone.utc)
        try:
            record_id = str(self._client.incr(f"{self._namespace}:conv:seq"))
            mapping = {
                "id": record_id,
                "type": type,
                "prompt": prompt,
                "created_at": created_at.isoformat(),
                "processing_time_ms": str(processing_time_ms),
            }
            if response is not None:
                mapping["response"] = response
            if responses is not None:
                mapping["responses"] = json.dumps(responses)
            if model is not None:
                mapping["model"] = model
            if error is not None:
                mapping["error"] = error

            score = created_at.timestamp()
            pipe = self._client.pipeline()
            pipe.hset(self._record_key(record_id), mapping=mapping)
            pipe.zadd(self._history_key(type), {record_id: score})
            pipe.zadd(self._history_key(), {record_id: score})
            pipe.execute()
        except redis.RedisError as e:
            log.error("conversation_save_failed", type=type, error=str(e))
            return SaveResult(saved=False, error=str(e))

        log.debug("conversation_saved", record_key=self._record_key(record_id), type=type)
        return SaveResult(saved=True, record_id=record_id)

    def _load(self, record_ids: list[str]) -> list[ConversationRecord]:
        pipe = self._client.pipeline()
        for record_id in record_ids:
            pipe.hgetall(self._record_key(record_id))
        records = []
        for raw in pipe.execute():
            if raw:
                records.append(_to_record(_decode(raw)))
        return records

    def fetch_conversations(
        self,
        page: int = 1,
        limit: int = 20,
        type: str | None = None,
    ) -> ConversationPage:
        """List conversations newest first."""
        page = max(page, 1)
        start = (page - 1) * limit
        key = self._history_key(type)
        try:
            total = int(self._client.zcard(key))
            ids = [raw.decode() for raw in self._client.zrevrange(key, start, start + limit - 1)]
            records = self._load(ids)
        except (redis.RedisError, ValueError, KeyError) as e:
            log.error("conversation_fetch_failed", type=type, error=str(e))
            return ConversationPage(error=str(e))
        return ConversationPage(data=records, total=total)

    def find_conversation_by_prompt(self, prompt: str, type: str | None = None) -> LookupResult:
        """Newest recent conversation with the same normalized prompt."""
        result = self.fetch_conversations(page=1, limit=PROMPT_LOOKUP_WINDOW, type=type)
        if result.error:
            return LookupResult(error=result.error)

        target = normalize_prompt(prompt)
        for record in result.data:
            if normalize_prompt(record.prompt) == target:
                return LookupResult(data=record)
        return LookupResult()

    def store_embedding(self, record_id: str, type: str, vector: list[float]) -> bool:
        """Index a prompt embedding against an existing record."""
        try:
            self._ensure_index()
            prompt = self._client.hget(self._record_key(record_id), "prompt")
            self._client.hset(
                self._vector_key(record_id),
                mapping={
                    "record_id": record_id,
                    "type": type,
                    "prompt": prompt.decode() if prompt else "",
                    "prompt_vector": np.asarray(vector, dtype=np.float32).tobytes(),
                    "created_at": str(datetime.now(timezone.utc).timestamp()),
                },
            )
            return True
        except Exception as e:
            log.error("embedding_store_failed", record_id=record_id, error=str(e))
            return False

    def find_by_vector(
        self,
        vector: list[float],
        threshold: float,
        limit: int = 1,
        type: str | None = None,
    ) -> list[tuple[ConversationRecord, float]]:
        """Find records by cosine similarity of their prompt embedding.

        Raises:
            redis.RedisError: If the search cannot be executed
        """
        index = self._ensure_index()
        query = VectorQuery(
            vector=vector,
            vector_field_name="prompt_vector",
            return_fields=["record_id", "type", "prompt"],
            filter_expression=Tag("type") == type if type else None,
            num_results=limit * 5,
        )

        scored: list[tuple[str, float]] = []
        for result in index.query(query):
            # COSINE distance is 1 - cosine similarity, give or take float32 rounding
            score = min(max(1.0 - float(result.get("vector_distance", 2.0)), 0.0), 1.0)
            if score >= threshold:
                scored.append((result["record_id"], score))
        scored.sort(key=lambda item: item[1], reverse=True)
        scored = scored[:limit]

        records = {record.id: record for record in self._load([record_id for record_id, _ in scored])}
        return [(records[record_id], score) for record_id, score in scored if record_id in records]

    def health_check(self) -> bool:
        """Check if Redis is accessible."""
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
