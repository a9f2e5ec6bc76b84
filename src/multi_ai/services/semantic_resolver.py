"""Semantic cache resolution: AI judgment first, embeddings as fallback."""

import asyncio
import re
from collections.abc import Callable, Sequence

import structlog

from multi_ai.entities import CacheMatch, ConversationRecord, MatchMethod, ProviderFailure
from multi_ai.errors import CacheLookupError
from multi_ai.protocols import ConversationStore, EmbeddingProvider, MatchJudge, ProviderClient
from multi_ai.utils import normalize_prompt, similarity

log = structlog.get_logger()

_MATCH_RE = re.compile(r"\bMATCH:\s*(\d+)")

JUDGE_INSTRUCTIONS = """You decide whether a new question asks for the same information as an earlier one.

New question:
{prompt}

Earlier questions:
{candidates}

Treat synonyms, paraphrases and typos as equivalent, but only answer with a match
if both questions seek the same underlying information.

Reply with exactly one line:
MATCH: <number of the earlier question>
or
NO_MATCH"""


def parse_verdict(reply: str, candidate_count: int) -> int | None:
    """Turn a judge reply into a 0-based candidate index.

    Anything other than a valid ``MATCH: n`` (1-based, in range) is
    treated as no match.
    """
    found = _MATCH_RE.search(reply or "")
    if found is None:
        return None
    number = int(found.group(1))
    if 1 <= number <= candidate_count:
        return number - 1
    return None


class LLMMatchJudge:
    """MatchJudge backed by a general-purpose LLM provider.

    The provider is resolved lazily so that the judge costs nothing until
    the first cache miss that reaches it.
    """

    def __init__(self, client_factory: Callable[[], ProviderClient], timeout: float = 30.0) -> None:
        """Initialize the judge.

        Args:
            client_factory: Returns the provider client to ask
            timeout: Seconds to wait for the verdict
        """
        self._client_factory = client_factory
        self._timeout = timeout

    @classmethod
    def for_client(cls, client: ProviderClient, timeout: float = 30.0) -> "LLMMatchJudge":
        """Build a judge around an already constructed client."""
        return cls(lambda: client, timeout=timeout)

    @staticmethod
    def build_prompt(prompt: str, candidates: list[str]) -> str:
        listed = "\n".join(f"{i}. {text}" for i, text in enumerate(candidates, start=1))
        return JUDGE_INSTRUCTIONS.format(prompt=prompt, candidates=listed)

    async def judge_match(self, prompt: str, candidates: list[str]) -> int | None:
        client = self._client_factory()
        try:
            result = await asyncio.wait_for(
                client.generate(self.build_prompt(prompt, candidates)),
                timeout=self._timeout,
            )
        except TimeoutError as e:
            raise CacheLookupError("AI match judgment timed out") from e

        if isinstance(result, ProviderFailure):
            raise CacheLookupError(f"AI match judgment failed ({result.reason.value}): {result.message}")
        return parse_verdict(result.text, len(candidates))


class SemanticCacheResolver:
    """Resolve prompts the lexical matcher could not.

    Tier 1 asks a MatchJudge to compare the prompt with the most recent
    history entries. Tier 2 (only when tier 1 errors, or no judge is
    configured) queries stored prompt embeddings. Every failure degrades to
    "no match".

    Example:
        ```python
        resolver = SemanticCacheResolver(
            judge=LLMMatchJudge.for_client(gemini),
            embeddings=OllamaEmbeddingProvider.create(),
            store=repository,
        )
        match = await resolver.resolve("whats a semantic cache", history)
        ```
    """

    def __init__(
        self,
        judge: MatchJudge | None = None,
        embeddings: EmbeddingProvider | None = None,
        store: ConversationStore | None = None,
        *,
        threshold: float = 0.8,
        max_candidates: int = 10,
        conversation_type: str | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            judge: AI judgment policy; None skips straight to embeddings
            embeddings: Embedding provider for the fallback tier
            store: Store holding prompt embeddings
            threshold: Cosine similarity a match must strictly exceed
            max_candidates: How many recent prompts the judge sees
            conversation_type: Restrict embedding search to one type
        """
        self._judge = judge
        self._embeddings = embeddings
        self._store = store
        self._threshold = threshold
        self._max_candidates = max_candidates
        self._type = conversation_type

    @property
    def embeddings_enabled(self) -> bool:
        return self._embeddings is not None and self._store is not None

    async def resolve(
        self,
        prompt: str,
        history: Sequence[ConversationRecord],
    ) -> CacheMatch | None:
        """Find a semantically equivalent record, or None.

        Never raises.
        """
        try:
            return await self._resolve(prompt, history)
        except Exception as e:
            log.warning("semantic_lookup_failed", error=str(e))
            return None

    async def _resolve(
        self,
        prompt: str,
        history: Sequence[ConversationRecord],
    ) -> CacheMatch | None:
        candidates = list(history[: self._max_candidates])
        if self._judge is None or not candidates:
            return await self.match_embedding(prompt, self._type)

        try:
            index = await self._judge.judge_match(prompt, [c.prompt for c in candidates])
        except Exception as e:
            log.warning("ai_judge_failed", error=str(e))
            return await self.match_embedding(prompt, self._type)

        if index is None or not 0 <= index < len(candidates):
            return None

        record = candidates[index]
        score = similarity(normalize_prompt(prompt), normalize_prompt(record.prompt))
        log.info("ai_judge_match", record_id=record.id, position=index + 1)
        return CacheMatch(record=record, score=score, method=MatchMethod.AI_JUDGED)

    async def match_embedding(self, prompt: str, conversation_type: str | None = None) -> CacheMatch | None:
        """Nearest stored prompt embedding, if similar enough.

        Raises:
            Exception: Whatever the embedding provider or store raises
        """
        if self._embeddings is None or self._store is None:
            return None

        vector = await self._embeddings.encode(normalize_prompt(prompt))
        matches = await asyncio.to_thread(
            self._store.find_by_vector,
            vector,
            self._threshold,
            1,
            conversation_type,
        )
        if not matches:
            return None

        record, score = matches[0]
        if score <= self._threshold:
            return None
        return CacheMatch(record=record, score=min(score, 1.0), method=MatchMethod.EMBEDDING)
