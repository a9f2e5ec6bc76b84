"""Conversation store protocol.

Defines the interface for the persistence collaborator that keeps the
conversation history used for cache lookups, plus the prompt embeddings
used by the embedding tier.

Implementations report storage failures through result values
(``SaveResult``, ``LookupResult``, ``ConversationPage``) rather than by
raising. ``find_by_vector`` may raise; callers treat that as a miss.
"""

from typing import Any, Protocol, runtime_checkable

from multi_ai.entities import ConversationPage, ConversationRecord, LookupResult, SaveResult


@runtime_checkable
class ConversationStore(Protocol):
    """Protocol for conversation storage backends."""

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
        """Append a conversation record.

        Returns:
            SaveResult with the new record id, or saved=False and an error
        """
        ...

    def fetch_conversations(
        self,
        page: int = 1,
        limit: int = 20,
        type: str | None = None,
    ) -> ConversationPage:
        """List conversations newest first.

        Args:
            page: 1-based page number
            limit: Page size
            type: Restrict to one conversation type

        Returns:
            ConversationPage (empty with an error on failure)
        """
        ...

    def find_conversation_by_prompt(self, prompt: str, type: str | None = None) -> LookupResult:
        """Find the newest conversation whose normalized prompt equals this one.

        Returns:
            LookupResult with the record or None
        """
        ...

    def store_embedding(self, record_id: str, type: str, vector: list[float]) -> bool:
        """Index a prompt embedding against an existing record.

        Returns:
            True if stored, False otherwise
        """
        ...

    def find_by_vector(
        self,
        vector: list[float],
        threshold: float,
        limit: int = 1,
        type: str | None = None,
    ) -> list[tuple[ConversationRecord, float]]:
        """Find records whose prompt embedding is close to this vector.

        Args:
            vector: Query embedding
            threshold: Minimum cosine similarity (0-1)
            limit: Maximum number of results
            type: Restrict to one conversation type

        Returns:
            List of (record, cosine similarity), most similar first
        """
        ...

    def health_check(self) -> bool:
        """Check if the store is reachable."""
        ...
