"""Conversation record domain entity."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ConversationRecord:
    """A persisted prompt with its answer(s).

    Multibot records carry ``responses`` (provider key -> wire-format entry);
    chatbot and Q&A records carry a single ``response`` and ``model``.
    """

    id: str
    type: str
    prompt: str
    created_at: datetime
    response: str | None = None
    responses: dict[str, dict[str, Any]] | None = None
    model: str | None = None
    processing_time_ms: int | None = None
    error: str | None = None

    def all_succeeded(self, provider_keys: Iterable[str]) -> bool:
        """Whether every named provider has a successful entry."""
        entries = self.responses or {}
        return all(entries.get(key, {}).get("success") is True for key in provider_keys)
