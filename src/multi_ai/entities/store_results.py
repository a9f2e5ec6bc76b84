"""Result values returned by conversation stores.

Stores report failures through these values instead of raising, so the
request path never sees a storage exception.
"""

from dataclasses import dataclass, field

from .conversation_record import ConversationRecord


@dataclass(frozen=True)
class SaveResult:
    saved: bool
    record_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class LookupResult:
    data: ConversationRecord | None = None
    error: str | None = None


@dataclass(frozen=True)
class ConversationPage:
    data: list[ConversationRecord] = field(default_factory=list)
    total: int = 0
    error: str | None = None
