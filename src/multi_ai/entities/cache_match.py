"""Cache match domain entity."""

from dataclasses import dataclass
from enum import Enum

from .conversation_record import ConversationRecord


class MatchMethod(str, Enum):
    EXACT = "exact"
    LEXICAL = "lexical"
    AI_JUDGED = "ai-judged"
    EMBEDDING = "embedding"


@dataclass(frozen=True)
class CacheMatch:
    """A prior conversation judged equivalent to a new prompt.

    Attributes:
        record: The matched conversation
        score: Similarity in [0, 1] as computed by the producing method
        method: Which lookup tier produced the match
    """

    record: ConversationRecord
    score: float
    method: MatchMethod
