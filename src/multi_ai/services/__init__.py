"""Service layer for business logic.

Services orchestrate the domain flows by coordinating providers,
the conversation store and the cache tiers.
"""

from .conversation_service import (
    CHATBOT,
    MULTIBOT,
    QA,
    AskOutcome,
    ChatOutcome,
    ConversationService,
    QAOutcome,
    result_entry,
)
from .dispatcher import FanoutDispatcher, ProviderRoute, call_with_deadline
from .semantic_resolver import LLMMatchJudge, SemanticCacheResolver, parse_verdict
from .similarity_matcher import SimilarityMatcher

__all__ = [
    "CHATBOT",
    "MULTIBOT",
    "QA",
    "AskOutcome",
    "ChatOutcome",
    "ConversationService",
    "FanoutDispatcher",
    "LLMMatchJudge",
    "ProviderRoute",
    "QAOutcome",
    "SemanticCacheResolver",
    "SimilarityMatcher",
    "call_with_deadline",
    "parse_verdict",
    "result_entry",
]
