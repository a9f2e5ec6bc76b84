"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services,
providers and repositories. They are NOT used for API contracts - use
DTOs from the dto package for that.
"""

from .aggregate_response import AggregateResponse
from .cache_match import CacheMatch, MatchMethod
from .conversation_record import ConversationRecord
from .prompt_request import PromptRequest
from .provider_result import FailureReason, ProviderFailure, ProviderResult, ProviderSuccess
from .store_results import ConversationPage, LookupResult, SaveResult

__all__ = [
    "AggregateResponse",
    "CacheMatch",
    "ConversationPage",
    "ConversationRecord",
    "FailureReason",
    "LookupResult",
    "MatchMethod",
    "PromptRequest",
    "ProviderFailure",
    "ProviderResult",
    "ProviderSuccess",
    "SaveResult",
]
