"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import AskRequest, ChatbotRequest, QARequest
from .responses import (
    AskResponse,
    CacheInfo,
    ChatbotResponse,
    ConversationItem,
    ConversationListResponse,
    DispatchErrorResponse,
    HealthCheckResponse,
    ProviderResponseItem,
    ProviderStatusItem,
    QAResponse,
)

__all__ = [
    "AskRequest",
    "ChatbotRequest",
    "QARequest",
    "AskResponse",
    "CacheInfo",
    "ChatbotResponse",
    "ConversationItem",
    "ConversationListResponse",
    "DispatchErrorResponse",
    "HealthCheckResponse",
    "ProviderResponseItem",
    "ProviderStatusItem",
    "QAResponse",
]
