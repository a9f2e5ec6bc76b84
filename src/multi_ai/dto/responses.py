"""Response DTOs for API endpoints.

Field names follow the wire format the web client consumes, so several
fields are camelCase aliases.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from multi_ai.entities import ConversationRecord, ProviderResult, ProviderSuccess


class ProviderResponseItem(BaseModel):
    """One provider's entry in the responses mapping."""

    success: bool = Field(..., description="Whether the provider produced an answer")
    response: str | None = Field(None, description="Answer text (success only)")
    error: str | None = Field(None, description="Failure message (failure only)")
    model: str = Field(..., description="Model label for attribution")
    tokens: int | None = Field(None, description="Token usage when the provider reports it")

    @classmethod
    def from_result(cls, result: ProviderResult) -> "ProviderResponseItem":
        if isinstance(result, ProviderSuccess):
            return cls(success=True, response=result.text, model=result.model_label, tokens=result.token_count)
        return cls(success=False, error=result.message, model=result.model_label)


class CacheInfo(BaseModel):
    method: str = Field(..., description="Lookup tier that matched: exact, lexical, ai-judged, embedding")
    score: float = Field(..., description="Similarity score reported by that tier", ge=0.0, le=1.0)


class AskResponse(BaseModel):
    """Response DTO for POST /api/ask (fresh or cached)."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(..., description="The prompt that was answered")
    processing_time: str = Field(..., alias="processingTime", description='e.g. "1234ms" or "0ms (cached)"')
    timestamp: datetime = Field(..., description="When the answer was produced (UTC)")
    responses: dict[str, ProviderResponseItem] = Field(..., description="One entry per provider, in configured order")
    cache: CacheInfo | None = Field(None, description="Present only when served from cache")


class DispatchErrorResponse(BaseModel):
    """500 envelope returned when the dispatch machinery itself fails."""

    model_config = ConfigDict(populate_by_name=True)

    error: str = "Failed to process AI requests"
    message: str
    processing_time: str = Field(..., alias="processingTime")
    responses: dict[str, ProviderResponseItem]


class ChatbotResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str = Field(..., description="Answer text, or an apology on failure")
    model: str
    processing_time: str = Field(..., alias="processingTime")
    timestamp: datetime
    cached: bool = False
    error: str | None = None


class QAResponse(BaseModel):
    answer: str
    cached: bool


class ProviderStatusItem(BaseModel):
    configured: bool = Field(..., description="Whether credentials are present")
    model: str = Field(..., description="Model label")


class ConversationItem(BaseModel):
    """One stored conversation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str
    prompt: str
    created_at: datetime = Field(..., alias="createdAt")
    response: str | None = None
    responses: dict[str, dict[str, Any]] | None = None
    model: str | None = None
    processing_time_ms: int | None = Field(None, alias="processingTimeMs")
    error: str | None = None

    @classmethod
    def from_record(cls, record: ConversationRecord) -> "ConversationItem":
        return cls(
            id=record.id,
            type=record.type,
            prompt=record.prompt,
            created_at=record.created_at,
            response=record.response,
            responses=record.responses,
            model=record.model,
            processing_time_ms=record.processing_time_ms,
            error=record.error,
        )


class ConversationListResponse(BaseModel):
    data: list[ConversationItem] = Field(default_factory=list)
    total: int = Field(0, ge=0)
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'OK' or 'degraded'")
    timestamp: datetime
    store: str = Field(..., description="'connected', 'disconnected' or 'disabled'")
    providers: int = Field(..., description="Number of configured providers", ge=0)
