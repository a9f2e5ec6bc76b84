"""HTTP handlers for the conversation endpoints.

Handlers convert between DTOs (API contracts) and service calls.
They own HTTP concerns: status codes, error envelopes and scheduling
persistence to run after the response is sent.
"""

from datetime import datetime, timezone

import structlog
from fastapi import BackgroundTasks, status
from fastapi.responses import JSONResponse

from multi_ai.dto import (
    AskRequest,
    AskResponse,
    CacheInfo,
    ChatbotRequest,
    ChatbotResponse,
    ConversationItem,
    ConversationListResponse,
    DispatchErrorResponse,
    ProviderResponseItem,
    ProviderStatusItem,
    QARequest,
    QAResponse,
)
from multi_ai.entities import ProviderSuccess
from multi_ai.errors import AggregateDispatchError
from multi_ai.services import ConversationService

log = structlog.get_logger()

CHATBOT_APOLOGY = "Sorry, I am having trouble responding right now. Please try again."
CHATBOT_ERROR = "Sorry, I encountered an error. Please try again later."


def _elapsed(started: datetime) -> str:
    ms = int((datetime.now(timezone.utc) - started).total_seconds() * 1000)
    return f"{ms}ms"


class AskHandler:
    """HTTP handlers for the ask, chatbot, Q&A and history endpoints.

    InvalidInputError is left to propagate; the app maps it to 400.

    Example:
        ```python
        handler = AskHandler(conversation_service=service)

        @app.post("/api/ask")
        async def ask(request: AskRequest, background_tasks: BackgroundTasks):
            return await handler.ask(request, background_tasks)
        ```
    """

    def __init__(self, conversation_service: ConversationService) -> None:
        """Initialize the handler.

        Args:
            conversation_service: The service for business logic (required).
        """
        self._service = conversation_service

    def _dispatch_error(self, error: Exception, started: datetime) -> JSONResponse:
        body = DispatchErrorResponse(
            message=str(error),
            processing_time=_elapsed(started),
            responses={
                route.key: ProviderResponseItem(success=False, error="Request failed", model=route.display_name)
                for route in self._service.routes
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(by_alias=True, exclude_none=True),
        )

    async def ask(self, request: AskRequest, background_tasks: BackgroundTasks) -> AskResponse | JSONResponse:
        """Handle POST /api/ask requests."""
        started = datetime.now(timezone.utc)
        try:
            outcome = await self._service.ask(request.prompt)
        except AggregateDispatchError as e:
            log.error("dispatch_failed", error=str(e))
            return self._dispatch_error(e, started)

        if outcome.cache_match is not None:
            record = outcome.cache_match.record
            return AskResponse(
                prompt=record.prompt,
                processing_time="0ms (cached)",
                timestamp=started,
                responses={key: ProviderResponseItem(**entry) for key, entry in (record.responses or {}).items()},
                cache=CacheInfo(method=outcome.cache_match.method.value, score=outcome.cache_match.score),
            )

        aggregate = outcome.aggregate
        background_tasks.add_task(self._service.remember, aggregate)
        return AskResponse(
            prompt=aggregate.prompt,
            processing_time=f"{aggregate.elapsed_ms}ms",
            timestamp=aggregate.timestamp,
            responses={key: ProviderResponseItem.from_result(r) for key, r in aggregate.results.items()},
        )

    async def chat(self, request: ChatbotRequest, background_tasks: BackgroundTasks) -> ChatbotResponse | JSONResponse:
        """Handle POST /api/chatbot requests."""
        started = datetime.now(timezone.utc)
        try:
            outcome = await self._service.chat(request.prompt)
        except AggregateDispatchError as e:
            log.error("chatbot_failed", error=str(e))
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"success": False, "message": CHATBOT_ERROR, "error": str(e)},
            )

        result = outcome.result
        processing_time = "0ms (cached)" if outcome.cached else f"{outcome.elapsed_ms}ms"
        if isinstance(result, ProviderSuccess):
            background_tasks.add_task(self._service.remember_chat, outcome)
            return ChatbotResponse(
                success=True,
                message=result.text,
                model=result.model_label,
                processing_time=processing_time,
                timestamp=outcome.timestamp,
                cached=outcome.cached,
            )

        # Failed runs are not saved
        return ChatbotResponse(
            success=False,
            message=CHATBOT_APOLOGY,
            model=result.model_label,
            processing_time=processing_time,
            timestamp=outcome.timestamp,
            error=result.message,
        )

    async def answer(self, request: QARequest, background_tasks: BackgroundTasks) -> QAResponse | JSONResponse:
        """Handle POST /api/qa/ask requests."""
        try:
            outcome = await self._service.answer_question(request.question)
        except AggregateDispatchError as e:
            log.error("qa_failed", error=str(e))
            return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e)})

        background_tasks.add_task(self._service.remember_answer, outcome)
        return QAResponse(answer=outcome.answer, cached=outcome.cached)

    def provider_status(self) -> dict[str, ProviderStatusItem]:
        """Handle GET /api/status requests."""
        return {key: ProviderStatusItem(**item) for key, item in self._service.provider_status().items()}

    async def conversations(self, page: int, limit: int, type: str | None) -> ConversationListResponse:
        """Handle GET /api/conversations requests. Always succeeds."""
        result = await self._service.history(page=page, limit=limit, type=type)
        if result.error:
            log.warning("conversations_unavailable", error=result.error)
        return ConversationListResponse(
            data=[ConversationItem.from_record(r) for r in result.data],
            total=result.total,
            page=max(page, 1),
            limit=max(1, min(limit, 100)),
        )

