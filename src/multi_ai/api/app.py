from datetime import datetime, timezone
from typing import Any

from fastapi import BackgroundTasks, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from multi_ai.api.dependencies import HandlerDep, ServiceDep, lifespan
from multi_ai.config import settings
from multi_ai.dto import (
    AskRequest,
    AskResponse,
    ChatbotRequest,
    ChatbotResponse,
    ConversationListResponse,
    HealthCheckResponse,
    ProviderStatusItem,
    QARequest,
    QAResponse,
)
from multi_ai.errors import InvalidInputError

API_VERSION = "0.1.0"


async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


async def invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body."},
    )


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the FastAPI application.

    Args:
        use_lifespan: Wire services from settings on startup. Tests pass
            False and put their own service on app.state.
    """
    app = FastAPI(
        title="Multi-AI API",
        description="Send one prompt to several LLM providers, with a lexical and semantic answer cache",
        version=API_VERSION,
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=list(settings.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(InvalidInputError, invalid_input_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, invalid_body_handler)  # type: ignore[arg-type]

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Multi-AI API",
            "version": API_VERSION,
            "endpoints": {
                "ask": "/api/ask",
                "chatbot": "/api/chatbot",
                "qa": "/api/qa/ask",
                "status": "/api/status",
                "conversations": "/api/conversations",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(service: ServiceDep) -> HealthCheckResponse:
        """Health check endpoint. The API stays up when the store is down."""
        healthy = await service.health()
        if healthy is None:
            store = "disabled"
        else:
            store = "connected" if healthy else "disconnected"
        return HealthCheckResponse(
            status="degraded" if healthy is False else "OK",
            timestamp=datetime.now(timezone.utc),
            store=store,
            providers=len(service.provider_keys),
        )

    @app.post("/api/ask", response_model=AskResponse, response_model_exclude_none=True)
    async def ask(request: AskRequest, background_tasks: BackgroundTasks, handler: HandlerDep):
        """Send the prompt to every provider, or serve an equivalent cached answer."""
        return await handler.ask(request, background_tasks)

    @app.post("/api/chatbot", response_model=ChatbotResponse, response_model_exclude_none=True)
    async def chatbot(request: ChatbotRequest, background_tasks: BackgroundTasks, handler: HandlerDep):
        """Single-provider chat with exact prompt caching."""
        return await handler.chat(request, background_tasks)

    @app.post("/api/qa/ask", response_model=QAResponse)
    async def qa_ask(request: QARequest, background_tasks: BackgroundTasks, handler: HandlerDep):
        """Answer a question, reusing an earlier answer when the question embeds close enough."""
        return await handler.answer(request, background_tasks)

    @app.get("/api/status", response_model=dict[str, ProviderStatusItem])
    async def provider_status(handler: HandlerDep) -> dict[str, ProviderStatusItem]:
        """Which providers have credentials configured."""
        return handler.provider_status()

    @app.get("/api/conversations", response_model=ConversationListResponse, response_model_exclude_none=True)
    async def conversations(
        handler: HandlerDep,
        page: int = 1,
        limit: int = 20,
        type: str | None = None,
    ) -> ConversationListResponse:
        """Paginated conversation history, newest first."""
        return await handler.conversations(page=page, limit=limit, type=type)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "multi_ai.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
