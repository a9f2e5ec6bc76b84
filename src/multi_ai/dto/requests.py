"""Request DTOs for API endpoints.

Prompt fields are deliberately loose here; PromptRequest validates them
so that every endpoint answers bad input with the same 400 body.
"""

from typing import Any

from pydantic import BaseModel, Field


class AskRequest(BaseModel):
    """Request DTO for the multi-provider endpoint."""

    prompt: Any = Field(None, description="The prompt to send to every provider")


class ChatbotRequest(BaseModel):
    """Request DTO for the single-provider chatbot."""

    prompt: Any = Field(None, description="The chat message")


class QARequest(BaseModel):
    question: Any = Field(None, description="The question to answer")
