"""Google Gemini generateContent client."""

from typing import Any

import httpx

from .base import HTTPProviderClient, ProviderRequest

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient(HTTPProviderClient):
    name = "gemini"
    display_name = "Gemini"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = "gemini-2.5-flash-lite",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(api_key, model=model, timeout=timeout, client=client)
        self._base_url = base_url.rstrip("/")

    def label_for(self, model: str) -> str:
        return model

    def build_request(self, prompt: str, model: str, api_key: str) -> ProviderRequest:
        return ProviderRequest(
            url=f"{self._base_url}/models/{model}:generateContent",
            headers={"x-goog-api-key": api_key},
            payload={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": 0.7, "maxOutputTokens": 1000},
            },
        )

    def parse_response(self, data: Any) -> tuple[str, int | None]:
        candidates = data.get("candidates") or []
        first = candidates[0] if candidates else None
        if not isinstance(first, dict):
            return "", None
        parts = (first.get("content") or {}).get("parts") or []
        text = "".join(p.get("text") or "" for p in parts if isinstance(p, dict))
        tokens = (data.get("usageMetadata") or {}).get("totalTokenCount")
        return text, tokens if isinstance(tokens, int) else None
