"""Cohere generate client."""

from typing import Any

import httpx

from .base import HTTPProviderClient, ProviderRequest

DEFAULT_API_URL = "https://api.cohere.ai/v1/generate"


class CohereClient(HTTPProviderClient):
    name = "cohere"
    display_name = "Cohere"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = "command",
        api_url: str = DEFAULT_API_URL,
        timeout: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(api_key, model=model, model_label="Cohere Command", timeout=timeout, client=client)
        self._api_url = api_url

    def build_request(self, prompt: str, model: str, api_key: str) -> ProviderRequest:
        return ProviderRequest(
            url=self._api_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "User-Agent": "Multi-AI-Comparison-Tool",
            },
            payload={
                "model": model,
                "prompt": prompt,
                "max_tokens": 1000,
                "temperature": 0.7,
                "k": 0,
                "stop_sequences": [],
                "return_likelihoods": "NONE",
            },
        )

    def parse_response(self, data: Any) -> tuple[str, int | None]:
        generations = data.get("generations") or []
        first = generations[0] if generations else None
        text = (first.get("text") or "") if isinstance(first, dict) else ""
        billed = (data.get("meta") or {}).get("billed_units") or {}
        counts = [billed.get("input_tokens"), billed.get("output_tokens")]
        tokens = sum(int(c) for c in counts if isinstance(c, (int, float)))
        return text, tokens
