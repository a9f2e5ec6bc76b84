"""OpenAI-compatible chat completions client, routed through OpenRouter.

One class serves several configured providers (OpenRouter's default
model, GLM, DeepSeek) that differ only in model, labels and an optional
instruction appended to the prompt.
"""

from typing import Any

import httpx

from .base import HTTPProviderClient, ProviderRequest

DEFAULT_API_URL = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterClient(HTTPProviderClient):
    def __init__(
        self,
        api_key: str | None = None,
        *,
        name: str = "openrouter",
        display_name: str = "OpenRouter",
        model: str = "openai/gpt-3.5-turbo",
        model_label: str | None = None,
        prompt_suffix: str = "",
        api_url: str = DEFAULT_API_URL,
        referer: str = "http://localhost:3000",
        title: str = "Multi-AI Comparison Tool",
        timeout: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(api_key, model=model, model_label=model_label, timeout=timeout, client=client)
        self.name = name
        self.display_name = display_name
        self._fixed_label = model_label is not None
        self._prompt_suffix = prompt_suffix
        self._api_url = api_url
        self._referer = referer
        self._title = title

    def label_for(self, model: str) -> str:
        if self._fixed_label:
            return self._model_label
        return f"{self.display_name} ({model})"

    @property
    def model_label(self) -> str:
        return self.label_for(self._model)

    def build_request(self, prompt: str, model: str, api_key: str) -> ProviderRequest:
        return ProviderRequest(
            url=self._api_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "HTTP-Referer": self._referer,
                "X-Title": self._title,
            },
            payload={
                "model": model,
                "messages": [{"role": "user", "content": f"{prompt}{self._prompt_suffix}"}],
                "max_tokens": 1000,
                "temperature": 0.7,
            },
        )

    def parse_response(self, data: Any) -> tuple[str, int | None]:
        choices = data.get("choices") or []
        if not choices:
            return "", None
        text = (choices[0].get("message") or {}).get("content") or ""
        tokens = (data.get("usage") or {}).get("total_tokens") or len(text.split())
        return text, tokens
