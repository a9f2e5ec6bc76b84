"""Shared HTTP plumbing for provider clients.

Every concrete client builds one POST request and parses one JSON
payload; this base class owns the transport, the status-code taxonomy
and the post-processing that turns a payload into a ProviderResult.
"""

import re
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from multi_ai.entities import FailureReason, ProviderFailure, ProviderResult, ProviderSuccess
from multi_ai.utils import strip_bullet_markers

log = structlog.get_logger()

_RATE_LIMIT_RE = re.compile(r"rate limit|credits", re.IGNORECASE)


@dataclass(frozen=True)
class ProviderRequest:
    """One outbound provider call."""

    url: str
    payload: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


def classify_status(status_code: int, message: str = "") -> FailureReason:
    """Map an HTTP error status (and provider message) to a failure reason."""
    if status_code == 429 or _RATE_LIMIT_RE.search(message or ""):
        return FailureReason.RATE_LIMITED
    if status_code in (401, 403):
        return FailureReason.AUTH_FAILURE
    if 400 <= status_code < 500:
        return FailureReason.MALFORMED_REQUEST
    return FailureReason.UNCLASSIFIED


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if data.get("message"):
            return str(data["message"])
    return response.text[:200]


class HTTPProviderClient:
    """Base class for single-round-trip JSON provider clients.

    Subclasses implement ``build_request`` and ``parse_response``. The HTTP
    client is created lazily on first use unless one is injected.
    """

    name = "provider"
    display_name = "Provider"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str,
        model_label: str | None = None,
        timeout: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider client.

        Args:
            api_key: Default credential (may be None if always rotated in)
            model: Default model identifier sent to the provider
            model_label: Display name for attribution. Defaults to model.
            timeout: Transport timeout in seconds; dispatch deadlines are
                usually shorter and take precedence.
            client: Pre-built httpx client (tests use a MockTransport)
        """
        self._api_key = api_key
        self._model = model
        self._model_label = model_label or model
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @property
    def model_label(self) -> str:
        return self._model_label

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def label_for(self, model: str) -> str:
        """Display label for a specific model (defaults to the client label)."""
        return self._model_label

    def build_request(self, prompt: str, model: str, api_key: str) -> ProviderRequest:
        raise NotImplementedError

    def parse_response(self, data: Any) -> tuple[str, int | None]:
        """Extract (text, token_count) from a success payload."""
        raise NotImplementedError

    def _failure(self, reason: FailureReason, message: str, model: str) -> ProviderFailure:
        return ProviderFailure(reason=reason, message=message, model_label=self.label_for(model))

    def _failure_for_status(self, response: httpx.Response, model: str) -> ProviderFailure:
        message = _error_message(response)
        reason = classify_status(response.status_code, message)

        if reason is FailureReason.RATE_LIMITED:
            text = "Rate limit exceeded. Please try again later."
        elif reason is FailureReason.AUTH_FAILURE:
            text = f"{self.display_name} authentication failed: {message or 'check your API key'}"
        elif reason is FailureReason.MALFORMED_REQUEST:
            text = "Invalid request. Please check your prompt."
        else:
            text = message or f"Failed to get response from {self.display_name}"
        return self._failure(reason, text, model)

    async def generate(
        self,
        prompt: str,
        model_hint: str | None = None,
        *,
        api_key: str | None = None,
    ) -> ProviderResult:
        """Send the prompt and normalize the answer.

        Raises:
            httpx.TransportError: Network failures are not classified here
        """
        model = model_hint or self._model
        key = api_key or self._api_key
        if not key:
            return self._failure(
                FailureReason.AUTH_FAILURE, f"{self.display_name} API key not configured", model
            )

        request = self.build_request(prompt, model, key)
        log.debug("provider_call", provider=self.name, model=model)
        response = await self.client.post(
            request.url,
            json=request.payload,
            headers=request.headers,
        )

        if response.status_code >= 400:
            failure = self._failure_for_status(response, model)
            log.warning(
                "provider_error",
                provider=self.name,
                status=response.status_code,
                reason=failure.reason.value,
                key_tail=key[-6:],
            )
            return failure

        try:
            data = response.json()
        except ValueError:
            return self._failure(
                FailureReason.UNCLASSIFIED, f"Invalid JSON received from {self.display_name}", model
            )

        if not isinstance(data, dict):
            return self._failure(
                FailureReason.UNCLASSIFIED, f"Unexpected response format from {self.display_name}", model
            )

        try:
            text, tokens = self.parse_response(data)
        except (AttributeError, IndexError, KeyError, TypeError):
            return self._failure(
                FailureReason.UNCLASSIFIED, f"Unexpected response format from {self.display_name}", model
            )
        text = strip_bullet_markers(text if isinstance(text, str) else "")
        if not text:
            return self._failure(
                FailureReason.EMPTY_RESPONSE, f"No response text received from {self.display_name}", model
            )
        return ProviderSuccess(text=text, model_label=self.label_for(model), token_count=tokens)

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
