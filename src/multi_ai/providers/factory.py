"""Lazy provider registry.

Provider clients are described up front (key, labels, deadline) but only
constructed on first use, once per process.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass

import structlog

from multi_ai.config import Settings
from multi_ai.errors import ConfigurationError
from multi_ai.protocols import ProviderClient

from .cohere import CohereClient
from .gemini import GeminiClient
from .key_rotator import KeyRotator
from .openrouter import OpenRouterClient

log = structlog.get_logger()

GLM_SUFFIX = "\n\nPlease provide a concise answer in 400-1000 words. Be thorough but brief."


@dataclass(frozen=True)
class ProviderSpec:
    """Static description of a configured provider.

    Attributes:
        key: Provider key used in responses (e.g. "gemini")
        display_name: Human name used in timeout messages
        model_label: Model name shown when the provider fails before answering
        configured: Whether credentials are present
        build: Zero-argument constructor for the client
    """

    key: str
    display_name: str
    model_label: str
    configured: bool
    build: Callable[[], ProviderClient]


def _with_rotation(client: ProviderClient, credentials: tuple[str, ...]) -> ProviderClient:
    if len(credentials) > 1:
        return KeyRotator(client, credentials)
    return client


def builtin_specs(cfg: Settings) -> dict[str, ProviderSpec]:
    """Describe every provider this service knows how to call."""
    openrouter_keys = cfg.openrouter_credentials
    primary = openrouter_keys[0] if openrouter_keys else None

    def openrouter(name: str, display_name: str, model: str, label: str | None, suffix: str = ""):
        def build() -> ProviderClient:
            client = OpenRouterClient(
                primary,
                name=name,
                display_name=display_name,
                model=model,
                model_label=label,
                prompt_suffix=suffix,
                api_url=cfg.openrouter_api_url,
                referer=cfg.frontend_url,
                title=cfg.app_title,
            )
            return _with_rotation(client, openrouter_keys)

        return build

    return {
        "gemini": ProviderSpec(
            key="gemini",
            display_name="Gemini",
            model_label="gemini-2.5-flash-lite",
            configured=bool(cfg.gemini_api_key),
            build=lambda: GeminiClient(cfg.gemini_api_key, base_url=cfg.gemini_base_url),
        ),
        "cohere": ProviderSpec(
            key="cohere",
            display_name="Cohere",
            model_label="Cohere Command",
            configured=bool(cfg.cohere_api_key),
            build=lambda: CohereClient(cfg.cohere_api_key, api_url=cfg.cohere_api_url),
        ),
        "openrouter": ProviderSpec(
            key="openrouter",
            display_name="OpenRouter",
            model_label="OpenRouter (openai/gpt-3.5-turbo)",
            configured=bool(openrouter_keys),
            build=openrouter("openrouter", "OpenRouter", "openai/gpt-3.5-turbo", None),
        ),
        "glm": ProviderSpec(
            key="glm",
            display_name="GLM 4.5",
            model_label="GLM 4.5 Air",
            configured=bool(openrouter_keys),
            build=openrouter("glm", "GLM 4.5", "z-ai/glm-4.5-air:free", "GLM 4.5 Air", GLM_SUFFIX),
        ),
        "deepseek": ProviderSpec(
            key="deepseek",
            display_name="DeepSeek 3.1",
            model_label="DeepSeek Chat 3.1",
            configured=bool(openrouter_keys),
            build=openrouter("deepseek", "DeepSeek 3.1", "deepseek/deepseek-chat-v3.1:free", "DeepSeek Chat 3.1"),
        ),
    }


class ProviderRegistry:
    """Resolve provider keys to lazily constructed clients.

    Example:
        ```python
        registry = ProviderRegistry.create(settings)
        client = registry.get("gemini")  # built on first call, reused after
        ```
    """

    def __init__(self, specs: Mapping[str, ProviderSpec], order: tuple[str, ...] | None = None) -> None:
        """Initialize the registry.

        Args:
            specs: Provider descriptions keyed by provider key
            order: Configured provider order. Defaults to the specs order.

        Raises:
            ConfigurationError: If order names an unknown provider
        """
        self._specs = dict(specs)
        self._order = tuple(order) if order is not None else tuple(self._specs)
        unknown = [key for key in self._order if key not in self._specs]
        if unknown:
            raise ConfigurationError(f"Unknown provider(s): {', '.join(unknown)}")
        self._clients: dict[str, ProviderClient] = {}

    @classmethod
    def create(cls, cfg: Settings) -> "ProviderRegistry":
        """Factory method building the registry from settings."""
        return cls(builtin_specs(cfg), order=cfg.providers)

    @property
    def order(self) -> tuple[str, ...]:
        return self._order

    def spec(self, key: str) -> ProviderSpec:
        try:
            return self._specs[key]
        except KeyError:
            raise ConfigurationError(f"Unknown provider: {key}") from None

    def get(self, key: str) -> ProviderClient:
        """Return the client for a provider, constructing it on first use."""
        client = self._clients.get(key)
        if client is None:
            client = self.spec(key).build()
            self._clients[key] = client
            log.info("provider_loaded", provider=key)
        return client

    async def aclose(self) -> None:
        """Close every client that was constructed."""
        for client in self._clients.values():
            close = getattr(client, "close", None)
            if close is not None:
                await close()
        self._clients.clear()
