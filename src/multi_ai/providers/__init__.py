"""Provider layer: HTTP clients for each LLM API.

Every client satisfies the ProviderClient protocol. Clients are built
lazily by the ProviderRegistry; providers with several keys are wrapped
in a KeyRotator.
"""

from .base import HTTPProviderClient, ProviderRequest, classify_status
from .cohere import CohereClient
from .factory import ProviderRegistry, ProviderSpec, builtin_specs
from .gemini import GeminiClient
from .key_rotator import KeyRotator
from .openrouter import OpenRouterClient

__all__ = [
    "CohereClient",
    "GeminiClient",
    "HTTPProviderClient",
    "KeyRotator",
    "OpenRouterClient",
    "ProviderRegistry",
    "ProviderRequest",
    "ProviderSpec",
    "builtin_specs",
    "classify_status",
]
