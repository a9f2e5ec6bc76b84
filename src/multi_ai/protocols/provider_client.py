"""Provider client protocol.

Defines the interface for anything that can answer a prompt on behalf of
one LLM provider: a plain HTTP client, a key-rotating wrapper, or a test
double.
"""

from typing import Protocol, runtime_checkable

from multi_ai.entities import ProviderResult


@runtime_checkable
class ProviderClient(Protocol):
    """Protocol for LLM provider clients.

    Expected failures (auth, rate limit, bad request, empty answer) come
    back as ``ProviderFailure`` values. Only unclassified transport errors
    are raised.

    Example:
        ```python
        client: ProviderClient = GeminiClient(api_key="...")
        result = await client.generate("What is a semantic cache?")
        if result.success:
            print(result.text)
        ```
    """

    @property
    def name(self) -> str:
        """Return the provider key (e.g. "gemini")."""
        ...

    @property
    def model_label(self) -> str:
        """Return the display name of the model used for attribution."""
        ...

    async def generate(
        self,
        prompt: str,
        model_hint: str | None = None,
        *,
        api_key: str | None = None,
    ) -> ProviderResult:
        """Send a prompt and normalize the answer.

        Args:
            prompt: The user prompt
            model_hint: Optional provider-specific model override
            api_key: Credential to use instead of the client's default

        Returns:
            ProviderSuccess or ProviderFailure
        """
        ...
