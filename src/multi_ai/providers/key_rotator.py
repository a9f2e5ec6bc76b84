"""Credential rotation for providers with several interchangeable keys."""

from collections.abc import Sequence

import structlog

from multi_ai.entities import FailureReason, ProviderResult, ProviderSuccess
from multi_ai.protocols import ProviderClient

log = structlog.get_logger()


class KeyRotator:
    """Wrap a ProviderClient and try each credential in order.

    Rotation happens only on auth and rate-limit failures. Any other
    failure is returned at once, since a different key would not change
    the outcome. When every key is exhausted the last failure is returned.

    Example:
        ```python
        client = OpenRouterClient(name="glm", model="z-ai/glm-4.5-air:free")
        rotated = KeyRotator(client, credentials=("key-a", "key-b"))
        result = await rotated.generate("hello")
        ```
    """

    ROTATE_ON = frozenset({FailureReason.AUTH_FAILURE, FailureReason.RATE_LIMITED})

    def __init__(self, client: ProviderClient, credentials: Sequence[str]) -> None:
        """Initialize the rotator.

        Args:
            client: The provider client to call with each key
            credentials: Keys in priority order, already de-duplicated
        """
        self._client = client
        self._credentials = tuple(credentials)

    @property
    def name(self) -> str:
        return self._client.name

    @property
    def model_label(self) -> str:
        return self._client.model_label

    @property
    def credentials(self) -> tuple[str, ...]:
        return self._credentials

    async def generate(
        self,
        prompt: str,
        model_hint: str | None = None,
        *,
        api_key: str | None = None,
    ) -> ProviderResult:
        keys = (api_key,) if api_key else self._credentials
        if not keys:
            return await self._client.generate(prompt, model_hint)

        result: ProviderResult
        for position, key in enumerate(keys, start=1):
            result = await self._client.generate(prompt, model_hint, api_key=key)
            if isinstance(result, ProviderSuccess):
                if position > 1:
                    log.info("key_rotation_recovered", provider=self.name, attempt=position, key_tail=key[-6:])
                return result

            if result.reason not in self.ROTATE_ON:
                return result
            log.warning(
                "key_rotation_advance",
                provider=self.name,
                attempt=position,
                reason=result.reason.value,
                key_tail=key[-6:],
            )

        # Every key was rejected; surface the last failure
        return result

    async def close(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()
