"""Concurrent fan-out to every configured provider."""

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

import structlog

from multi_ai.config import Settings
from multi_ai.entities import (
    AggregateResponse,
    FailureReason,
    PromptRequest,
    ProviderFailure,
    ProviderResult,
)
from multi_ai.errors import AggregateDispatchError
from multi_ai.protocols import ProviderClient

log = structlog.get_logger()


class ProviderLookup(Protocol):
    def get(self, key: str) -> ProviderClient | None: ...


@dataclass(frozen=True)
class ProviderRoute:
    """How one provider takes part in a dispatch.

    Attributes:
        key: Provider key in the aggregate mapping
        display_name: Used in the timeout message ("<display_name> timeout")
        model_label: Attributed to failures raised before the client answers
        deadline: Seconds to wait for this provider
        model_hint: Optional model override passed to the client
    """

    key: str
    display_name: str
    model_label: str
    deadline: float
    model_hint: str | None = None


async def call_with_deadline(
    client: ProviderClient,
    route: ProviderRoute,
    prompt: str,
) -> ProviderResult:
    """Run one provider call bounded by the route's deadline.

    Timeouts and exceptions become ProviderFailure values, so the caller
    always gets a result.
    """
    try:
        return await asyncio.wait_for(client.generate(prompt, route.model_hint), timeout=route.deadline)
    except TimeoutError:
        log.warning("provider_timeout", provider=route.key, deadline=route.deadline)
        return ProviderFailure(
            reason=FailureReason.TIMEOUT,
            message=f"{route.display_name} timeout",
            model_label=route.model_label,
        )
    except Exception as e:
        log.error("provider_exception", provider=route.key, error=str(e), error_type=type(e).__name__)
        return ProviderFailure(
            reason=FailureReason.UNCLASSIFIED,
            message=str(e) or f"Failed to get response from {route.display_name}",
            model_label=route.model_label,
        )


class FanoutDispatcher:
    """Send one prompt to every provider at once and collect the results.

    Each provider races its own deadline; the aggregate is produced once
    all of them have settled. A slow provider never affects another
    provider's result, and nothing is retried here.

    Example:
        ```python
        dispatcher = FanoutDispatcher.create(registry, settings)
        aggregate = await dispatcher.dispatch(PromptRequest.parse("hello"))
        aggregate.results["gemini"]
        ```
    """

    def __init__(self, routes: Sequence[ProviderRoute], registry: ProviderLookup) -> None:
        """Initialize the dispatcher.

        Args:
            routes: Providers in display order
            registry: Resolves provider keys to clients (lazily)
        """
        if not routes:
            raise ValueError("At least one provider route is required")
        self._routes = tuple(routes)
        self._registry = registry

    @classmethod
    def create(cls, registry, cfg: Settings) -> "FanoutDispatcher":
        """Factory method building routes from the registry's provider order."""
        routes = []
        for key in registry.order:
            spec = registry.spec(key)
            routes.append(
                ProviderRoute(
                    key=key,
                    display_name=spec.display_name,
                    model_label=spec.model_label,
                    deadline=cfg.deadline_for(key),
                )
            )
        return cls(routes, registry)

    @property
    def routes(self) -> tuple[ProviderRoute, ...]:
        return self._routes

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(route.key for route in self._routes)

    def _resolve_clients(self) -> list[ProviderClient]:
        clients = []
        for route in self._routes:
            try:
                client = self._registry.get(route.key)
            except Exception as e:
                raise AggregateDispatchError(f"Failed to load provider {route.key}: {e}") from e
            if client is None:
                raise AggregateDispatchError(f"Provider {route.key} is not available")
            clients.append(client)
        return clients

    async def dispatch(self, prompt: PromptRequest) -> AggregateResponse:
        """Fan the prompt out and wait for every provider to settle.

        Raises:
            AggregateDispatchError: If a provider client cannot be loaded
        """
        started = time.perf_counter()
        timestamp = datetime.now(timezone.utc)
        clients = self._resolve_clients()

        log.info("dispatch_start", prompt=prompt.preview, providers=len(clients))
        results = await asyncio.gather(
            *(call_with_deadline(client, route, prompt.text) for route, client in zip(self._routes, clients))
        )
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        aggregate = AggregateResponse(
            prompt=prompt.text,
            results=dict(zip(self.keys, results)),
            elapsed_ms=elapsed_ms,
            timestamp=timestamp,
        )
        log.info(
            "dispatch_complete",
            succeeded=aggregate.success_count,
            total=len(results),
            elapsed_ms=elapsed_ms,
        )
        return aggregate
