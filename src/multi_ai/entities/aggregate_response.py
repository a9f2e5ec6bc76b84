"""Aggregate response domain entity."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from .provider_result import ProviderFailure, ProviderResult, ProviderSuccess


@dataclass(frozen=True)
class AggregateResponse:
    """Outcome of one fan-out dispatch.

    Attributes:
        prompt: The trimmed prompt that was dispatched
        results: One result per configured provider, in configured order
        elapsed_ms: Wall-clock time from dispatch start to last settlement
        timestamp: When the dispatch started (UTC)
    """

    prompt: str
    results: Mapping[str, ProviderResult]
    elapsed_ms: int
    timestamp: datetime

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results.values() if isinstance(r, ProviderSuccess))

    @property
    def all_succeeded(self) -> bool:
        return self.success_count == len(self.results)

    @property
    def failures(self) -> dict[str, ProviderFailure]:
        return {k: r for k, r in self.results.items() if isinstance(r, ProviderFailure)}
