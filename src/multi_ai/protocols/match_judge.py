"""Match judge protocol.

A swappable policy that decides whether a new prompt asks the same thing
as one of a short list of earlier prompts.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class MatchJudge(Protocol):
    async def judge_match(self, prompt: str, candidates: list[str]) -> int | None:
        """Pick the equivalent candidate.

        Args:
            prompt: The new prompt
            candidates: Earlier prompts, most recent first

        Returns:
            0-based index into candidates, or None for an explicit no-match

        Raises:
            CacheLookupError: If no verdict could be obtained
        """
        ...
