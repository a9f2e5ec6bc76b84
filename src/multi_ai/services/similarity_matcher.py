"""Lexical cache matching: normalization plus edit-distance similarity."""

from collections.abc import Sequence

from multi_ai.entities import CacheMatch, ConversationRecord, MatchMethod
from multi_ai.utils import normalize_prompt, similarity


class SimilarityMatcher:
    """Find a cached near-duplicate of a prompt without any network calls.

    Two passes over history (most recent first):
    1. Exact: normalized prompts are equal. The newest wins.
    2. Fuzzy: highest Levenshtein similarity at or above the threshold.
       Ties go to the first (newest) record.

    Attributes:
        fuzzy_passes: Number of fuzzy passes executed, for diagnostics
    """

    def __init__(self, threshold: float = 0.8) -> None:
        """Initialize the matcher.

        Args:
            threshold: Minimum similarity (inclusive) for a fuzzy match
        """
        if not 0 <= threshold <= 1:
            raise ValueError("Threshold must be between 0 and 1")
        self._threshold = threshold
        self.fuzzy_passes = 0

    @property
    def threshold(self) -> float:
        return self._threshold

    def find_lexical_match(
        self,
        prompt: str,
        history: Sequence[ConversationRecord],
    ) -> CacheMatch | None:
        """Look for an exact or fuzzy normalized match.

        Args:
            prompt: The new prompt
            history: Prior conversations, most recent first

        Returns:
            CacheMatch with method exact or lexical, or None
        """
        target = normalize_prompt(prompt)
        normalized = [(record, normalize_prompt(record.prompt)) for record in history]

        for record, candidate in normalized:
            if candidate == target:
                return CacheMatch(record=record, score=1.0, method=MatchMethod.EXACT)

        return self._fuzzy_pass(target, normalized)

    def _fuzzy_pass(
        self,
        target: str,
        normalized: list[tuple[ConversationRecord, str]],
    ) -> CacheMatch | None:
        self.fuzzy_passes += 1

        best: ConversationRecord | None = None
        best_score = -1.0
        for record, candidate in normalized:
            score = similarity(target, candidate)
            if score >= self._threshold and score > best_score:
                best, best_score = record, score

        if best is None:
            return None
        return CacheMatch(record=best, score=best_score, method=MatchMethod.LEXICAL)
