"""Prompt request domain entity."""

from dataclasses import dataclass
from typing import Any

from multi_ai.errors import InvalidInputError


@dataclass(frozen=True)
class PromptRequest:
    """A validated user prompt.

    Created once at request ingress and read by every downstream component.

    Attributes:
        text: The prompt, trimmed and guaranteed non-empty
    """

    text: str

    def __post_init__(self) -> None:
        if not isinstance(self.text, str) or not self.text.strip():
            raise InvalidInputError("Invalid prompt. Please provide a non-empty string.")
        if self.text != self.text.strip():
            object.__setattr__(self, "text", self.text.strip())

    @classmethod
    def parse(cls, raw: Any) -> "PromptRequest":
        """Validate untrusted input and build a PromptRequest.

        Args:
            raw: Whatever arrived in the request body

        Returns:
            PromptRequest holding the trimmed text

        Raises:
            InvalidInputError: If raw is absent, not a string, or blank
        """
        if raw is None or not isinstance(raw, str):
            raise InvalidInputError("Invalid prompt. Please provide a non-empty string.")
        return cls(text=raw)

    @property
    def preview(self) -> str:
        """First 50 characters, for log lines."""
        return self.text if len(self.text) <= 50 else f"{self.text[:50]}..."
