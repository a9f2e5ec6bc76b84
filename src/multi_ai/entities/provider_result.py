"""Provider result domain entities."""

from dataclasses import dataclass
from enum import Enum


class FailureReason(str, Enum):
    """Why a provider call did not produce usable text."""

    AUTH_FAILURE = "auth_failure"
    RATE_LIMITED = "rate_limited"
    MALFORMED_REQUEST = "malformed_request"
    EMPTY_RESPONSE = "empty_response"
    TIMEOUT = "timeout"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class ProviderSuccess:
    """A provider returned non-empty text.

    Attributes:
        text: The cleaned response text
        model_label: Display name of the model that answered
        token_count: Tokens reported (or estimated) for the call, if known
    """

    text: str
    model_label: str
    token_count: int | None = None

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class ProviderFailure:
    """A provider call failed in an expected, classified way.

    Attributes:
        reason: The failure category
        message: Human-readable error shown to the user
        model_label: Display name of the provider's model, for attribution
    """

    reason: FailureReason
    message: str
    model_label: str

    @property
    def success(self) -> bool:
        return False


ProviderResult = ProviderSuccess | ProviderFailure
