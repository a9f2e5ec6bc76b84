from __future__ import annotations


class MultiAIError(Exception):
    """Base error for the aggregation service."""


class ConfigurationError(MultiAIError):
    pass


class InvalidInputError(MultiAIError):
    """Prompt is missing, not a string, or blank after trimming."""


class AggregateDispatchError(MultiAIError):
    """The dispatch machinery itself failed outside per-provider isolation."""


class CacheLookupError(MultiAIError):
    """A cache tier could not produce a verdict."""
