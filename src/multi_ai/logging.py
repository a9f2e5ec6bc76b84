"""structlog setup with redaction of provider credentials."""

from __future__ import annotations

import logging
import re
from typing import Any

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

_SENSITIVE_KEYS = {"api_key", "authorization", "x-goog-api-key", "password", "redis_password"}

_BEARER_RE = re.compile(r"(?i)\bBearer\s+([A-Za-z0-9._-]{6,})")

# These log full request URLs at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")


def _redact(value: Any, secrets: list[str]) -> Any:
    if isinstance(value, str):
        for secret in secrets:
            value = value.replace(secret, "[REDACTED]")
        return _BEARER_RE.sub("Bearer [REDACTED]", value)
    if isinstance(value, list):
        return [_redact(v, secrets) for v in value]
    if isinstance(value, dict):
        return {
            k: "[REDACTED]" if str(k).lower() in _SENSITIVE_KEYS else _redact(v, secrets)
            for k, v in value.items()
        }
    return value


def _make_redaction_processor(*, secrets: list[str]) -> Processor:
    secrets = [s for s in secrets if s]

    def _processor(_logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
        return _redact(event_dict, secrets)

    return _processor


def configure_logging(level: str = "INFO", fmt: str = "console", *, secrets: list[str] | None = None) -> None:
    """Configure structlog once per process.

    Provider keys are only ever logged as a ``key_tail``; the redaction
    processor masks any full key that slips into an event anyway. The
    stdlib ``httpx`` loggers bypass structlog, so they are held at WARNING.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if secrets:
        processors.append(_make_redaction_processor(secrets=secrets))
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )
