"""Tests for log redaction."""

import logging

import httpx
import pytest
import structlog

from multi_ai.logging import _make_redaction_processor, configure_logging
from multi_ai.providers import GeminiClient
from multi_ai.repositories import GeminiEmbeddingProvider


@pytest.fixture
def configured_logging():
    yield configure_logging
    structlog.reset_defaults()
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_redacts_configured_secrets_and_sensitive_fields():
    processor = _make_redaction_processor(secrets=["sk-live-abcdef123456"])

    event = processor(
        None,
        "info",
        {
            "event": "provider_error",
            "detail": "call failed with key sk-live-abcdef123456",
            "api_key": "anything",
            "header": "Bearer abcdef0123456789",
            "key_tail": "123456",
        },
    )

    assert "sk-live-abcdef123456" not in event["detail"]
    assert event["api_key"] == "[REDACTED]"
    assert event["header"] == "Bearer [REDACTED]"
    assert event["key_tail"] == "123456"


def test_http_client_loggers_are_held_at_warning(configured_logging):
    configured_logging("DEBUG", secrets=["s3cret-key-value"])

    assert logging.getLogger("httpx").getEffectiveLevel() == logging.WARNING
    assert logging.getLogger("httpcore").getEffectiveLevel() == logging.WARNING


@pytest.mark.asyncio
async def test_gemini_keys_never_reach_log_output(configured_logging, caplog):
    secret = "SUPERSECRETKEY123"
    configured_logging(secrets=[secret])
    caplog.set_level(logging.DEBUG)

    def handler(request: httpx.Request) -> httpx.Response:
        assert secret not in str(request.url)
        if request.url.path.endswith(":embedContent"):
            return httpx.Response(200, json={"embedding": {"values": [0.5]}})
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "hi"}]}}]})

    transport = httpx.MockTransport(handler)
    client = GeminiClient(secret, client=httpx.AsyncClient(transport=transport))
    embeddings = GeminiEmbeddingProvider(
        secret, base_url="https://example.test/v1beta", client=httpx.AsyncClient(transport=transport)
    )

    await client.generate("hello")
    await embeddings.encode("hello")

    assert secret not in caplog.text
