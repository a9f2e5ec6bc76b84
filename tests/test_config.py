"""Tests for settings validation and credential pools."""

import pytest

from multi_ai.config import DEFAULT_DEADLINES, Settings, build_credential_pool


def test_credential_pool_puts_unpooled_primary_first():
    assert build_credential_pool("key-a", ["key-b", "key-c"]) == ("key-a", "key-b", "key-c")


def test_credential_pool_keeps_pooled_primary_in_place():
    assert build_credential_pool("key-b", ["key-a", "key-b"]) == ("key-a", "key-b")
    assert build_credential_pool("key-a", ["key-b", "key-a", "key-c", "key-b"]) == ("key-b", "key-a", "key-c")


def test_credential_pool_splits_delimited_primary():
    assert build_credential_pool("key-a, key-b", ["key-c"]) == ("key-a", "key-b", "key-c")
    assert build_credential_pool("key-a, key-c", ["key-c"]) == ("key-a", "key-c")


def test_credential_pool_drops_placeholders_and_blanks():
    assert build_credential_pool("your-api-key-here", ["", "key-b"]) == ("key-b",)
    assert build_credential_pool(None) == ()


def test_default_deadlines():
    cfg = Settings(provider_deadlines=dict(DEFAULT_DEADLINES))

    assert cfg.deadline_for("gemini") == 30.0
    assert cfg.deadline_for("glm") == 300.0
    assert cfg.deadline_for("unknown") == 60.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"lexical_similarity_threshold": 1.2},
        {"embedding_similarity_threshold": -0.1},
        {"embedding_backend": "faiss"},
        {"provider_deadlines": {"gemini": 0}},
        {"providers": ()},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValueError):
        Settings(**overrides)


def test_persistence_follows_redis_url():
    assert Settings(redis_url=None).persistence_enabled is False
    assert Settings(redis_url="redis://localhost:6379").persistence_enabled is True


def test_secrets_include_rotated_keys():
    cfg = Settings(openrouter_api_key="or-primary", openrouter_api_keys=("or-spare",), gemini_api_key="g-key")

    assert {"or-primary", "or-spare", "g-key"} <= set(cfg.secrets)
