"""Tests for concurrent provider fan-out."""

import time

import pytest

from conftest import FakeProviderClient, failure, make_dispatcher, make_registry
from multi_ai.entities import FailureReason, PromptRequest, ProviderFailure, ProviderSuccess
from multi_ai.errors import AggregateDispatchError
from multi_ai.providers import ProviderRegistry, ProviderSpec
from multi_ai.services import FanoutDispatcher, ProviderRoute


@pytest.mark.asyncio
async def test_every_provider_gets_an_entry_even_when_most_fail():
    clients = {
        "gemini": FakeProviderClient("gemini"),
        "cohere": FakeProviderClient("cohere", failure=failure(FailureReason.AUTH_FAILURE)),
        "openrouter": FakeProviderClient("openrouter", error=RuntimeError("socket closed")),
        "glm": FakeProviderClient("glm", failure=failure(FailureReason.EMPTY_RESPONSE)),
    }
    dispatcher = make_dispatcher(make_registry(clients))

    aggregate = await dispatcher.dispatch(PromptRequest.parse("  hello there  "))

    assert list(aggregate.results) == ["gemini", "cohere", "openrouter", "glm"]
    assert aggregate.prompt == "hello there"
    assert isinstance(aggregate.results["gemini"], ProviderSuccess)
    assert aggregate.success_count == 1
    assert aggregate.results["openrouter"].reason is FailureReason.UNCLASSIFIED
    assert aggregate.results["openrouter"].message == "socket closed"
    assert aggregate.results["openrouter"].model_label == "openrouter-model"


@pytest.mark.asyncio
async def test_slow_provider_times_out_without_delaying_others():
    clients = {
        "gemini": FakeProviderClient("gemini"),
        "glm": FakeProviderClient("glm", delay=5.0),
    }
    registry = make_registry(clients)
    routes = [
        ProviderRoute(key="gemini", display_name="Gemini", model_label="gemini-model", deadline=1.0),
        ProviderRoute(key="glm", display_name="GLM 4.5", model_label="GLM 4.5 Air", deadline=0.1),
    ]
    dispatcher = FanoutDispatcher(routes, registry)

    started = time.perf_counter()
    aggregate = await dispatcher.dispatch(PromptRequest.parse("hello"))
    elapsed = time.perf_counter() - started

    result = aggregate.results["glm"]
    assert isinstance(result, ProviderFailure)
    assert result.reason is FailureReason.TIMEOUT
    assert result.message == "GLM 4.5 timeout"
    assert result.model_label == "GLM 4.5 Air"
    assert isinstance(aggregate.results["gemini"], ProviderSuccess)
    assert elapsed < 1.0


@pytest.mark.asyncio
async def test_providers_run_concurrently():
    clients = {key: FakeProviderClient(key, delay=0.2) for key in ("a", "b", "c", "d")}
    dispatcher = make_dispatcher(make_registry(clients))

    started = time.perf_counter()
    aggregate = await dispatcher.dispatch(PromptRequest.parse("hello"))

    assert aggregate.all_succeeded
    assert time.perf_counter() - started < 0.6


@pytest.mark.asyncio
async def test_client_that_cannot_be_built_fails_the_dispatch():
    def broken():
        raise RuntimeError("missing module")

    registry = ProviderRegistry(
        {"gemini": ProviderSpec(key="gemini", display_name="Gemini", model_label="g", configured=True, build=broken)}
    )
    dispatcher = make_dispatcher(registry)

    with pytest.raises(AggregateDispatchError):
        await dispatcher.dispatch(PromptRequest.parse("hello"))


def test_registry_builds_clients_lazily_and_once():
    built = []

    def build():
        built.append(1)
        return FakeProviderClient("gemini")

    registry = ProviderRegistry(
        {"gemini": ProviderSpec(key="gemini", display_name="Gemini", model_label="g", configured=True, build=build)}
    )
    assert built == []

    first = registry.get("gemini")
    second = registry.get("gemini")

    assert first is second
    assert built == [1]


def test_dispatcher_requires_routes():
    with pytest.raises(ValueError):
        FanoutDispatcher([], make_registry({}))
