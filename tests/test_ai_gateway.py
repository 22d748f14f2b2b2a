"""Tests for the AI gateway failover chain and backend switching."""

import asyncio

import pytest

from property_scout.ai.backends import OllamaBackend
from property_scout.ai.gateway import AIGateway
from property_scout.config.settings import AIConfig, RetryConfig
from property_scout.error_handling.exceptions import (
    AIBackendUnavailable,
    BackendConnectionError,
    BackendHTTPError,
)
from tests.fakes import FakeBackend


NO_WAIT = RetryConfig(max_retries=3, initial_timeout_ms=1000, backoff_base_seconds=0)


def make_gateway(*backends, preferred=None):
    return AIGateway(backends=list(backends), retry_config=NO_WAIT, preferred_backend=preferred)


def test_rate_limited_primary_fails_over_to_next_backend():
    primary = FakeBackend("groq", [BackendHTTPError("groq", 429, "rate limited")])
    local = FakeBackend("ollama", ["from ollama"])
    gateway = make_gateway(primary, local)

    result = asyncio.run(gateway.complete("hello", "system"))

    assert result == "from ollama"
    assert primary.calls == 3
    assert local.calls == 1
    assert gateway.last_backend == "ollama"


def test_fatal_error_is_not_retried_within_backend():
    primary = FakeBackend("groq", [BackendHTTPError("groq", 401, "bad key")])
    local = FakeBackend("ollama", ["ok"])
    gateway = make_gateway(primary, local)

    assert asyncio.run(gateway.complete("hello")) == "ok"
    assert primary.calls == 1


def test_transient_error_recovers_on_same_backend():
    primary = FakeBackend("groq", [BackendConnectionError("groq", "reset"), "second try"])
    local = FakeBackend("ollama", ["unused"])
    gateway = make_gateway(primary, local)

    assert asyncio.run(gateway.complete("hello")) == "second try"
    assert primary.calls == 2
    assert local.calls == 0


def test_exhausted_chain_surfaces_first_error():
    first = BackendHTTPError("groq", 401, "bad key")
    gateway = make_gateway(
        FakeBackend("groq", [first]),
        FakeBackend("claude", [BackendHTTPError("claude", 400, "bad request")]),
    )

    with pytest.raises(AIBackendUnavailable) as exc_info:
        asyncio.run(gateway.complete("hello"))

    assert exc_info.value.original_error is first


def test_no_configured_backend_is_unavailable():
    gateway = make_gateway(FakeBackend("groq", configured=False))

    with pytest.raises(AIBackendUnavailable):
        asyncio.run(gateway.complete("hello"))


def test_unconfigured_backends_are_skipped():
    skipped = FakeBackend("groq", configured=False)
    gateway = make_gateway(skipped, FakeBackend("claude", ["from claude"]))

    assert asyncio.run(gateway.complete("hello")) == "from claude"
    assert skipped.calls == 0


def test_history_is_passed_before_prompt():
    backend = FakeBackend("groq", ["ok"])
    gateway = make_gateway(backend)
    history = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]

    asyncio.run(gateway.complete("find land", "be brief", history))

    assert backend.last_messages == history + [{"role": "user", "content": "find land"}]
    assert backend.last_system_prompt == "be brief"


def test_pinned_backend_goes_first():
    gateway = make_gateway(FakeBackend("groq"), FakeBackend("ollama"), FakeBackend("claude"), preferred="claude")

    assert [b.name for b in gateway.chain()] == ["claude", "groq", "ollama"]
    assert gateway.current_backend_info() == {"backend": "claude", "model": "fake-model", "pinned": True}


def test_health_is_cached_until_reset():
    groq = FakeBackend("groq", reachable=False)
    ollama = FakeBackend("ollama")
    gateway = make_gateway(groq, ollama)

    health = asyncio.run(gateway.check_health())
    asyncio.run(gateway.check_health())

    assert health.available
    assert health.backend == "ollama"
    assert health.probes == {"groq": False, "ollama": True}
    assert ollama.probes == 1

    gateway.reset_health()
    asyncio.run(gateway.check_health())
    assert ollama.probes == 2


def test_health_unavailable_when_nothing_reachable():
    gateway = make_gateway(FakeBackend("groq", reachable=False), FakeBackend("claude", configured=False))

    health = asyncio.run(gateway.check_health())

    assert not health.available
    assert health.backend is None


def test_switch_to_unknown_backend_is_rejected():
    gateway = make_gateway(FakeBackend("groq"))

    result = asyncio.run(gateway.switch_backend("gpt"))

    assert not result.success
    assert gateway.preferred_backend is None


def test_switch_to_unreachable_backend_leaves_state_untouched():
    gateway = make_gateway(FakeBackend("groq"), FakeBackend("ollama", reachable=False), preferred="groq")

    result = asyncio.run(gateway.switch_backend("ollama"))

    assert not result.success
    assert gateway.preferred_backend == "groq"


def test_switch_requires_known_model():
    ollama = FakeBackend("ollama", models=["llama3.3:latest", "qwen2.5:7b"])
    gateway = make_gateway(FakeBackend("groq"), ollama)

    missing = asyncio.run(gateway.switch_backend("ollama", "mistral"))
    assert not missing.success
    assert ollama.model == "fake-model"

    switched = asyncio.run(gateway.switch_backend("ollama", "llama3.3"))
    assert switched.success
    assert ollama.model == "llama3.3"
    assert gateway.preferred_backend == "ollama"
    assert gateway.chain()[0] is ollama


def test_switch_resets_cached_health():
    gateway = make_gateway(FakeBackend("groq"), FakeBackend("ollama"))
    asyncio.run(gateway.check_health())

    asyncio.run(gateway.switch_backend("ollama"))

    assert asyncio.run(gateway.check_health()).backend == "ollama"


def test_list_backends_reports_every_backend():
    gateway = make_gateway(FakeBackend("groq", configured=False), FakeBackend("ollama"))

    statuses = asyncio.run(gateway.list_backends())

    assert [s.name for s in statuses] == ["groq", "ollama"]
    assert not statuses[0].configured and not statuses[0].available
    assert statuses[1].available and statuses[1].active


def test_ollama_flattens_history_into_prompt():
    messages = [
        {"role": "user", "content": "land near Sintra"},
        {"role": "assistant", "content": "Found 3 plots"},
        {"role": "user", "content": "which is cheapest?"},
    ]

    prompt = OllamaBackend.flatten(messages)

    assert prompt == (
        "Previous conversation:\nuser: land near Sintra\nassistant: Found 3 plots"
        "\n\nuser: which is cheapest?"
    )
    assert OllamaBackend.flatten(messages[-1:]) == "which is cheapest?"


def test_groq_requires_gsk_key():
    from property_scout.ai.backends import GroqBackend

    assert not GroqBackend(AIConfig(groq_api_key="")).is_configured()
    assert not GroqBackend(AIConfig(groq_api_key="sk-wrong")).is_configured()
    assert GroqBackend(AIConfig(groq_api_key="gsk_123")).is_configured()
