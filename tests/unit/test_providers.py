"""Tests for provider adapters and the breaker-guarded wrapper.

Verifies:
- A request exceeding the timeout raises ProviderTimeoutError and counts as a breaker failure
- Once the breaker opens the provider is not contacted
- The OpenAI-compatible adapter returns reply text verbatim and maps HTTP failures
"""

import asyncio
import json

import httpx
import pytest

from maeple_ingest.config.domains import ProviderConfig
from maeple_ingest.core.errors.provider import (
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from maeple_ingest.core.errors.resilience import CircuitOpenError
from maeple_ingest.core.providers import GuardedProvider, OpenAICompatibleProvider, TextCompletionProvider
from maeple_ingest.core.resilience import CircuitBreaker, CircuitState


class ScriptedProvider:
    """Provider double that replies, hangs or fails on demand."""

    name = "scripted"

    def __init__(self, reply="{}", delay=0.0, error=None):
        self.reply = reply
        self.delay = delay
        self.error = error
        self.calls = 0

    async def complete_text(self, prompt):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def breaker(fake_clock, recorder):
    return CircuitBreaker(
        name="scripted",
        failure_threshold=5,
        recovery_timeout=30.0,
        clock=fake_clock.monotonic,
        reporter=recorder,
    )


class TestGuardedProvider:
    """Timeout enforcement and breaker integration."""

    def test_scripted_provider_satisfies_protocol(self):
        assert isinstance(ScriptedProvider(), TextCompletionProvider)

    @pytest.mark.asyncio
    async def test_returns_reply_text(self, breaker):
        provider = GuardedProvider(ScriptedProvider(reply='```json\n{"a": 1}\n```'), breaker)

        assert await provider.complete_text("prompt") == '```json\n{"a": 1}\n```'

    @pytest.mark.asyncio
    async def test_slow_call_times_out(self, breaker):
        provider = GuardedProvider(ScriptedProvider(delay=5.0), breaker, request_timeout=0.01)

        with pytest.raises(ProviderTimeoutError) as excinfo:
            await provider.complete_text("prompt")

        assert excinfo.value.timeout == 0.01
        assert excinfo.value.provider == "scripted"
        assert breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_open_breaker_skips_provider(self, breaker):
        scripted = ScriptedProvider(delay=5.0)
        provider = GuardedProvider(scripted, breaker, request_timeout=0.01)

        for _ in range(5):
            with pytest.raises(ProviderTimeoutError):
                await provider.complete_text("prompt")
        assert breaker.state == CircuitState.OPEN
        assert scripted.calls == 5

        with pytest.raises(CircuitOpenError) as excinfo:
            await provider.complete_text("prompt")

        assert scripted.calls == 5
        assert excinfo.value.retry_after == pytest.approx(30.0)

    @pytest.mark.asyncio
    async def test_provider_errors_count_as_failures(self, breaker):
        provider = GuardedProvider(ScriptedProvider(error=ProviderError("HTTP 503")), breaker)

        with pytest.raises(ProviderError):
            await provider.complete_text("prompt")

        assert breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_recovers_after_cool_down(self, breaker, fake_clock):
        scripted = ScriptedProvider(error=ProviderError("down"))
        provider = GuardedProvider(scripted, breaker)
        for _ in range(5):
            with pytest.raises(ProviderError):
                await provider.complete_text("prompt")

        fake_clock.advance(30.0)
        scripted.error = None

        assert await provider.complete_text("prompt") == "{}"
        assert breaker.state == CircuitState.CLOSED

    def test_from_config(self, breaker):
        provider = GuardedProvider.from_config(
            ScriptedProvider(), breaker, ProviderConfig(request_timeout=12.5)
        )

        assert provider.request_timeout == 12.5
        assert provider.name == "scripted"


def _config(**overrides):
    fields = {
        "name": "openai",
        "base_url": "https://api.example.test/v1/",
        "model": "gpt-test",
        "api_key": "sk-test",
        "request_timeout": 5.0,
    }
    fields.update(overrides)
    return ProviderConfig(**fields)


def _provider(handler, **overrides):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAICompatibleProvider(_config(**overrides), client=client)


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestOpenAICompatibleProvider:
    """Request shape and error mapping."""

    @pytest.mark.asyncio
    async def test_posts_chat_completion(self):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json=_completion("Here it is: {}"))

        text = await _provider(handler).complete_text("Analyze this entry")

        assert text == "Here it is: {}"
        request = captured[0]
        assert str(request.url) == "https://api.example.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["model"] == "gpt-test"
        assert body["messages"] == [{"role": "user", "content": "Analyze this entry"}]

    @pytest.mark.asyncio
    async def test_no_auth_header_without_key(self):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json=_completion("{}"))

        await _provider(handler, api_key=None).complete_text("x")

        assert "Authorization" not in captured[0].headers

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "rate limited"}})

        with pytest.raises(ProviderResponseError) as excinfo:
            await _provider(handler).complete_text("x")

        assert excinfo.value.status_code == 429
        assert "rate limited" in str(excinfo.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"choices": []}, {"unexpected": True}, _completion(None), _completion(["a"])],
    )
    async def test_bad_envelope(self, body):
        def handler(request):
            return httpx.Response(200, json=body)

        with pytest.raises(ProviderResponseError):
            await _provider(handler).complete_text("x")

    @pytest.mark.asyncio
    async def test_timeout_maps_to_provider_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ProviderTimeoutError):
            await _provider(handler).complete_text("x")

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderError) as excinfo:
            await _provider(handler).complete_text("x")

        assert not isinstance(excinfo.value, ProviderTimeoutError)

    @pytest.mark.parametrize("missing", ["base_url", "model"])
    def test_requires_endpoint_and_model(self, missing):
        with pytest.raises(ValueError):
            OpenAICompatibleProvider(_config(**{missing: None}))
