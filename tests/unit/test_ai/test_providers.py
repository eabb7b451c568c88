from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import OpenAIError

from kasa.ai.providers import (
    FallbackProvider,
    GeminiProvider,
    GroqProvider,
    create_fallback_provider,
)
from kasa.config import Settings
from kasa.core.exceptions import ProviderConfigurationError, ProviderError


def gemini_response(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_gemini(handler) -> GeminiProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiProvider(
        api_key="test-key",
        models=["model-a", "model-b"],
        base_url="https://gemini.test/v1beta",
        client=client,
    )


async def test_gemini_returns_first_model_answer() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        assert request.headers["x-goog-api-key"] == "test-key"
        return httpx.Response(200, json=gemini_response('{"results": []}'))

    provider = make_gemini(handler)
    assert await provider.generate("prompt") == '{"results": []}'
    assert calls == ["/v1beta/models/model-a:generateContent"]


async def test_gemini_falls_through_model_list() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if "model-a" in request.url.path:
            return httpx.Response(429, json={"error": "quota"})
        return httpx.Response(200, json=gemini_response("ok"))

    provider = make_gemini(handler)
    assert await provider.generate("prompt") == "ok"
    assert len(calls) == 2


async def test_gemini_raises_when_every_model_fails() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    provider = make_gemini(handler)
    with pytest.raises(ProviderError):
        await provider.generate("prompt")


async def test_gemini_treats_missing_candidates_as_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []})

    with pytest.raises(ProviderError):
        await make_gemini(handler).generate("prompt")


async def test_gemini_treats_non_object_parts_as_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": [{"content": {"parts": ["raw"]}}]})

    with pytest.raises(ProviderError, match="All Gemini models failed"):
        await make_gemini(handler).generate("prompt")


async def test_gemini_malformed_part_falls_back_to_next_provider() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": [{"content": {"parts": ["raw"]}}]})

    backup = fake_provider("backup", result="from backup")
    provider = FallbackProvider([make_gemini(handler), backup])

    assert await provider.generate("prompt") == "from backup"
    backup.generate.assert_awaited_once_with("prompt")


async def test_gemini_unexpected_exception_tries_next_model() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if "model-a" in request.url.path:
            raise RuntimeError("transport closed")
        return httpx.Response(200, json=gemini_response("ok"))

    assert await make_gemini(handler).generate("prompt") == "ok"
    assert len(calls) == 2


def make_groq_client(content=None, error: Exception | None = None) -> MagicMock:
    client = MagicMock()
    if error is not None:
        client.chat.completions.create = AsyncMock(side_effect=error)
    else:
        message = SimpleNamespace(content=content)
        client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)])
        )
    return client


async def test_groq_returns_content() -> None:
    client = make_groq_client(content="answer")
    provider = GroqProvider(api_key="k", model="llama", base_url="https://groq.test", client=client)

    assert await provider.generate("prompt") == "answer"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "llama"
    assert kwargs["temperature"] == 0.1
    assert kwargs["max_tokens"] == 2048


async def test_groq_empty_content_is_an_error() -> None:
    provider = GroqProvider(
        api_key="k", model="llama", base_url="https://groq.test", client=make_groq_client(content="")
    )
    with pytest.raises(ProviderError):
        await provider.generate("prompt")


async def test_groq_wraps_sdk_errors() -> None:
    provider = GroqProvider(
        api_key="k",
        model="llama",
        base_url="https://groq.test",
        client=make_groq_client(error=OpenAIError("boom")),
    )
    with pytest.raises(ProviderError, match="boom"):
        await provider.generate("prompt")


def fake_provider(name: str, result: str | None = None, error: Exception | None = None):
    provider = SimpleNamespace(name=name)
    provider.generate = AsyncMock(return_value=result, side_effect=error)
    return provider


async def test_fallback_uses_secondary_after_primary_fails() -> None:
    primary = fake_provider("primary", error=ProviderError("down"))
    secondary = fake_provider("secondary", result="from secondary")

    provider = FallbackProvider([primary, secondary])

    assert await provider.generate("prompt") == "from secondary"
    primary.generate.assert_awaited_once_with("prompt")
    secondary.generate.assert_awaited_once_with("prompt")


async def test_fallback_does_not_call_secondary_on_success() -> None:
    primary = fake_provider("primary", result="from primary")
    secondary = fake_provider("secondary", result="unused")

    assert await FallbackProvider([primary, secondary]).generate("p") == "from primary"
    secondary.generate.assert_not_awaited()


async def test_fallback_raises_last_error_when_all_fail() -> None:
    primary = fake_provider("primary", error=ProviderError("first"))
    secondary = fake_provider("secondary", error=ProviderError("second"))

    with pytest.raises(ProviderError, match="second"):
        await FallbackProvider([primary, secondary]).generate("p")


async def test_fallback_moves_past_non_provider_errors() -> None:
    primary = fake_provider("primary", error=ConnectionResetError("reset"))
    secondary = fake_provider("secondary", result="from secondary")

    assert await FallbackProvider([primary, secondary]).generate("p") == "from secondary"


async def test_fallback_wraps_unexpected_last_error() -> None:
    primary = fake_provider("primary", error=ProviderError("first"))
    secondary = fake_provider("secondary", error=RuntimeError("second"))

    with pytest.raises(ProviderError, match="secondary failed: second") as exc_info:
        await FallbackProvider([primary, secondary]).generate("p")
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_fallback_without_providers_is_configuration_error() -> None:
    with pytest.raises(ProviderConfigurationError) as exc_info:
        FallbackProvider([])
    assert exc_info.value.error_code == "AI_001"


def test_create_fallback_provider_orders_gemini_first() -> None:
    settings = Settings(gemini_api_key="g", groq_api_key="q")
    provider = create_fallback_provider(settings)
    assert [p.name for p in provider.providers] == ["gemini", "groq"]


def test_create_fallback_provider_with_only_groq() -> None:
    provider = create_fallback_provider(Settings(gemini_api_key=None, groq_api_key="q"))
    assert [p.name for p in provider.providers] == ["groq"]


def test_create_fallback_provider_without_keys_fails() -> None:
    with pytest.raises(ProviderConfigurationError):
        create_fallback_provider(Settings(gemini_api_key=None, groq_api_key=None))
