"""Text generation providers used by the AI categorization pass.

A provider takes a prompt and returns raw model text. The orchestrator never
assumes anything about the text beyond "should contain a JSON object".
"""

import logging
from typing import Protocol, Sequence

import httpx
from openai import AsyncOpenAI, OpenAIError

from kasa.config import Settings
from kasa.core.exceptions import ProviderConfigurationError, ProviderError

logger = logging.getLogger(__name__)

GROQ_TEMPERATURE = 0.1
GROQ_MAX_TOKENS = 2048


class GenerationProvider(Protocol):
    name: str

    async def generate(self, prompt: str) -> str: ...


class GeminiProvider:
    """Gemini REST client that walks a list of model variants.

    Each model is tried once, in order. The first successful response wins;
    if every model fails, a ProviderError carrying the last failure is raised.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        models: Sequence[str],
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        if not models:
            raise ProviderConfigurationError({"provider": self.name, "reason": "no models"})
        self.api_key = api_key
        self.models = list(models)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _generate_with(self, client: httpx.AsyncClient, model: str, prompt: str) -> str:
        response = await client.post(
            f"{self.base_url}/models/{model}:generateContent",
            headers={"x-goog-api-key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
        )
        response.raise_for_status()
        data = response.json()
        try:
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderError(f"Gemini {model} returned a malformed response") from e
        if not text:
            raise ProviderError(f"Gemini {model} returned an empty response")
        return text

    async def generate(self, prompt: str) -> str:
        if self._client is not None:
            return await self._generate(self._client, prompt)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._generate(client, prompt)

    async def _generate(self, client: httpx.AsyncClient, prompt: str) -> str:
        last_error: Exception | None = None

        for model in self.models:
            # Any failure moves on to the next model variant.
            try:
                text = await self._generate_with(client, model, prompt)
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Gemini model {model} failed: {e}",
                    extra={"provider": self.name, "model": model},
                    exc_info=not isinstance(e, (httpx.HTTPError, ProviderError)),
                )
                continue
            logger.info(
                f"Gemini success with model {model}",
                extra={"provider": self.name, "model": model},
            )
            return text

        raise ProviderError(
            f"All Gemini models failed: {last_error}",
            {"provider": self.name, "models": self.models},
        ) from last_error


class GroqProvider:
    """Groq chat completions through its OpenAI-compatible endpoint."""

    name = "groq"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 30.0,
        client: AsyncOpenAI | None = None,
    ):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    async def generate(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=GROQ_TEMPERATURE,
                max_tokens=GROQ_MAX_TOKENS,
            )
        except OpenAIError as e:
            raise ProviderError(f"Groq API error: {e}", {"provider": self.name}) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ProviderError("Groq returned an empty response", {"provider": self.name})
        return content


class FallbackProvider:
    """Tries an ordered list of providers until one answers."""

    name = "fallback"

    def __init__(self, providers: Sequence[GenerationProvider]):
        if not providers:
            raise ProviderConfigurationError(
                {"reason": "At least one of GEMINI_API_KEY or GROQ_API_KEY must be set"}
            )
        self.providers = list(providers)

    async def generate(self, prompt: str) -> str:
        last_error: Exception | None = None

        for index, provider in enumerate(self.providers):
            try:
                return await provider.generate(prompt)
            except Exception as e:
                last_error = e
                if index + 1 < len(self.providers):
                    logger.warning(
                        f"Provider {provider.name} failed, falling back: {e}",
                        extra={"provider": provider.name},
                    )

        if isinstance(last_error, ProviderError):
            raise last_error
        raise ProviderError(
            f"{self.providers[-1].name} failed: {last_error}",
            {"provider": self.providers[-1].name},
        ) from last_error


def create_fallback_provider(settings: Settings) -> FallbackProvider:
    """Build the provider chain from configured API keys (Gemini first, then Groq).

    Raises:
        ProviderConfigurationError: If neither key is configured
    """
    providers: list[GenerationProvider] = []
    if settings.gemini_api_key:
        providers.append(
            GeminiProvider(
                api_key=settings.gemini_api_key,
                models=settings.gemini_models,
                base_url=settings.gemini_base_url,
                timeout=settings.ai_request_timeout_seconds,
            )
        )
    if settings.groq_api_key:
        providers.append(
            GroqProvider(
                api_key=settings.groq_api_key,
                model=settings.groq_model,
                base_url=settings.groq_base_url,
                timeout=settings.ai_request_timeout_seconds,
            )
        )
    return FallbackProvider(providers)
