"""AI-assisted categorization: providers, prompt and response parsing."""

from kasa.ai.parsing import AiParseResult, AiResultItem, parse_ai_response
from kasa.ai.prompt import build_prompt
from kasa.ai.providers import (
    FallbackProvider,
    GeminiProvider,
    GenerationProvider,
    GroqProvider,
    create_fallback_provider,
)

__all__ = [
    "AiParseResult",
    "AiResultItem",
    "FallbackProvider",
    "GeminiProvider",
    "GenerationProvider",
    "GroqProvider",
    "build_prompt",
    "create_fallback_provider",
    "parse_ai_response",
]
