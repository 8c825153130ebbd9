"""LLM provider abstraction layer."""

from docmirror.config.models import AISettings
from docmirror.llm.base import LLMProvider
from docmirror.llm.errors import ClassifiedError, ErrorKind, classify_error
from docmirror.llm.models import (
    AIConfig,
    LLMError,
    LLMResponse,
    MalformedResponseError,
    TokenUsage,
)
from docmirror.llm.openai_adapter import OpenAIProvider
from docmirror.llm.providers import PROVIDERS, ProviderKind, resolve_ai_config


def create_llm_provider(settings: AISettings, api_key: str | None = None) -> LLMProvider:
    """Create a chat provider from app-level AI settings.

    Every provider kind resolves to the same AIConfig triple and is served by
    the OpenAI-compatible adapter.
    """
    return OpenAIProvider(resolve_ai_config(settings, api_key=api_key))


__all__ = [
    "AIConfig",
    "ClassifiedError",
    "ErrorKind",
    "LLMError",
    "LLMProvider",
    "LLMResponse",
    "MalformedResponseError",
    "OpenAIProvider",
    "PROVIDERS",
    "ProviderKind",
    "TokenUsage",
    "classify_error",
    "create_llm_provider",
    "resolve_ai_config",
]
