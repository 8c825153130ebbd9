"""Pydantic models for the LLM subsystem."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LLMError(Exception):
    """Wraps provider-specific exceptions with context."""

    def __init__(
        self, provider: str, operation: str, cause: Exception, retryable: bool = False
    ) -> None:
        self.provider = provider
        self.operation = operation
        self.retryable = retryable
        super().__init__(f"{provider} {operation} failed: {cause}")
        self.__cause__ = cause


class MalformedResponseError(Exception):
    """The provider answered, but not with a usable completion."""


class AIConfig(BaseModel):
    """Resolved provider settings, identical in shape for every provider."""

    provider: str
    base_url: str
    api_key: str = Field(repr=False)
    model: str
    temperature: float = 0.3
    max_tokens: int = 4096
    timeout: float = 120.0
    max_retries: int = 2


class TokenUsage(BaseModel):
    """Token usage stats from a single LLM call."""

    input_tokens: int = 0
    output_tokens: int = 0


class LLMResponse(BaseModel):
    """Structured response from an LLM provider."""

    content: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str
