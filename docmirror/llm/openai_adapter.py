"""OpenAI-compatible chat adapter for docmirror.

Every supported provider exposes the OpenAI chat-completions shape, so one
adapter serves all of them; only the base URL, key and model differ.
"""

from __future__ import annotations

import os

from openai import APIError, AsyncOpenAI, RateLimitError

from docmirror.llm.base import LLMProvider
from docmirror.llm.models import (
    AIConfig,
    LLMError,
    LLMResponse,
    MalformedResponseError,
    TokenUsage,
)


class OpenAIProvider(LLMProvider):
    """Chat adapter using the async OpenAI SDK against any compatible base URL."""

    def __init__(self, config: AIConfig) -> None:
        super().__init__(config)
        headers = None
        if config.provider == "openrouter":
            headers = {
                "HTTP-Referer": os.environ.get("OPENROUTER_SITE_URL", "http://localhost:3000"),
                "X-Title": os.environ.get("OPENROUTER_SITE_NAME", "docmirror"),
            }
        self._client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            default_headers=headers,
        )

    async def generate(self, system: str, user: str) -> LLMResponse:
        try:
            response = await self._client.chat.completions.create(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
        except RateLimitError as e:
            raise LLMError(self.config.provider, "chat", e, retryable=True) from e
        except APIError as e:
            raise LLMError(self.config.provider, "chat", e) from e

        if not response.choices:
            raise LLMError(
                self.config.provider,
                "chat",
                MalformedResponseError("No choices in completion response"),
            )
        content = response.choices[0].message.content
        if content is None:
            raise LLMError(
                self.config.provider,
                "chat",
                MalformedResponseError("Completion response has no message content"),
            )
        usage = TokenUsage()
        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )
        return LLMResponse(content=content, usage=usage, model=response.model or self.config.model)
