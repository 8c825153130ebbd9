"""Abstract chat-completion interface for docmirror."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docmirror.llm.models import AIConfig, LLMResponse


class LLMProvider(ABC):
    """Provider-agnostic chat completion.

    Translation needs exactly one call shape: a system instruction plus a
    user message, returning the full text. Adapters raise LLMError on any
    provider failure.
    """

    def __init__(self, config: AIConfig) -> None:
        self.config = config

    @abstractmethod
    async def generate(self, system: str, user: str) -> LLMResponse:
        """Generate a complete response (one-shot)."""
        ...
