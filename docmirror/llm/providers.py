"""Catalog of supported AI providers and resolution to a concrete AIConfig."""

from __future__ import annotations

import os
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from docmirror.config.models import AISettings
from docmirror.llm.models import AIConfig


class ProviderKind(str, Enum):
    openrouter = "openrouter"
    openai = "openai"
    deepseek = "deepseek"
    doubao = "doubao"
    qwen = "qwen"
    custom = "custom"


class ModelInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class ProviderSpec(BaseModel):
    """Provider-specific defaults. Only the endpoint and catalog differ per kind."""

    model_config = ConfigDict(frozen=True)

    kind: ProviderKind
    display_name: str
    base_url: str
    api_key_env: str
    models: tuple[ModelInfo, ...] = Field(default_factory=tuple)

    @property
    def default_model(self) -> str | None:
        return self.models[0].id if self.models else None


PROVIDERS: dict[ProviderKind, ProviderSpec] = {
    ProviderKind.openrouter: ProviderSpec(
        kind=ProviderKind.openrouter,
        display_name="OpenRouter",
        base_url="https://openrouter.ai/api/v1",
        api_key_env="OPENROUTER_API_KEY",
        models=(
            ModelInfo(id="openai/gpt-4o-mini", name="GPT-4o Mini"),
            ModelInfo(id="openai/gpt-4o", name="GPT-4o"),
            ModelInfo(id="anthropic/claude-3.5-sonnet", name="Claude 3.5 Sonnet"),
            ModelInfo(id="google/gemini-pro-1.5", name="Gemini Pro 1.5"),
        ),
    ),
    ProviderKind.openai: ProviderSpec(
        kind=ProviderKind.openai,
        display_name="OpenAI",
        base_url="https://api.openai.com/v1",
        api_key_env="OPENAI_API_KEY",
        models=(
            ModelInfo(id="gpt-4o-mini", name="GPT-4o Mini"),
            ModelInfo(id="gpt-4o", name="GPT-4o"),
        ),
    ),
    ProviderKind.deepseek: ProviderSpec(
        kind=ProviderKind.deepseek,
        display_name="DeepSeek",
        base_url="https://api.deepseek.com/v1",
        api_key_env="DEEPSEEK_API_KEY",
        models=(
            ModelInfo(id="deepseek-chat", name="DeepSeek Chat"),
            ModelInfo(id="deepseek-coder", name="DeepSeek Coder"),
        ),
    ),
    ProviderKind.doubao: ProviderSpec(
        kind=ProviderKind.doubao,
        display_name="Doubao",
        base_url="https://ark.cn-beijing.volces.com/api/v3",
        api_key_env="DOUBAO_API_KEY",
        models=(
            ModelInfo(id="doubao-pro-32k", name="Doubao Pro 32K"),
            ModelInfo(id="doubao-lite-32k", name="Doubao Lite 32K"),
        ),
    ),
    ProviderKind.qwen: ProviderSpec(
        kind=ProviderKind.qwen,
        display_name="Qwen",
        base_url="https://dashscope.aliyuncs.com/compatible-mode/v1",
        api_key_env="DASHSCOPE_API_KEY",
        models=(
            ModelInfo(id="qwen-turbo", name="Qwen Turbo"),
            ModelInfo(id="qwen-plus", name="Qwen Plus"),
            ModelInfo(id="qwen-max", name="Qwen Max"),
            ModelInfo(id="qwen-coder-turbo", name="Qwen Coder Turbo"),
        ),
    ),
    ProviderKind.custom: ProviderSpec(
        kind=ProviderKind.custom,
        display_name="Custom",
        base_url="",
        api_key_env="DOCMIRROR_AI_API_KEY",
    ),
}


def resolve_ai_config(settings: AISettings, api_key: str | None = None) -> AIConfig:
    """Resolve app-level AI settings into a concrete endpoint, key and model.

    Called once per task. An explicit api_key wins over the environment.
    """
    kind = ProviderKind(settings.provider)
    spec = PROVIDERS[kind]

    base_url = settings.base_url or spec.base_url
    if not base_url:
        raise ValueError(f"Provider {kind.value!r} requires ai.base_url to be set")

    model = settings.model or spec.default_model
    if not model:
        raise ValueError(f"Provider {kind.value!r} requires ai.model to be set")

    key_env = settings.api_key_env or spec.api_key_env
    key = api_key or os.environ.get(key_env)
    if not key:
        raise ValueError(f"Missing API key: set environment variable {key_env!r}")

    return AIConfig(
        provider=kind.value,
        base_url=base_url,
        api_key=key,
        model=model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        timeout=settings.timeout,
        max_retries=settings.max_retries,
    )
