from pydantic import BaseModel, Field
from typing import Literal


class GitHubAppConfig(BaseModel):
    app_id_env: str = "GITHUB_APP_ID"
    private_key_path: str = "private-key.pem"
    api_url: str = "https://api.github.com"
    token_ttl_seconds: int = Field(default=55 * 60, gt=0)
    jwt_ttl_seconds: int = Field(default=9 * 60, gt=0, le=10 * 60)
    clock_skew_seconds: int = Field(default=60, ge=0)
    request_timeout: float = Field(default=10.0, gt=0)


class AISettings(BaseModel):
    provider: Literal["openrouter", "openai", "deepseek", "doubao", "qwen", "custom"] = "openrouter"
    model: str | None = None
    api_key_env: str | None = None
    base_url: str | None = None
    temperature: float = Field(default=0.3, ge=0, le=2)
    max_tokens: int = Field(default=4096, gt=0)
    timeout: int = Field(default=120, gt=0)
    max_retries: int = Field(default=2, ge=0)


class TranslationConfig(BaseModel):
    max_chunk_size: int = Field(default=8000, gt=0)
    markdown_extensions: list[str] = Field(default_factory=lambda: [".md", ".mdx"])
    skip_dirs: list[str] = Field(default_factory=lambda: [
        "node_modules", ".git", "dist", "build"
    ])
    translations_root: str = Field(default="translations", min_length=1)
    max_scan_depth: int = Field(default=10, gt=0)
    history_scan_depth: int = Field(default=100, gt=0)
    index_path: str = "README.md"
    create_pr: bool = True

    @property
    def output_dir(self) -> str:
        """translations_root as a repo-relative path, never scanned for sources."""
        return self.translations_root.strip("/")


class StorageConfig(BaseModel):
    db_path: str = ".docmirror/docmirror.db"


class DocMirrorConfig(BaseModel):
    github: GitHubAppConfig = Field(default_factory=GitHubAppConfig)
    ai: AISettings = Field(default_factory=AISettings)
    translation: TranslationConfig = Field(default_factory=TranslationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
