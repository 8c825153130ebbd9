"""Locate, read and validate docmirror.yaml.

Files are searched in order: an explicit ``--config`` path, ``$DOCMIRROR_CONFIG``,
``./docmirror.yaml`` and ``~/.docmirror/config.yaml``. The first file with any
content wins; an empty file is skipped so the next candidate (or the built-in
defaults) apply. String values may reference the environment as ``${VAR}`` or
``${VAR:-fallback}``.
"""

import os
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import DocMirrorConfig

_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def config_candidates(cli_path: str | None = None) -> Iterator[Path]:
    """Yield the config file locations that exist, highest priority first."""
    env_path = os.environ.get("DOCMIRROR_CONFIG")
    for candidate in (cli_path, env_path):
        if candidate:
            path = Path(candidate).expanduser()
            if path.is_file():
                yield path
    for path in (Path("docmirror.yaml"), Path.home() / ".docmirror" / "config.yaml"):
        if path.is_file():
            yield path


def load_config(cli_path: str | None = None) -> DocMirrorConfig:
    for path in config_candidates(cli_path):
        raw = _read_yaml(path)
        if not raw:
            continue
        try:
            return DocMirrorConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
    return DocMirrorConfig()


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _expand_env_vars(obj: Any) -> Any:
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `docmirror config init`
DEFAULT_CONFIG_TEMPLATE = """\
# docmirror.yaml

# GitHub App credentials
github:
  app_id_env: "GITHUB_APP_ID"
  private_key_path: "private-key.pem"
  api_url: "https://api.github.com"
  token_ttl_seconds: 3300      # refresh before GitHub's 60 minute expiry

# AI provider (OpenAI-compatible chat completions)
ai:
  provider: "openrouter"       # openrouter | openai | deepseek | doubao | qwen | custom
  # model: "openai/gpt-4o-mini"
  # api_key_env: "OPENROUTER_API_KEY"
  # base_url: ""               # required for provider: custom
  temperature: 0.3
  max_tokens: 4096
  timeout: 120
  max_retries: 2

# Translation pipeline
translation:
  max_chunk_size: 8000
  markdown_extensions: [".md", ".mdx"]
  translations_root: "translations"
  history_scan_depth: 100
  index_path: "README.md"
  create_pr: true

# Local state (tasks, results, job queue)
storage:
  db_path: "${DOCMIRROR_DB:-.docmirror/docmirror.db}"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
