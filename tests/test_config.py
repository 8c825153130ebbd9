"""Tests for docmirror.config: models and YAML loader."""

import os
from pathlib import Path

import pytest
from unittest.mock import patch
from pydantic import ValidationError

from docmirror.config.models import (
    AISettings,
    DocMirrorConfig,
    GitHubAppConfig,
    StorageConfig,
    TranslationConfig,
)
from docmirror.config.loader import (
    DEFAULT_CONFIG_TEMPLATE,
    _expand_env_vars,
    config_candidates,
    load_config,
)


# ── DocMirrorConfig defaults ────────────────────────────────────────


class TestDocMirrorConfigDefaults:
    def test_default_log_level(self, sample_config):
        assert sample_config.log_level == "info"

    def test_default_log_format(self, sample_config):
        assert sample_config.log_format == "text"

    def test_default_ai_provider(self, sample_config):
        assert sample_config.ai.provider == "openrouter"

    def test_default_db_path(self, sample_config):
        assert sample_config.storage.db_path == ".docmirror/docmirror.db"


class TestGitHubAppConfig:
    def test_token_lifetime_under_an_hour(self):
        cfg = GitHubAppConfig()
        assert cfg.token_ttl_seconds == 55 * 60
        assert cfg.app_id_env == "GITHUB_APP_ID"

    def test_jwt_ttl_capped_at_ten_minutes(self):
        with pytest.raises(ValidationError):
            GitHubAppConfig(jwt_ttl_seconds=11 * 60)


class TestAISettings:
    def test_defaults(self):
        cfg = AISettings()
        assert cfg.model is None
        assert cfg.temperature == 0.3
        assert cfg.max_tokens == 4096

    def test_invalid_provider_rejected(self):
        with pytest.raises(ValidationError):
            AISettings(provider="anthropic")


class TestTranslationConfig:
    def test_defaults(self):
        cfg = TranslationConfig()
        assert cfg.max_chunk_size == 8000
        assert cfg.markdown_extensions == [".md", ".mdx"]
        assert "node_modules" in cfg.skip_dirs
        assert cfg.output_dir == "translations"
        assert cfg.history_scan_depth == 100

    def test_output_dir_follows_translations_root(self):
        cfg = TranslationConfig(translations_root="/docs/i18n/")
        assert cfg.output_dir == "docs/i18n"
        assert "i18n" not in cfg.skip_dirs

    def test_chunk_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            TranslationConfig(max_chunk_size=0)


def test_storage_config_override():
    assert StorageConfig(db_path="/tmp/x.db").db_path == "/tmp/x.db"


# ── _expand_env_vars ────────────────────────────────────────────────


class TestExpandEnvVars:
    def test_expands_string_variable(self):
        with patch.dict(os.environ, {"MY_KEY": "secret123"}):
            assert _expand_env_vars("${MY_KEY}") == "secret123"

    def test_missing_var_becomes_empty(self):
        os.environ.pop("DOCMIRROR_UNSET_VAR", None)
        assert _expand_env_vars("${DOCMIRROR_UNSET_VAR}") == ""

    def test_expands_nested_structures(self):
        with patch.dict(os.environ, {"A": "alpha", "B": "beta"}):
            result = _expand_env_vars({"outer": {"inner": "${A}"}, "list": ["${B}"]})
            assert result == {"outer": {"inner": "alpha"}, "list": ["beta"]}

    def test_fallback_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("DOCMIRROR_UNSET_VAR", raising=False)
        assert _expand_env_vars("${DOCMIRROR_UNSET_VAR:-fallback}") == "fallback"
        monkeypatch.setenv("DOCMIRROR_UNSET_VAR", "set")
        assert _expand_env_vars("${DOCMIRROR_UNSET_VAR:-fallback}") == "set"

    def test_non_string_passthrough(self):
        assert _expand_env_vars(42) == 42
        assert _expand_env_vars(None) is None


# ── load_config ─────────────────────────────────────────────────────


class TestLoadConfig:
    @pytest.fixture(autouse=True)
    def _isolated(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("DOCMIRROR_CONFIG", raising=False)
        monkeypatch.delenv("DOCMIRROR_DB", raising=False)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")

    def test_returns_defaults_when_no_file_exists(self):
        config = load_config()
        assert config.ai.provider == "openrouter"

    def test_loads_valid_yaml(self, tmp_path):
        (tmp_path / "docmirror.yaml").write_text(
            "ai:\n  provider: deepseek\ntranslation:\n  max_chunk_size: 4000\nlog_level: debug\n"
        )
        config = load_config()
        assert config.ai.provider == "deepseek"
        assert config.translation.max_chunk_size == 4000
        assert config.log_level == "debug"

    def test_raises_on_invalid_yaml(self, tmp_path):
        (tmp_path / "docmirror.yaml").write_text("  bad:\nyaml: [unterminated")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config()

    def test_raises_on_invalid_config_values(self, tmp_path):
        (tmp_path / "docmirror.yaml").write_text("ai:\n  provider: badprovider\n")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config()

    def test_cli_path_takes_priority(self, tmp_path):
        (tmp_path / "docmirror.yaml").write_text("ai:\n  provider: openai\n")
        cli_file = tmp_path / "custom.yaml"
        cli_file.write_text("ai:\n  provider: qwen\n")
        assert load_config(str(cli_file)).ai.provider == "qwen"

    def test_env_path_beats_project_file(self, tmp_path, monkeypatch):
        (tmp_path / "docmirror.yaml").write_text("ai:\n  provider: openai\n")
        env_file = tmp_path / "env.yaml"
        env_file.write_text("ai:\n  provider: doubao\n")
        monkeypatch.setenv("DOCMIRROR_CONFIG", str(env_file))
        assert load_config().ai.provider == "doubao"

    def test_env_vars_expanded_in_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DM_DB", "/var/lib/docmirror.db")
        (tmp_path / "docmirror.yaml").write_text("storage:\n  db_path: ${DM_DB}\n")
        assert load_config().storage.db_path == "/var/lib/docmirror.db"

    def test_empty_file_falls_through_to_defaults(self, tmp_path):
        (tmp_path / "docmirror.yaml").write_text("")
        assert load_config() == DocMirrorConfig()

    def test_default_template_is_loadable(self, tmp_path):
        (tmp_path / "docmirror.yaml").write_text(DEFAULT_CONFIG_TEMPLATE)
        assert load_config() == DocMirrorConfig()

    def test_template_db_path_reads_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOCMIRROR_DB", "/srv/mirror.db")
        (tmp_path / "docmirror.yaml").write_text(DEFAULT_CONFIG_TEMPLATE)
        assert load_config().storage.db_path == "/srv/mirror.db"

    def test_candidates_skip_missing_files(self, tmp_path):
        (tmp_path / "docmirror.yaml").write_text("log_level: warn\n")
        found = list(config_candidates(str(tmp_path / "nope.yaml")))
        assert found == [Path("docmirror.yaml")]
