"""Tests for the docmirror CLI commands."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml
from typer.testing import CliRunner

from docmirror import cli
from docmirror.cli import app
from docmirror.pipeline.controller import TaskController
from docmirror.publish.writer import BatchCommitWriter
from docmirror.store.models import TaskStatus, TranslationTask
from docmirror.vcs.models import FileContent

runner = CliRunner()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def workspace(tmp_path, monkeypatch, db_path):
    """Run every command from a scratch directory with a config pointing at db_path."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DOCMIRROR_CONFIG", raising=False)
    (tmp_path / "docmirror.yaml").write_text(
        yaml.dump({"storage": {"db_path": db_path}, "log_level": "error"})
    )
    return tmp_path


@pytest.fixture
def controller(store, queue, mock_client, mock_llm_provider, monkeypatch):
    ctl = TaskController(
        store,
        queue,
        client=mock_client,
        llm=mock_llm_provider,
        writer=BatchCommitWriter(mock_client, clock=lambda: 1.0),
    )
    monkeypatch.setattr(cli, "_build_controller", lambda cfg, **kwargs: ctl)
    return ctl


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_init_writes_template(self, workspace):
        (workspace / "docmirror.yaml").unlink()
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 0
        assert "provider: \"openrouter\"" in (workspace / "docmirror.yaml").read_text()

    def test_init_refuses_to_overwrite(self):
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_init_force(self, workspace):
        result = runner.invoke(app, ["config", "init", "--force"])
        assert result.exit_code == 0
        assert "translations_root" in (workspace / "docmirror.yaml").read_text()

    def test_show(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "openrouter" in result.output
        assert "max_chunk_size: 8000" in result.output

    def test_invalid_config_exits(self, workspace):
        (workspace / "docmirror.yaml").write_text("log_level: loud\n")
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 1
        assert "Invalid config" in result.output


# ---------------------------------------------------------------------------
# repo
# ---------------------------------------------------------------------------


class TestRepoCommands:
    def test_list_empty(self):
        result = runner.invoke(app, ["repo", "list"])
        assert result.exit_code == 0
        assert "No repositories registered" in result.output

    def test_list_shows_registered(self, repository):
        result = runner.invoke(app, ["repo", "list"])
        assert result.exit_code == 0
        assert "acme/widget-docs" in result.output

    def test_add_looks_up_installation(self, controller, mock_client, store, workspace):
        mock_client.tokens = MagicMock()
        mock_client.tokens.find_installation_for_repo = AsyncMock(return_value=99)
        ignore = workspace / ".docmirrorignore"
        ignore.write_text("drafts/**\n")

        result = runner.invoke(app, [
            "repo", "add", "acme/handbook", "-l", "fr", "-l", "de", "--base", "en",
            "--ignore-file", str(ignore),
        ])

        assert result.exit_code == 0, result.output
        saved = store.find_repository("acme", "handbook")
        assert saved.installation_id == 99
        assert saved.target_languages == ["fr", "de"]
        assert saved.ignore_rules == "drafts/**\n"
        mock_client.get_repo_metadata.assert_awaited_once_with(99, "acme/handbook")

    def test_add_detects_base_language(self, controller, mock_client, store):
        mock_client.tokens = MagicMock()
        mock_client.tokens.find_installation_for_repo = AsyncMock(return_value=99)
        mock_client.get_file = AsyncMock(return_value=FileContent(
            path="README.md",
            content=(
                "# Manuel\n\nCe projet garde la documentation de votre équipe à jour. "
                "Ce guide explique comment l'installer, comment le configurer et "
                "comment publier les traductions dans votre dépôt.\n"
            ),
            sha="blob-1",
        ))

        result = runner.invoke(app, ["repo", "add", "acme/handbook", "-l", "en"])

        assert result.exit_code == 0, result.output
        assert store.find_repository("acme", "handbook").base_language == "fr"
        mock_client.get_file.assert_awaited_once_with(99, "acme/handbook", "README.md", ref="main")

    def test_add_explicit_base_skips_detection(self, controller, mock_client, store):
        mock_client.tokens = MagicMock()
        mock_client.tokens.find_installation_for_repo = AsyncMock(return_value=99)
        result = runner.invoke(app, ["repo", "add", "acme/handbook", "-l", "fr", "--base", "de"])
        assert result.exit_code == 0, result.output
        assert store.find_repository("acme", "handbook").base_language == "de"
        mock_client.get_file.assert_not_awaited()

    def test_add_requires_language(self, controller):
        result = runner.invoke(app, ["repo", "add", "acme/handbook"])
        assert result.exit_code == 1
        assert "--lang" in result.output

    def test_add_app_not_installed(self, controller, mock_client):
        mock_client.tokens = MagicMock()
        mock_client.tokens.find_installation_for_repo = AsyncMock(return_value=None)
        result = runner.invoke(app, ["repo", "add", "acme/handbook", "-l", "fr"])
        assert result.exit_code == 1
        assert "not installed" in result.output

    def test_add_rejects_bad_identifier(self, controller):
        result = runner.invoke(app, ["repo", "add", "not-a-repo", "-l", "fr"])
        assert result.exit_code == 1
        assert "owner/repo" in result.output


# ---------------------------------------------------------------------------
# translate / status / commit
# ---------------------------------------------------------------------------


class TestPipelineCommands:
    def test_detect_lists_changes(self, controller, repository):
        result = runner.invoke(app, ["detect", "acme/widget-docs"])
        assert result.exit_code == 0
        assert "README.md" in result.output
        assert "full rescan" in result.output

    def test_translate_queues_task(self, controller, repository, queue):
        result = runner.invoke(app, ["translate", "acme/widget-docs"])
        assert result.exit_code == 0, result.output
        assert "Created full task" in result.output
        assert queue.stats()["pending"] == 1

    def test_translate_unregistered_repo(self, controller):
        result = runner.invoke(app, ["translate", "acme/unknown"])
        assert result.exit_code == 1
        assert "not registered" in result.output

    def test_translate_nothing_to_do(self, controller, repository, store):
        store.update_baseline(repository.id, "head-sha")
        result = runner.invoke(app, ["translate", "acme/widget-docs"])
        assert result.exit_code == 0
        assert "No changes detected" in result.output

    def test_translate_wait_then_commit(self, controller, repository, store):
        result = runner.invoke(app, ["translate", "acme/widget-docs", "--wait"])
        assert result.exit_code == 0, result.output
        assert "completed" in result.output

        [task] = store.list_tasks(repository.id)
        result = runner.invoke(app, ["commit", str(task.id)])
        assert result.exit_code == 0, result.output
        assert "translation/fr-ja-1000-1000" in result.output
        assert "#7" in result.output
        assert store.get_repository(repository.id).baseline_sha == "head-sha"

    def test_translate_wait_failed_task_exits_nonzero(
        self, controller, repository, mock_llm_provider
    ):
        mock_llm_provider.generate = AsyncMock(side_effect=TimeoutError("read timeout"))
        result = runner.invoke(app, ["translate", "acme/widget-docs", "--wait"])
        assert result.exit_code == 1
        assert "failed" in result.output

    def test_commit_running_task_fails(self, controller, repository, store):
        task = store.create_task(TranslationTask(
            repository_id=repository.id, target_languages=["fr"], total_files=1
        ))
        result = runner.invoke(app, ["commit", str(task.id)])
        assert result.exit_code == 1
        assert "still running" in result.output

    def test_status_json(self, repository, store):
        task = store.create_task(TranslationTask(
            repository_id=repository.id, target_languages=["fr", "ja"], total_files=4
        ))
        store.increment_progress(task.id, processed=1)

        result = runner.invoke(app, ["status", str(task.id), "--json"])

        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["status"] == TaskStatus.running.value
        assert report["progress"] == 25.0
        assert report["repository"] == "acme/widget-docs"

    def test_status_unknown_task(self):
        result = runner.invoke(app, ["status", "404"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_poll_reports_queued(self, controller, repository):
        result = runner.invoke(app, ["poll"])
        assert result.exit_code == 0
        assert "Queued tasks (1)" in result.output

    def test_worker_once(self, controller, repository, queue):
        runner.invoke(app, ["translate", "acme/widget-docs"])
        result = runner.invoke(app, ["worker", "--once"])
        assert result.exit_code == 0, result.output
        assert "Processed 1 job(s)" in result.output
        assert queue.stats()["completed"] == 1
