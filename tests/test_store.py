"""Tests for docmirror.store.sqlite_store."""

import pytest

from docmirror.errors import NotFoundError, TaskStateError
from docmirror.store.models import (
    Repository,
    ResultStatus,
    TaskStatus,
    TaskType,
    TranslationResult,
    TranslationTask,
)
from docmirror.store.sqlite_store import SQLiteStore


def _task(repository, total=4, **kwargs):
    return TranslationTask(
        repository_id=repository.id,
        type=TaskType.incremental,
        target_languages=["fr", "ja"],
        total_files=total,
        head_sha="head-sha",
        **kwargs,
    )


def _result(task_id, path="README.md", language="fr", status=ResultStatus.completed):
    return TranslationResult(
        task_id=task_id,
        original_path=path,
        language=language,
        translated_path=f"translations/{language}/{path}",
        original_content="# Hi",
        translated_content="# Salut" if status == ResultStatus.completed else "",
        status=status,
        error_message=None if status == ResultStatus.completed else "boom",
    )


# ── repositories ────────────────────────────────────────────────────


class TestRepositories:
    def test_add_and_get_round_trip(self, store, repository):
        assert repository.id is not None
        loaded = store.get_repository(repository.id)
        assert loaded.full_name == "acme/widget-docs"
        assert loaded.target_languages == ["fr", "ja"]
        assert loaded.baseline_sha is None
        assert loaded.created_at == repository.created_at

    def test_duplicate_rejected(self, store, repository):
        with pytest.raises(ValueError, match="already registered"):
            store.add_repository(repository.model_copy(update={"id": None}))

    def test_find_and_list(self, store, repository):
        other = store.add_repository(
            Repository(owner="acme", name="other", installation_id=42, target_languages=["de"])
        )
        assert store.find_repository("acme", "widget-docs").id == repository.id
        assert store.find_repository("acme", "missing") is None
        assert [r.id for r in store.list_repositories()] == [repository.id, other.id]

    def test_update_baseline(self, store, repository):
        store.update_baseline(repository.id, "abc123")
        assert store.get_repository(repository.id).baseline_sha == "abc123"

    def test_unknown_ids(self, store):
        with pytest.raises(NotFoundError):
            store.get_repository(999)
        with pytest.raises(NotFoundError):
            store.update_baseline(999, "sha")

    def test_invalid_owner_rejected(self):
        with pytest.raises(ValueError):
            Repository(owner="acme/evil", name="x", installation_id=1)


# ── tasks ───────────────────────────────────────────────────────────


class TestTasks:
    def test_create_and_get(self, store, repository):
        task = store.create_task(_task(repository))
        loaded = store.get_task(task.id)
        assert loaded.status == TaskStatus.running
        assert loaded.type == TaskType.incremental
        assert loaded.target_languages == ["fr", "ja"]
        assert loaded.total_files == 4
        assert loaded.started_at is None

    def test_missing_task(self, store):
        with pytest.raises(NotFoundError):
            store.get_task(12345)

    def test_list_newest_first(self, store, repository):
        first = store.create_task(_task(repository))
        second = store.create_task(_task(repository))
        assert [t.id for t in store.list_tasks(repository.id)] == [second.id, first.id]
        assert [t.id for t in store.list_tasks()] == [second.id, first.id]

    def test_mark_started_keeps_first_timestamp(self, store, repository):
        task = store.create_task(_task(repository))
        store.mark_started(task.id)
        started = store.get_task(task.id).started_at
        store.mark_started(task.id)
        assert store.get_task(task.id).started_at == started

    def test_increment_progress(self, store, repository):
        task = store.create_task(_task(repository, total=3))
        store.increment_progress(task.id, processed=1)
        store.increment_progress(task.id, failed=1)
        store.increment_progress(task.id, processed=1)
        loaded = store.get_task(task.id)
        assert (loaded.processed_files, loaded.failed_files) == (2, 1)

    def test_increment_past_total_rejected(self, store, repository):
        task = store.create_task(_task(repository, total=1))
        store.increment_progress(task.id, processed=1)
        with pytest.raises(TaskStateError):
            store.increment_progress(task.id, failed=1)
        assert store.get_task(task.id).failed_files == 0

    def test_finish_is_final(self, store, repository):
        task = store.create_task(_task(repository))
        finished = store.finish_task(task.id, TaskStatus.completed)
        assert finished.status == TaskStatus.completed
        assert finished.completed_at is not None

        with pytest.raises(TaskStateError, match="already completed"):
            store.finish_task(task.id, TaskStatus.failed, "late failure")
        with pytest.raises(TaskStateError):
            store.increment_progress(task.id, processed=1)
        loaded = store.get_task(task.id)
        assert loaded.status == TaskStatus.completed
        assert loaded.error_message is None

    def test_finish_requires_terminal_status(self, store, repository):
        task = store.create_task(_task(repository))
        with pytest.raises(ValueError):
            store.finish_task(task.id, TaskStatus.running)

    def test_failed_task_recorded_directly(self, store, repository):
        task = store.create_task(_task(repository, total=0, status=TaskStatus.failed,
                                       error_message="No commits found"))
        loaded = store.get_task(task.id)
        assert loaded.status == TaskStatus.failed
        assert loaded.is_terminal
        assert loaded.error_message == "No commits found"

    def test_commit_outcome(self, store, repository):
        task = store.create_task(_task(repository))
        store.set_commit_outcome(task.id, "translation/fr-1", "https://x/pull/3", 3)
        loaded = store.get_task(task.id)
        assert (loaded.branch_name, loaded.pr_url, loaded.pr_number) == (
            "translation/fr-1", "https://x/pull/3", 3,
        )
        with pytest.raises(NotFoundError):
            store.set_commit_outcome(999, "b")


# ── results ─────────────────────────────────────────────────────────


class TestResults:
    def test_add_and_filter(self, store, repository):
        task = store.create_task(_task(repository))
        store.add_result(_result(task.id, "README.md", "fr"))
        store.add_result(_result(task.id, "README.md", "ja", status=ResultStatus.failed))
        store.add_result(_result(task.id, "docs/a.md", "fr"))

        all_results = store.list_results(task.id)
        assert [(r.original_path, r.language) for r in all_results] == [
            ("README.md", "fr"), ("README.md", "ja"), ("docs/a.md", "fr"),
        ]
        assert len(store.list_results(task.id, status=ResultStatus.completed)) == 2
        failed = store.list_results(task.id, status=ResultStatus.failed)
        assert failed[0].error_message == "boom"
        assert [r.original_path for r in store.list_results(task.id, language="fr")] == [
            "README.md", "docs/a.md",
        ]

    def test_one_result_per_pair(self, store, repository):
        task = store.create_task(_task(repository))
        store.add_result(_result(task.id, "README.md", "fr"))
        with pytest.raises(TaskStateError, match="already has a result"):
            store.add_result(_result(task.id, "README.md", "fr", status=ResultStatus.failed))
        assert len(store.list_results(task.id)) == 1

    def test_record_result_counts_by_status(self, store, repository):
        task = store.create_task(_task(repository))
        store.record_result(_result(task.id, "README.md", "fr"))
        store.record_result(_result(task.id, "README.md", "ja", status=ResultStatus.failed))
        loaded = store.get_task(task.id)
        assert (loaded.processed_files, loaded.failed_files) == (1, 1)

    def test_record_result_is_all_or_nothing(self, store, repository):
        task = store.create_task(_task(repository, total=1))
        store.record_result(_result(task.id, "a.md"))

        with pytest.raises(TaskStateError, match="Cannot record progress"):
            store.record_result(_result(task.id, "b.md"))
        assert [r.original_path for r in store.list_results(task.id)] == ["a.md"]

        with pytest.raises(TaskStateError, match="already has a result"):
            store.record_result(_result(task.id, "a.md"))
        assert store.get_task(task.id).processed_files == 1

    def test_results_scoped_to_task(self, store, repository):
        a = store.create_task(_task(repository))
        b = store.create_task(_task(repository))
        store.add_result(_result(a.id))
        assert store.list_results(b.id) == []


class TestPersistence:
    def test_state_survives_reopen(self, db_path, repository, store):
        task = store.create_task(_task(repository))
        store.increment_progress(task.id, processed=1)

        reopened = SQLiteStore(db_path)
        try:
            assert reopened.get_task(task.id).processed_files == 1
            assert reopened.get_repository(repository.id).name == "widget-docs"
        finally:
            reopened.close()
