"""Persistence contract for the pipeline's state."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from docmirror.store.models import (
    Repository,
    ResultStatus,
    TaskStatus,
    TranslationResult,
    TranslationTask,
)


@runtime_checkable
class RepositoryStore(Protocol):
    """Registered repositories. The pipeline only ever advances baseline_sha."""

    def add_repository(self, repo: Repository) -> Repository: ...

    def get_repository(self, repository_id: int) -> Repository: ...

    def find_repository(self, owner: str, name: str) -> Repository | None: ...

    def list_repositories(self) -> list[Repository]: ...

    def update_baseline(self, repository_id: int, baseline_sha: str) -> None: ...


@runtime_checkable
class TaskStore(Protocol):
    """Append-only task state machine plus append-only results."""

    def create_task(self, task: TranslationTask) -> TranslationTask: ...

    def get_task(self, task_id: int) -> TranslationTask: ...

    def list_tasks(self, repository_id: int | None = None) -> list[TranslationTask]: ...

    def mark_started(self, task_id: int) -> None: ...

    def increment_progress(self, task_id: int, processed: int = 0, failed: int = 0) -> None: ...

    def finish_task(
        self, task_id: int, status: TaskStatus, error_message: str | None = None
    ) -> TranslationTask: ...

    def set_commit_outcome(
        self,
        task_id: int,
        branch_name: str,
        pr_url: str | None = None,
        pr_number: int | None = None,
    ) -> None: ...

    def add_result(self, result: TranslationResult) -> TranslationResult: ...

    def record_result(self, result: TranslationResult) -> TranslationResult: ...

    def list_results(
        self,
        task_id: int,
        status: ResultStatus | None = None,
        language: str | None = None,
    ) -> list[TranslationResult]: ...


@runtime_checkable
class PipelineStore(RepositoryStore, TaskStore, Protocol):
    """Everything the controller needs from persistence."""

    ...
