"""PipelineStore implementation backed by a local SQLite database."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from docmirror.errors import NotFoundError, TaskStateError
from docmirror.store.models import (
    Repository,
    ResultStatus,
    TaskStatus,
    TaskType,
    TranslationResult,
    TranslationTask,
    utcnow,
)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS repositories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL,
    name TEXT NOT NULL,
    installation_id INTEGER NOT NULL,
    default_branch TEXT NOT NULL DEFAULT 'main',
    base_language TEXT NOT NULL DEFAULT 'en',
    target_languages_json TEXT NOT NULL DEFAULT '[]',
    ignore_rules TEXT,
    baseline_sha TEXT,
    created_at TEXT NOT NULL,
    UNIQUE (owner, name)
);
CREATE TABLE IF NOT EXISTS translation_tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    repository_id INTEGER NOT NULL REFERENCES repositories(id),
    status TEXT NOT NULL DEFAULT 'running',
    type TEXT NOT NULL,
    target_languages_json TEXT NOT NULL,
    total_files INTEGER NOT NULL,
    processed_files INTEGER NOT NULL DEFAULT 0,
    failed_files INTEGER NOT NULL DEFAULT 0,
    head_sha TEXT,
    branch_name TEXT,
    pr_url TEXT,
    pr_number INTEGER,
    error_message TEXT,
    created_at TEXT NOT NULL,
    started_at TEXT,
    completed_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_tasks_repository ON translation_tasks(repository_id);
CREATE TABLE IF NOT EXISTS translation_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id INTEGER NOT NULL REFERENCES translation_tasks(id),
    original_path TEXT NOT NULL,
    language TEXT NOT NULL,
    translated_path TEXT NOT NULL,
    original_content TEXT NOT NULL,
    translated_content TEXT NOT NULL,
    original_sha TEXT,
    status TEXT NOT NULL,
    error_message TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_results_task ON translation_results(task_id);
CREATE UNIQUE INDEX IF NOT EXISTS idx_results_pair
    ON translation_results(task_id, original_path, language);
"""

_REPO_COLUMNS = (
    "id, owner, name, installation_id, default_branch, base_language, "
    "target_languages_json, ignore_rules, baseline_sha, created_at"
)
_TASK_COLUMNS = (
    "id, repository_id, status, type, target_languages_json, total_files, "
    "processed_files, failed_files, head_sha, branch_name, pr_url, pr_number, "
    "error_message, created_at, started_at, completed_at"
)
_RESULT_COLUMNS = (
    "id, task_id, original_path, language, translated_path, original_content, "
    "translated_content, original_sha, status, error_message, created_at"
)


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteStore:
    """PipelineStore using SQLite with WAL mode.

    Every write is its own autocommit statement, so progress is visible to
    pollers on other connections as soon as it is recorded.
    """

    def __init__(self, db_path: str = ".docmirror/docmirror.db") -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, isolation_level=None, timeout=5)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    # -- row mapping -----------------------------------------------------------

    def _row_to_repository(self, row: tuple) -> Repository:
        (id_, owner, name, installation_id, default_branch, base_language,
         langs_json, ignore_rules, baseline_sha, created_at) = row
        return Repository(
            id=id_,
            owner=owner,
            name=name,
            installation_id=installation_id,
            default_branch=default_branch,
            base_language=base_language,
            target_languages=json.loads(langs_json),
            ignore_rules=ignore_rules,
            baseline_sha=baseline_sha,
            created_at=datetime.fromisoformat(created_at),
        )

    def _row_to_task(self, row: tuple) -> TranslationTask:
        (id_, repository_id, status, type_, langs_json, total, processed, failed,
         head_sha, branch_name, pr_url, pr_number, error_message,
         created_at, started_at, completed_at) = row
        return TranslationTask(
            id=id_,
            repository_id=repository_id,
            status=TaskStatus(status),
            type=TaskType(type_),
            target_languages=json.loads(langs_json),
            total_files=total,
            processed_files=processed,
            failed_files=failed,
            head_sha=head_sha,
            branch_name=branch_name,
            pr_url=pr_url,
            pr_number=pr_number,
            error_message=error_message,
            created_at=datetime.fromisoformat(created_at),
            started_at=_dt(started_at),
            completed_at=_dt(completed_at),
        )

    def _row_to_result(self, row: tuple) -> TranslationResult:
        (id_, task_id, original_path, language, translated_path, original_content,
         translated_content, original_sha, status, error_message, created_at) = row
        return TranslationResult(
            id=id_,
            task_id=task_id,
            original_path=original_path,
            language=language,
            translated_path=translated_path,
            original_content=original_content,
            translated_content=translated_content,
            original_sha=original_sha,
            status=ResultStatus(status),
            error_message=error_message,
            created_at=datetime.fromisoformat(created_at),
        )

    # -- repositories ----------------------------------------------------------

    def add_repository(self, repo: Repository) -> Repository:
        try:
            cursor = self._conn.execute(
                "INSERT INTO repositories (owner, name, installation_id, default_branch, "
                "base_language, target_languages_json, ignore_rules, baseline_sha, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    repo.owner,
                    repo.name,
                    repo.installation_id,
                    repo.default_branch,
                    repo.base_language,
                    json.dumps(repo.target_languages),
                    repo.ignore_rules,
                    repo.baseline_sha,
                    repo.created_at.isoformat(),
                ),
            )
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Repository {repo.full_name} is already registered") from e
        return repo.model_copy(update={"id": cursor.lastrowid})

    def get_repository(self, repository_id: int) -> Repository:
        row = self._conn.execute(
            f"SELECT {_REPO_COLUMNS} FROM repositories WHERE id = ?", (repository_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Repository {repository_id} not found")
        return self._row_to_repository(row)

    def find_repository(self, owner: str, name: str) -> Repository | None:
        row = self._conn.execute(
            f"SELECT {_REPO_COLUMNS} FROM repositories WHERE owner = ? AND name = ?",
            (owner, name),
        ).fetchone()
        return self._row_to_repository(row) if row else None

    def list_repositories(self) -> list[Repository]:
        rows = self._conn.execute(
            f"SELECT {_REPO_COLUMNS} FROM repositories ORDER BY id ASC"
        ).fetchall()
        return [self._row_to_repository(r) for r in rows]

    def update_baseline(self, repository_id: int, baseline_sha: str) -> None:
        cursor = self._conn.execute(
            "UPDATE repositories SET baseline_sha = ? WHERE id = ?",
            (baseline_sha, repository_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Repository {repository_id} not found")

    # -- tasks -----------------------------------------------------------------

    def create_task(self, task: TranslationTask) -> TranslationTask:
        cursor = self._conn.execute(
            "INSERT INTO translation_tasks (repository_id, status, type, target_languages_json, "
            "total_files, processed_files, failed_files, head_sha, error_message, created_at, "
            "started_at, completed_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                task.repository_id,
                task.status.value,
                task.type.value,
                json.dumps(task.target_languages),
                task.total_files,
                task.processed_files,
                task.failed_files,
                task.head_sha,
                task.error_message,
                task.created_at.isoformat(),
                task.started_at.isoformat() if task.started_at else None,
                task.completed_at.isoformat() if task.completed_at else None,
            ),
        )
        return task.model_copy(update={"id": cursor.lastrowid})

    def get_task(self, task_id: int) -> TranslationTask:
        row = self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM translation_tasks WHERE id = ?", (task_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Task {task_id} not found")
        return self._row_to_task(row)

    def list_tasks(self, repository_id: int | None = None) -> list[TranslationTask]:
        if repository_id is None:
            rows = self._conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM translation_tasks ORDER BY id DESC"
            ).fetchall()
        else:
            rows = self._conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM translation_tasks "
                "WHERE repository_id = ? ORDER BY id DESC",
                (repository_id,),
            ).fetchall()
        return [self._row_to_task(r) for r in rows]

    def mark_started(self, task_id: int) -> None:
        self._conn.execute(
            "UPDATE translation_tasks SET started_at = COALESCE(started_at, ?) "
            "WHERE id = ? AND status = ?",
            (utcnow().isoformat(), task_id, TaskStatus.running.value),
        )

    def increment_progress(self, task_id: int, processed: int = 0, failed: int = 0) -> None:
        """Bump the counters, refusing to push them past total_files."""
        cursor = self._conn.execute(
            "UPDATE translation_tasks "
            "SET processed_files = processed_files + ?, failed_files = failed_files + ? "
            "WHERE id = ? AND status = ? "
            "AND processed_files + failed_files + ? + ? <= total_files",
            (processed, failed, task_id, TaskStatus.running.value, processed, failed),
        )
        if cursor.rowcount == 0:
            task = self.get_task(task_id)
            raise TaskStateError(
                f"Cannot record progress on task {task_id} "
                f"(status={task.status.value}, "
                f"{task.processed_files}+{task.failed_files}/{task.total_files})"
            )

    def finish_task(
        self, task_id: int, status: TaskStatus, error_message: str | None = None
    ) -> TranslationTask:
        if status == TaskStatus.running:
            raise ValueError("finish_task needs a terminal status")
        cursor = self._conn.execute(
            "UPDATE translation_tasks SET status = ?, error_message = ?, completed_at = ? "
            "WHERE id = ? AND status = ?",
            (status.value, error_message, utcnow().isoformat(), task_id,
             TaskStatus.running.value),
        )
        if cursor.rowcount == 0:
            task = self.get_task(task_id)
            raise TaskStateError(f"Task {task_id} is already {task.status.value}")
        return self.get_task(task_id)

    def set_commit_outcome(
        self,
        task_id: int,
        branch_name: str,
        pr_url: str | None = None,
        pr_number: int | None = None,
    ) -> None:
        cursor = self._conn.execute(
            "UPDATE translation_tasks SET branch_name = ?, pr_url = ?, pr_number = ? WHERE id = ?",
            (branch_name, pr_url, pr_number, task_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Task {task_id} not found")

    # -- results ---------------------------------------------------------------

    def _insert_result(self, result: TranslationResult) -> int:
        try:
            cursor = self._conn.execute(
                "INSERT INTO translation_results (task_id, original_path, language, "
                "translated_path, original_content, translated_content, original_sha, status, "
                "error_message, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    result.task_id,
                    result.original_path,
                    result.language,
                    result.translated_path,
                    result.original_content,
                    result.translated_content,
                    result.original_sha,
                    result.status.value,
                    result.error_message,
                    result.created_at.isoformat(),
                ),
            )
        except sqlite3.IntegrityError as e:
            raise TaskStateError(
                f"Task {result.task_id} already has a result for "
                f"{result.original_path} ({result.language})"
            ) from e
        return cursor.lastrowid

    def add_result(self, result: TranslationResult) -> TranslationResult:
        return result.model_copy(update={"id": self._insert_result(result)})

    def record_result(self, result: TranslationResult) -> TranslationResult:
        """Insert a result and count it against its task in one transaction."""
        self._conn.execute("BEGIN IMMEDIATE")
        try:
            row_id = self._insert_result(result)
            completed = result.status == ResultStatus.completed
            self.increment_progress(
                result.task_id, processed=int(completed), failed=int(not completed)
            )
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        self._conn.execute("COMMIT")
        return result.model_copy(update={"id": row_id})

    def list_results(
        self,
        task_id: int,
        status: ResultStatus | None = None,
        language: str | None = None,
    ) -> list[TranslationResult]:
        query = f"SELECT {_RESULT_COLUMNS} FROM translation_results WHERE task_id = ?"
        params: list = [task_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        if language is not None:
            query += " AND language = ?"
            params.append(language)
        query += " ORDER BY id ASC"
        rows = self._conn.execute(query, params).fetchall()
        return [self._row_to_result(r) for r in rows]
