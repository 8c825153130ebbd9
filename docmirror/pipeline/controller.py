"""Task controller: creates, runs and commits translation tasks.

Stage transitions are persisted as they happen (task row at creation,
counters after every pair, terminal status at the end, commit outcome and
baseline after the writer returns), so a crash always leaves inspectable
state behind.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from docmirror.config.models import DocMirrorConfig
from docmirror.detection.detector import ChangeDetector, DetectedFile
from docmirror.errors import DetectionError, DocMirrorError, TaskStateError
from docmirror.llm.base import LLMProvider
from docmirror.pipeline.queue import Job, JobStatus, TaskQueue
from docmirror.publish.writer import BatchCommitWriter, CommitOutcome
from docmirror.store.base import PipelineStore
from docmirror.store.models import (
    Repository,
    ResultStatus,
    TaskStatus,
    TaskType,
    TranslationTask,
    utcnow,
)
from docmirror.translation.orchestrator import OrchestratorSummary, TranslationOrchestrator
from docmirror.translation.translator import Translator
from docmirror.vcs.base import ContentClient
from docmirror.vcs.models import FileContent

logger = logging.getLogger(__name__)


class TaskCreated(BaseModel):
    task_id: int
    total_files: int
    file_count: int
    target_languages: list[str]
    type: TaskType


class FailedFile(BaseModel):
    path: str
    language: str
    error: str | None = None


class LanguageSummary(BaseModel):
    language: str
    completed: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class TaskReport(BaseModel):
    """Snapshot of a task for status polling."""

    task_id: int
    repository: str
    status: TaskStatus
    type: TaskType
    target_languages: list[str]
    total_files: int
    processed_files: int
    failed_files: int
    progress: float
    error_message: str | None = None
    head_sha: str | None = None
    branch_name: str | None = None
    pr_url: str | None = None
    pr_number: int | None = None
    job_status: JobStatus | None = None
    created_at: datetime
    completed_at: datetime | None = None
    # Only filled in once the task is terminal
    languages: list[LanguageSummary] = Field(default_factory=list)
    failures: list[FailedFile] = Field(default_factory=list)


class TaskController:
    """Entry point for triggers: manual requests, scheduled polls, webhooks.

    client is needed to create and commit tasks, llm to run them. Either may
    be left out by callers that only read status.
    """

    def __init__(
        self,
        store: PipelineStore,
        queue: TaskQueue,
        client: ContentClient | None = None,
        llm: LLMProvider | None = None,
        config: DocMirrorConfig | None = None,
        writer: BatchCommitWriter | None = None,
    ) -> None:
        self.store = store
        self.queue = queue
        self.client = client
        self.llm = llm
        self.config = config or DocMirrorConfig()
        self._writer = writer

    def _require_client(self) -> ContentClient:
        if self.client is None:
            raise DocMirrorError("No GitHub client configured")
        return self.client

    @property
    def writer(self) -> BatchCommitWriter:
        if self._writer is None:
            self._writer = BatchCommitWriter(self._require_client(), self.config.translation)
        return self._writer

    # -- creation --------------------------------------------------------------

    async def create_task(
        self,
        repository_id: int,
        type: Literal["full", "incremental"] | TaskType = "incremental",
        selected_files: Sequence[str] | None = None,
        target_languages: Sequence[str] | None = None,
    ) -> TaskCreated | None:
        """Detect changes, fetch their content, persist a task and enqueue it.

        Returns None when there is nothing to translate. A failure before the
        task exists is still recorded as a failed task, then re-raised.
        """
        repo = self.store.get_repository(repository_id)
        languages = list(target_languages or repo.target_languages)
        if not languages:
            raise ValueError(f"{repo.full_name} has no target languages configured")
        requested = TaskType(type)

        try:
            client = self._require_client()
            detector = ChangeDetector(client, self.config.translation)
            baseline = repo.baseline_sha if requested == TaskType.incremental else None
            detection = await detector.detect(repo.installation_id, repo, baseline)
            detected = detection.files
            if selected_files:
                wanted = set(selected_files)
                detected = [f for f in detected if f.path in wanted]
            files = await self._fetch_contents(client, repo, detected, detection.latest_sha)
        except Exception as e:
            self._record_failed_creation(repo, languages, requested, e)
            raise

        if not files:
            logger.info("Nothing to translate for %s", repo.full_name)
            return None

        task_type = TaskType.full if detection.is_full_rescan else TaskType.incremental
        task = self.store.create_task(TranslationTask(
            repository_id=repo.id,
            type=task_type,
            target_languages=languages,
            total_files=len(files) * len(languages),
            head_sha=detection.latest_sha,
        ))
        self.queue.enqueue(Job(
            task_id=task.id,
            payload={"files": [f.model_dump() for f in files]},
        ))
        logger.info(
            "Created %s task %s for %s: %d file(s) x %d language(s)",
            task_type.value, task.id, repo.full_name, len(files), len(languages),
        )
        return TaskCreated(
            task_id=task.id,
            total_files=task.total_files,
            file_count=len(files),
            target_languages=languages,
            type=task_type,
        )

    async def _fetch_contents(
        self,
        client: ContentClient,
        repo: Repository,
        detected: Sequence[DetectedFile],
        ref: str,
    ) -> list[FileContent]:
        files: list[FileContent] = []
        for item in detected:
            try:
                content = await client.get_file(
                    repo.installation_id, repo.full_name, item.path, ref=ref
                )
            except DocMirrorError:
                raise
            except Exception as e:
                # Skipping would let the baseline pass an untranslated file
                raise DetectionError(
                    f"Could not fetch {item.path} from {repo.full_name}@{ref[:7]}: {e}"
                ) from e
            if content is None:
                logger.warning("%s vanished from %s@%s", item.path, repo.full_name, ref[:7])
                continue
            files.append(content)
        return files

    def _record_failed_creation(
        self,
        repo: Repository,
        languages: list[str],
        requested: TaskType,
        error: Exception,
    ) -> None:
        now = utcnow()
        task = self.store.create_task(TranslationTask(
            repository_id=repo.id,
            status=TaskStatus.failed,
            type=requested,
            target_languages=languages,
            total_files=0,
            error_message=str(error) or type(error).__name__,
            started_at=now,
            completed_at=now,
        ))
        logger.error("Task %s for %s failed during detection: %s", task.id, repo.full_name, error)

    async def poll(self) -> list[TaskCreated]:
        """Create incremental tasks for every repository whose head moved.

        A failing repository is logged and skipped; the failure is already
        recorded as a failed task.
        """
        created: list[TaskCreated] = []
        for repo in self.store.list_repositories():
            try:
                result = await self.create_task(repo.id, "incremental")
            except (DocMirrorError, ValueError) as e:
                logger.error("Poll of %s failed: %s", repo.full_name, e)
                continue
            if result is not None:
                created.append(result)
        return created

    # -- execution -------------------------------------------------------------

    async def run_job(self, job: Job) -> OrchestratorSummary | None:
        files = [FileContent(**f) for f in job.payload.get("files", [])]
        return await self.run_task(job.task_id, files)

    async def run_task(
        self, task_id: int, files: Sequence[FileContent]
    ) -> OrchestratorSummary | None:
        """Translate a task's files. Terminal tasks are left alone and return None."""
        task = self.store.get_task(task_id)
        if task.is_terminal:
            logger.info("Task %s is already %s; skipping", task_id, task.status.value)
            return None
        if self.llm is None:
            raise DocMirrorError("No AI provider configured")

        repo = self.store.get_repository(task.repository_id)
        orchestrator = TranslationOrchestrator(
            Translator(self.llm, self.config.translation.max_chunk_size),
            self.store,
            self.config.translation.translations_root,
        )
        try:
            return await orchestrator.run(task, files, task.target_languages, repo.base_language)
        except Exception as e:
            logger.exception("Task %s crashed", task_id)
            if not self.store.get_task(task_id).is_terminal:
                self.store.finish_task(task_id, TaskStatus.failed, str(e) or type(e).__name__)
            raise

    # -- status ----------------------------------------------------------------

    def get_status(self, task_id: int) -> TaskReport:
        task = self.store.get_task(task_id)
        repo = self.store.get_repository(task.repository_id)
        done = task.processed_files + task.failed_files
        report = TaskReport(
            task_id=task.id,
            repository=repo.full_name,
            status=task.status,
            type=task.type,
            target_languages=task.target_languages,
            total_files=task.total_files,
            processed_files=task.processed_files,
            failed_files=task.failed_files,
            progress=round(done / task.total_files * 100, 1) if task.total_files else 0.0,
            error_message=task.error_message,
            head_sha=task.head_sha,
            branch_name=task.branch_name,
            pr_url=task.pr_url,
            pr_number=task.pr_number,
            created_at=task.created_at,
            completed_at=task.completed_at,
        )
        jobs = self.queue.jobs_for_task(task_id)
        if jobs:
            report.job_status = jobs[-1].status
        if not task.is_terminal:
            return report

        by_lang = {lang: LanguageSummary(language=lang) for lang in task.target_languages}
        for r in self.store.list_results(task_id):
            summary = by_lang.setdefault(r.language, LanguageSummary(language=r.language))
            if r.status == ResultStatus.completed:
                summary.completed.append(r.original_path)
            else:
                summary.failed.append(r.original_path)
                report.failures.append(
                    FailedFile(path=r.original_path, language=r.language, error=r.error_message)
                )
        report.languages = list(by_lang.values())
        return report

    # -- commit ----------------------------------------------------------------

    async def commit_task(
        self, task_id: int, create_pr: bool = True, branch_name: str | None = None
    ) -> CommitOutcome:
        """Write a completed task's translations and advance the baseline."""
        task = self.store.get_task(task_id)
        if task.status == TaskStatus.running:
            raise TaskStateError(f"Task {task_id} is still running")
        if task.status == TaskStatus.failed:
            raise TaskStateError(f"Task {task_id} failed; nothing to commit")

        results = self.store.list_results(task_id, status=ResultStatus.completed)
        if not results:
            raise TaskStateError(f"Task {task_id} has no completed translations to commit")

        repo = self.store.get_repository(task.repository_id)
        outcome = await self.writer.commit(
            task, repo, results, create_pr=create_pr, branch_name=branch_name
        )
        self.store.set_commit_outcome(
            task_id, outcome.branch_name, outcome.pr_url, outcome.pr_number
        )
        if task.head_sha:
            self.store.update_baseline(repo.id, task.head_sha)
            logger.info("Baseline of %s advanced to %s", repo.full_name, task.head_sha[:7])
        return outcome
