"""Persisted records: repositories, translation tasks, translation results."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(UTC)


class TaskStatus(str, Enum):
    """Lifecycle of a translation task. Terminal states never change."""

    running = "running"
    completed = "completed"
    failed = "failed"


class TaskType(str, Enum):
    full = "full"
    incremental = "incremental"


class ResultStatus(str, Enum):
    completed = "completed"
    failed = "failed"


class Repository(BaseModel):
    """A source repository whose docs are mirrored into other languages."""

    id: int | None = None
    owner: str
    name: str
    installation_id: int
    default_branch: str = "main"
    base_language: str = "en"
    target_languages: list[str] = Field(default_factory=list)
    ignore_rules: str | None = None
    baseline_sha: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("owner", "name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip() or "/" in v:
            raise ValueError(f"invalid repository name component: {v!r}")
        return v

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class TranslationTask(BaseModel):
    """One pipeline run for a repository.

    processed_files counts successful (file, language) pairs and
    failed_files counts failed ones; together they never exceed total_files.
    """

    id: int | None = None
    repository_id: int
    status: TaskStatus = TaskStatus.running
    type: TaskType = TaskType.incremental
    target_languages: list[str] = Field(default_factory=list)
    total_files: int = Field(default=0, ge=0)
    processed_files: int = Field(default=0, ge=0)
    failed_files: int = Field(default=0, ge=0)
    head_sha: str | None = None
    branch_name: str | None = None
    pr_url: str | None = None
    pr_number: int | None = None
    error_message: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status != TaskStatus.running


class TranslationResult(BaseModel):
    """Outcome of one (file, language) pair. Never updated after creation."""

    id: int | None = None
    task_id: int
    original_path: str
    language: str
    translated_path: str
    original_content: str = ""
    translated_content: str = ""
    original_sha: str | None = None
    status: ResultStatus
    error_message: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
