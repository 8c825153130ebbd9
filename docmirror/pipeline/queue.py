"""Translation job queue backed by a local SQLite database."""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator


class JobStatus(str, Enum):
    """Lifecycle states for a queued job."""

    pending = "pending"
    processing = "processing"
    completed = "completed"
    dead = "dead"


class Job(BaseModel):
    """A queued request to run one translation task.

    The payload carries the fetched documents so a worker never has to go
    back to GitHub. Status, timestamps, error and attempts change over the
    job's lifetime.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1)
    task_id: int
    payload: dict[str, Any] = Field(default_factory=dict)
    status: JobStatus = JobStatus.pending
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    error: str | None = None
    attempts: int = Field(default=0, ge=0)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("id cannot be empty or whitespace")
        return v


_SCHEMA = """\
CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    task_id INTEGER NOT NULL,
    payload_json TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    error TEXT,
    attempts INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_task ON jobs(task_id);
"""

_JOB_COLUMNS = "id, task_id, payload_json, status, created_at, updated_at, error, attempts"


def _utc_iso(dt: datetime | None = None) -> str:
    return (dt or datetime.now(UTC)).isoformat()


class TaskQueue:
    """FIFO of translation jobs, stored next to the task tables.

    Shares the database file with SQLiteStore so one path holds all pipeline
    state. Claims and retries run under BEGIN IMMEDIATE, so two workers on
    the same file never take the same job.
    """

    MAX_ATTEMPTS = 3

    def __init__(self, db_path: str = ".docmirror/docmirror.db") -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        # Autocommit; multi-statement claims open their own transaction
        self._conn = sqlite3.connect(db_path, isolation_level=None, timeout=5)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def _write_lock(self) -> Iterator[sqlite3.Cursor]:
        cursor = self._conn.cursor()
        cursor.execute("BEGIN IMMEDIATE")
        try:
            yield cursor
        except BaseException:
            cursor.execute("ROLLBACK")
            raise
        cursor.execute("COMMIT")

    @staticmethod
    def _to_job(row: tuple) -> Job:
        id_, task_id, payload_json, status, created_at, updated_at, error, attempts = row
        return Job(
            id=id_,
            task_id=task_id,
            payload=json.loads(payload_json),
            status=JobStatus(status),
            created_at=datetime.fromisoformat(created_at),
            updated_at=datetime.fromisoformat(updated_at),
            error=error,
            attempts=attempts,
        )

    def _select(self, where: str, params: tuple, order: str) -> list[Job]:
        rows = self._conn.execute(
            f"SELECT {_JOB_COLUMNS} FROM jobs WHERE {where} ORDER BY {order}", params
        ).fetchall()
        return [self._to_job(r) for r in rows]

    # -- producer side ---------------------------------------------------------

    def enqueue(self, job: Job) -> str:
        """Persist a job and return its id."""
        values = (
            job.id,
            job.task_id,
            json.dumps(job.payload),
            job.status.value,
            _utc_iso(job.created_at),
            _utc_iso(job.updated_at),
            job.error,
            job.attempts,
        )
        self._conn.execute(
            f"INSERT INTO jobs ({_JOB_COLUMNS}) VALUES ({', '.join('?' * len(values))})",
            values,
        )
        return job.id

    # -- worker side -----------------------------------------------------------

    def dequeue(self) -> Job | None:
        """Claim the oldest pending job, or return None when there is none."""
        with self._write_lock() as cursor:
            row = cursor.execute(
                f"SELECT {_JOB_COLUMNS} FROM jobs WHERE status = ? "
                "ORDER BY created_at ASC, rowid ASC LIMIT 1",
                (JobStatus.pending.value,),
            ).fetchone()
            if row is None:
                return None
            claimed_at = _utc_iso()
            cursor.execute(
                "UPDATE jobs SET status = ?, updated_at = ? WHERE id = ?",
                (JobStatus.processing.value, claimed_at, row[0]),
            )
        return self._to_job(row).model_copy(update={
            "status": JobStatus.processing,
            "updated_at": datetime.fromisoformat(claimed_at),
        })

    def ack(self, job_id: str) -> None:
        self._conn.execute(
            "UPDATE jobs SET status = ?, updated_at = ? WHERE id = ?",
            (JobStatus.completed.value, _utc_iso(), job_id),
        )

    def nack(self, job_id: str, reason: str) -> None:
        """Put a crashed job back in line, or dead-letter it on its last attempt."""
        with self._write_lock() as cursor:
            row = cursor.execute("SELECT attempts FROM jobs WHERE id = ?", (job_id,)).fetchone()
            if row is None:
                return
            attempts = row[0] + 1
            status = JobStatus.dead if attempts >= self.MAX_ATTEMPTS else JobStatus.pending
            cursor.execute(
                "UPDATE jobs SET status = ?, error = ?, attempts = ?, updated_at = ? WHERE id = ?",
                (status.value, reason, attempts, _utc_iso(), job_id),
            )

    def requeue_stale(self, older_than: timedelta) -> int:
        """Release jobs left in processing by a worker that died mid-run.

        Returns how many jobs went back to pending. Their attempt counter is
        untouched; the task itself decides whether there is work left.
        """
        cutoff = _utc_iso(datetime.now(UTC) - older_than)
        cursor = self._conn.execute(
            "UPDATE jobs SET status = ?, updated_at = ? WHERE status = ? AND updated_at < ?",
            (JobStatus.pending.value, _utc_iso(), JobStatus.processing.value, cutoff),
        )
        return cursor.rowcount

    # -- inspection ------------------------------------------------------------

    def dead_letters(self) -> list[Job]:
        return self._select("status = ?", (JobStatus.dead.value,), "updated_at ASC")

    def jobs_for_task(self, task_id: int) -> list[Job]:
        return self._select("task_id = ?", (task_id,), "created_at ASC, rowid ASC")

    def stats(self) -> dict[str, int]:
        """Job counts per status, including statuses with no jobs."""
        counts = dict.fromkeys((s.value for s in JobStatus), 0)
        for status, count in self._conn.execute(
            "SELECT status, COUNT(*) FROM jobs GROUP BY status"
        ):
            counts[status] = count
        return counts
