from docmirror.pipeline.controller import (
    FailedFile,
    LanguageSummary,
    TaskController,
    TaskCreated,
    TaskReport,
)
from docmirror.pipeline.queue import Job, JobStatus, TaskQueue
from docmirror.pipeline.worker import Worker

__all__ = [
    "FailedFile",
    "Job",
    "JobStatus",
    "LanguageSummary",
    "TaskController",
    "TaskCreated",
    "TaskQueue",
    "TaskReport",
    "Worker",
]
