"""Exception hierarchy for the translation pipeline."""

from __future__ import annotations


class DocMirrorError(Exception):
    """Base exception for pipeline failures."""


class CredentialError(DocMirrorError):
    """Raised when an installation token cannot be minted or exchanged.

    Fatal to the whole task; there is no fallback credential.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DetectionError(DocMirrorError):
    """Raised when the changed-file set cannot be determined.

    A failed comparison that cannot be explained by a force push lands here.
    """


class CommitError(DocMirrorError):
    """Raised when a translated file cannot be written to the working branch."""

    def __init__(self, message: str, path: str | None = None, branch: str | None = None):
        super().__init__(message)
        self.path = path
        self.branch = branch


class TaskStateError(DocMirrorError):
    """Raised when a controller operation does not fit the task's current state."""


class NotFoundError(DocMirrorError):
    """Raised when a repository or task id is unknown to the store."""
