"""Abstract content access interface for docmirror."""

from abc import ABC, abstractmethod

from docmirror.vcs.models import (
    ChangedFile,
    CommitInfo,
    FileContent,
    FileNode,
    PullRequestRef,
    RepoRef,
)


class ContentClient(ABC):
    """Read/write operations against a hosted repository.

    Every call is scoped by an installation id; implementations resolve the
    credential for that installation themselves. Repositories are addressed
    as "owner/name".
    """

    @abstractmethod
    async def get_repo_metadata(self, installation_id: int, repo: str) -> RepoRef:
        ...

    @abstractmethod
    async def list_directory(
        self, installation_id: int, repo: str, path: str = "", ref: str | None = None
    ) -> list[FileNode]:
        """List the entries directly under a directory."""
        ...

    @abstractmethod
    async def get_file(
        self, installation_id: int, repo: str, path: str, ref: str | None = None
    ) -> FileContent | None:
        """Fetch decoded content and blob sha, or None if the path does not exist."""
        ...

    @abstractmethod
    async def put_file(
        self,
        installation_id: int,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> str:
        """Create (sha is None) or update (sha given) a file. Returns the commit sha."""
        ...

    @abstractmethod
    async def create_branch(
        self, installation_id: int, repo: str, name: str, from_branch: str
    ) -> str:
        """Create a branch at the head of from_branch. Returns the head sha."""
        ...

    @abstractmethod
    async def get_branch_head(
        self, installation_id: int, repo: str, branch: str
    ) -> str | None:
        """Return the head commit sha of a branch, or None if it does not exist."""
        ...

    @abstractmethod
    async def list_commits(
        self, installation_id: int, repo: str, branch: str | None = None, limit: int = 100
    ) -> list[CommitInfo]:
        """List the most recent commits, newest first."""
        ...

    @abstractmethod
    async def compare_commits(
        self, installation_id: int, repo: str, base: str, head: str
    ) -> list[ChangedFile]:
        """Diff base...head into a changed-file list."""
        ...

    @abstractmethod
    async def create_pull_request(
        self,
        installation_id: int,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PullRequestRef:
        ...
