"""Pydantic models for VCS data."""

from typing import Literal

from pydantic import BaseModel, Field


class RepoRef(BaseModel):
    """Identifies a repository on the hosting platform."""

    owner: str
    name: str
    default_branch: str = "main"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class FileNode(BaseModel):
    """A file or directory entry in a repository listing."""

    path: str
    name: str
    type: Literal["file", "dir"]
    size: int | None = None
    sha: str | None = None


class FileContent(BaseModel):
    """Decoded text content of a file plus its blob sha."""

    path: str
    content: str
    sha: str


class ChangedFile(BaseModel):
    """One entry of a commit comparison."""

    path: str
    status: Literal["added", "modified", "removed", "renamed"]
    previous_path: str | None = Field(
        default=None, description="Old path when status is 'renamed'"
    )


class CommitInfo(BaseModel):
    sha: str
    message: str = ""


class PullRequestRef(BaseModel):
    number: int
    url: str


class InstallationInfo(BaseModel):
    """A GitHub App installation and the account it belongs to."""

    id: int
    account_login: str
    account_type: str = "User"
