"""Typed GitHub REST payloads used by the repository client."""

from __future__ import annotations

import msgspec


class GitObject(msgspec.Struct):
    """Object a git reference points at."""

    sha: str


class GitRef(msgspec.Struct):
    """Response of ``GET git/refs/heads/{branch}``."""

    ref: str
    object: GitObject


class CreatedRef(msgspec.Struct):
    """Response of ``POST git/refs``; ``ref`` is absent for non-ref replies."""

    ref: str | None = None


class RepoFile(msgspec.Struct, kw_only=True, frozen=True):
    """State of a file on a branch of the target repository.

    Attributes
    ----------
    path
        Repository path of the file.
    branch
        Branch the file was read from.
    sha
        Blob sha used as the optimistic-concurrency token for writes. ``None``
        means the file does not exist yet.
    content
        Decoded file content.

    """

    path: str
    branch: str
    sha: str | None = None
    content: str = ""


class ContentsEntry(msgspec.Struct):
    """Response of ``GET contents/{path}``."""

    sha: str
    path: str = ""
    content: str = ""
    encoding: str = ""
    download_url: str | None = None


class _ShaRef(msgspec.Struct):
    sha: str | None = None


class ContentsWrite(msgspec.Struct):
    """Response of ``PUT contents/{path}``."""

    content: _ShaRef | None = None
    commit: _ShaRef | None = None


class FileWriteResult(msgspec.Struct, kw_only=True, frozen=True):
    """Outcome of writing a file.

    ``changed`` is ``False`` when the resulting blob sha equals the previous
    one, meaning the content was identical.
    """

    changed: bool
    new_sha: str | None = None
    commit_sha: str | None = None


class ChangedFile(msgspec.Struct, frozen=True):
    """One file entry of a commit diff."""

    filename: str
    additions: int = 0
    deletions: int = 0


class CommitDetail(msgspec.Struct):
    """Response of ``GET commits/{sha}``."""

    sha: str = ""
    files: list[ChangedFile] = msgspec.field(default_factory=list)


class PullRequestBranch(msgspec.Struct):
    """Head or base branch of a pull request."""

    ref: str


class PullRequest(msgspec.Struct, frozen=True):
    """Pull request summary returned by the pulls endpoints."""

    number: int
    title: str = ""
    state: str = "open"
    head: PullRequestBranch | None = None

    @property
    def head_branch(self) -> str | None:
        """Return the head branch name, when known."""
        return self.head.ref if self.head is not None else None


class CreatedPull(msgspec.Struct):
    """Response of ``POST pulls``."""

    number: int | None = None
