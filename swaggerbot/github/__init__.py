"""GitHub repository client and REST payload types."""

from __future__ import annotations

from .client import GitHubRepoClient, GitHubRepoConfig, GitHubRepository
from .errors import GitHubAPIError, GitHubConfigError, GitHubNotFoundError
from .models import ChangedFile, FileWriteResult, PullRequest, RepoFile
from .urls import (
    GitHubFileLocation,
    contents_url,
    locate_github_file,
    parse_github_file_url,
)

__all__ = [
    "ChangedFile",
    "FileWriteResult",
    "GitHubAPIError",
    "GitHubConfigError",
    "GitHubFileLocation",
    "GitHubNotFoundError",
    "GitHubRepoClient",
    "GitHubRepoConfig",
    "GitHubRepository",
    "PullRequest",
    "RepoFile",
    "contents_url",
    "locate_github_file",
    "parse_github_file_url",
]
