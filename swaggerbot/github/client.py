"""GitHub REST client for the narrow set of repository operations we need."""

from __future__ import annotations

import base64
import dataclasses
import typing as typ
from urllib.parse import quote

import msgspec

from swaggerbot.http.errors import HttpError
from swaggerbot.logging import BoundLogger, bound_logger

from .errors import GitHubAPIError, GitHubConfigError
from .models import (
    ChangedFile,
    CommitDetail,
    ContentsEntry,
    ContentsWrite,
    CreatedPull,
    CreatedRef,
    FileWriteResult,
    GitRef,
    PullRequest,
    RepoFile,
)
from .urls import API_ROOT

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from swaggerbot.config import SyncConfig
    from swaggerbot.http.client import RetryingHTTPClient

_HTTP_UNPROCESSABLE = 422
_PULLS_PER_PAGE = 100
_JSON_MEDIA_TYPE = "application/vnd.github+json"
_RAW_MEDIA_TYPE = "application/vnd.github.raw"


class GitHubRepository(typ.Protocol):
    """Repository operations used by the sync workflow."""

    async def create_branch(self, branch: str, base_branch: str) -> bool:
        """Create ``branch`` from ``base_branch``; ``False`` if it exists."""
        ...

    async def read_file(self, branch: str, path: str) -> RepoFile:
        """Return the file at ``path`` on ``branch``."""
        ...

    async def write_file(
        self,
        branch: str,
        path: str,
        content: str,
        message: str,
        sha: str | None = None,
    ) -> FileWriteResult:
        """Create or update a file in a single commit."""
        ...

    async def get_commit_changed_files(self, commit_sha: str) -> list[ChangedFile]:
        """Return the files touched by a commit."""
        ...

    async def merge_branch(self, source: str, target: str, message: str) -> None:
        """Merge ``source`` into ``target``."""
        ...

    async def list_pulls(
        self, *, state: str = "all", head_branch: str | None = None
    ) -> list[PullRequest]:
        """List pull requests, optionally filtered by head branch."""
        ...

    async def create_pull(self, *, head: str, base: str, title: str) -> int | None:
        """Open a pull request and return its number."""
        ...

    async def close_pull(self, number: int) -> None:
        """Close a pull request."""
        ...

    async def request_reviewers(
        self, number: int, reviewers: cabc.Sequence[str]
    ) -> None:
        """Request reviews on a pull request."""
        ...

    async def delete_branch(self, branch: str) -> None:
        """Delete a branch."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubRepoConfig:
    """Coordinates and credentials for one GitHub repository."""

    token: str
    owner: str
    repo: str
    api_root: str = API_ROOT
    user_agent: str = "swaggerbot/0.1"

    @classmethod
    def from_sync_config(cls, config: SyncConfig) -> GitHubRepoConfig:
        """Build repository coordinates from the sync configuration."""
        return cls(token=config.github_token, owner=config.owner, repo=config.repo)


T = typ.TypeVar("T")


def _decode(operation: str, body: str, kind: type[T]) -> T:
    try:
        return msgspec.json.decode(body, type=kind)
    except msgspec.DecodeError as exc:
        raise GitHubAPIError.unexpected_payload(operation, str(exc)) from exc


def _decode_content(entry: ContentsEntry) -> str:
    if entry.encoding and entry.encoding != "base64":
        return entry.content
    return base64.b64decode(entry.content).decode("utf-8", errors="replace")


class GitHubRepoClient:
    """GitHub REST implementation of :class:`GitHubRepository`.

    Every call goes through the retrying HTTP client; non-2xx responses are
    re-raised as :class:`GitHubAPIError` (``GitHubNotFoundError`` for 404)
    carrying GitHub's error message.
    """

    def __init__(
        self,
        config: GitHubRepoConfig,
        *,
        http: RetryingHTTPClient,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialise the client with repository coordinates."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._http = http
        self._log = (logger or bound_logger(__name__)).bind(
            repo=f"{config.owner}/{config.repo}"
        )

    @property
    def owner(self) -> str:
        """Return the repository owner."""
        return self._config.owner

    def _url(self, *parts: str) -> str:
        base = f"{self._config.api_root}/repos/{self._config.owner}/{self._config.repo}"
        return "/".join((base, *parts))

    def _headers(self, accept: str = _JSON_MEDIA_TYPE) -> dict[str, str]:
        return {
            "Authorization": f"token {self._config.token}",
            "Accept": accept,
            "User-Agent": self._config.user_agent,
        }

    async def _request(  # noqa: PLR0913
        self,
        operation: str,
        method: str,
        url: str,
        *,
        params: cabc.Mapping[str, str | int] | None = None,
        json: object | None = None,
        accept: str = _JSON_MEDIA_TYPE,
    ) -> str:
        try:
            return await self._http.call(
                method, url, headers=self._headers(accept), params=params, json=json
            )
        except HttpError as exc:
            raise GitHubAPIError.from_http_error(operation, exc) from exc

    async def get_branch_ref(self, branch: str) -> str:
        """Return the commit sha ``branch`` points at.

        Raises
        ------
        GitHubNotFoundError
            If the branch does not exist.

        """
        body = await self._request(
            "get branch", "GET", self._url("git", "refs", "heads", quote(branch))
        )
        return _decode("get branch", body, GitRef).object.sha

    async def create_branch(self, branch: str, base_branch: str) -> bool:
        """Create ``branch`` pointing at the head of ``base_branch``.

        Returns
        -------
        bool
            ``True`` when the ref was created, ``False`` when it already
            existed. An existing ref is not an error.

        """
        base_sha = await self.get_branch_ref(base_branch)
        self._log.debug(
            "github.create_branch",
            "Base branch SHA retrieved",
            base_branch=base_branch,
            sha=base_sha,
        )
        try:
            body = await self._request(
                "create branch",
                "POST",
                self._url("git", "refs"),
                json={"ref": f"refs/heads/{branch}", "sha": base_sha},
            )
        except GitHubAPIError as exc:
            if (
                exc.status_code == _HTTP_UNPROCESSABLE
                and "already exists" in exc.body.lower()
            ):
                self._log.info(
                    "github.create_branch", "Branch already exists", branch=branch
                )
                return False
            raise

        if _decode("create branch", body, CreatedRef).ref:
            self._log.info(
                "github.create_branch", "Branch created successfully", branch=branch
            )
            return True
        self._log.info("github.create_branch", "Branch already exists", branch=branch)
        return False

    async def get_contents(self, path: str, ref: str | None = None) -> ContentsEntry:
        """Return contents metadata for ``path``, optionally at ``ref``."""
        params = {"ref": ref} if ref else None
        body = await self._request(
            "read file",
            "GET",
            self._url("contents", quote(path, safe="/")),
            params=params,
        )
        return _decode("read file", body, ContentsEntry)

    async def read_file(self, branch: str, path: str) -> RepoFile:
        """Return the file at ``path`` on ``branch``.

        Raises
        ------
        GitHubNotFoundError
            If the file (or branch) does not exist. Callers treat this as
            "no existing sha".

        """
        entry = await self.get_contents(path, branch)
        return RepoFile(
            path=path,
            branch=branch,
            sha=entry.sha,
            content=_decode_content(entry),
        )

    async def write_file(
        self,
        branch: str,
        path: str,
        content: str,
        message: str,
        sha: str | None = None,
    ) -> FileWriteResult:
        """Create or update ``path`` on ``branch`` in a single commit.

        Parameters
        ----------
        branch
            Branch receiving the commit.
        path
            Repository path of the file.
        content
            New file content; sent base64-encoded.
        message
            Commit message.
        sha
            Current blob sha when updating an existing file.

        Returns
        -------
        FileWriteResult
            ``changed`` is ``False`` when the new blob sha equals ``sha``.

        """
        payload: dict[str, object] = {
            "branch": branch,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "message": message,
        }
        if sha is not None:
            payload["sha"] = sha

        body = await self._request(
            "write file",
            "PUT",
            self._url("contents", quote(path, safe="/")),
            json=payload,
        )
        written = _decode("write file", body, ContentsWrite)
        new_sha = written.content.sha if written.content is not None else None
        commit_sha = written.commit.sha if written.commit is not None else None
        changed = not (sha and new_sha and sha == new_sha)
        if not changed:
            self._log.info(
                "github.write_file",
                "File content unchanged, skipping",
                path=path,
                sha=sha,
            )
        return FileWriteResult(changed=changed, new_sha=new_sha, commit_sha=commit_sha)

    async def get_commit_changed_files(self, commit_sha: str) -> list[ChangedFile]:
        """Return the per-file line counts of a commit."""
        body = await self._request(
            "get commit", "GET", self._url("commits", quote(commit_sha))
        )
        return _decode("get commit", body, CommitDetail).files

    async def merge_branch(self, source: str, target: str, message: str) -> None:
        """Merge ``source`` into ``target`` with a merge commit."""
        await self._request(
            "merge branch",
            "POST",
            self._url("merges"),
            json={"base": target, "head": source, "commit_message": message},
        )
        self._log.info(
            "github.merge_branch", "Branch merged", source=source, target=target
        )

    async def list_pulls(
        self, *, state: str = "all", head_branch: str | None = None
    ) -> list[PullRequest]:
        """List pull requests in ``state``, following pagination.

        ``head_branch`` restricts the listing to pull requests whose head is
        that branch of the repository owner.
        """
        pulls: list[PullRequest] = []
        page = 1
        while True:
            params: dict[str, str | int] = {
                "state": state,
                "per_page": _PULLS_PER_PAGE,
                "page": page,
            }
            if head_branch is not None:
                params["head"] = f"{self._config.owner}:{head_branch}"
            body = await self._request(
                "list pulls", "GET", self._url("pulls"), params=params
            )
            batch = _decode("list pulls", body, list[PullRequest])
            pulls.extend(batch)
            if len(batch) < _PULLS_PER_PAGE:
                return pulls
            page += 1

    async def create_pull(self, *, head: str, base: str, title: str) -> int | None:
        """Open a pull request and return its number, if GitHub reports one."""
        body = await self._request(
            "create pull",
            "POST",
            self._url("pulls"),
            json={"head": head, "base": base, "title": title},
        )
        return _decode("create pull", body, CreatedPull).number

    async def close_pull(self, number: int) -> None:
        """Close pull request ``number`` without merging."""
        await self._request(
            "close pull",
            "PATCH",
            self._url("pulls", str(number)),
            json={"state": "closed"},
        )

    async def request_reviewers(
        self, number: int, reviewers: cabc.Sequence[str]
    ) -> None:
        """Request reviews from ``reviewers`` on pull request ``number``."""
        await self._request(
            "request reviewers",
            "POST",
            self._url("pulls", str(number), "requested_reviewers"),
            json={"reviewers": list(reviewers)},
        )

    async def delete_branch(self, branch: str) -> None:
        """Delete ``branch``."""
        await self._request(
            "delete branch",
            "DELETE",
            self._url("git", "refs", "heads", quote(branch)),
        )
        self._log.info(
            "github.delete_branch", "Branch removed successfully", branch=branch
        )

    async def fetch_raw(self, url: str) -> str:
        """Fetch an authenticated URL, asking GitHub for raw file content."""
        return await self._request("fetch file", "GET", url, accept=_RAW_MEDIA_TYPE)
