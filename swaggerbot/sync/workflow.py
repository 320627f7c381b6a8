"""Per-item swagger sync state machine.

Each spec item moves through::

    Start -> VersionExtracted -> BranchEnsured -> FileWritten
          -> (MergedTrivial | PullRequestManaged) -> Done

The branch name ``{prefix}/{project}/{folder}/{version}`` is deterministic,
so re-running with identical input targets the same branch and the file
write reports the content as unchanged. Items run concurrently and share only
read-only configuration; the remote repository's sha checks are the only
concurrency control.
"""

from __future__ import annotations

import asyncio
import time
import typing as typ

import msgspec

from swaggerbot.github.errors import GitHubAPIError, GitHubNotFoundError
from swaggerbot.http.errors import FetchError
from swaggerbot.logging import BoundLogger, bound_logger

from .outcomes import OutcomeReason, SyncOutcome, SyncSummary

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from swaggerbot.config import SyncConfig
    from swaggerbot.github.client import GitHubRepository
    from swaggerbot.github.models import ChangedFile
    from swaggerbot.sources.models import SpecItem

SPEC_FILE_NAME = "swagger.json"
_TAG = "sync.item"

# Errors from GitHub or the transport that a step may recover from.
_REMOTE_ERRORS = (GitHubAPIError, FetchError)


class _VersionError(Exception):
    """Spec document has no usable ``info.version``."""

    def __init__(self, reason: OutcomeReason) -> None:
        self.reason = reason
        super().__init__(reason.value)


def trim_version(value: object) -> str:
    """Return the version up to the first whitespace.

    >>> trim_version("1.0.0-16 | 1.0")
    '1.0.0-16'

    """
    parts = str(value).split()
    return parts[0] if parts else ""


def extract_version(document: object) -> str:
    """Return the trimmed ``info.version`` of a parsed spec document.

    Raises
    ------
    _VersionError
        With ``no_version`` when ``info.version`` is absent and
        ``empty_version`` when it is blank.

    """
    info = document.get("info") if isinstance(document, dict) else None
    if not isinstance(info, dict) or info.get("version") is None:
        raise _VersionError(OutcomeReason.NO_VERSION)
    version = trim_version(info["version"])
    if not version:
        raise _VersionError(OutcomeReason.EMPTY_VERSION)
    return version


def branch_name(prefix: str, project: str, folder: str, version: str) -> str:
    """Return the sync branch for one (project, folder, version) triple.

    >>> branch_name("swaggerbot", "orders", "v2", "1.2.0-5")
    'swaggerbot/orders/v2/1.2.0-5'

    """
    return f"{prefix}/{project}/{folder}/{version}"


def commit_message(project: str, folder: str, version: str) -> str:
    """Return the commit message, also used as the pull request title."""
    return f"build: bump {project}/{folder} to {version}"


def is_trivial_bump(files: cabc.Sequence[ChangedFile]) -> bool:
    """Return ``True`` for a one-file diff of one added and one removed line."""
    if len(files) != 1:
        return False
    only = files[0]
    return only.additions == 1 and only.deletions == 1


def supersedes(title: str, key: str) -> bool:
    """Return ``True`` when a pull request title proposes ``key``.

    The key must appear as a whole space-delimited token, so ``orders/v2``
    does not match a title for ``orders/v20``.
    """
    return f" {key} " in f" {title} "


class SwaggerSyncWorkflow:
    """Sync resolved spec items into the target repository.

    Parameters
    ----------
    client
        Repository operations, usually a :class:`GitHubRepoClient`.
    config
        Branch prefix, base branch and reviewers of the run.
    logger
        Parent logger; each item gets a child logger bound to its identity.

    """

    def __init__(
        self,
        client: GitHubRepository,
        config: SyncConfig,
        *,
        logger: BoundLogger | None = None,
    ) -> None:
        """Initialise the workflow."""
        self._client = client
        self._config = config
        self._log = logger or bound_logger(__name__)

    async def run(self, items: cabc.Sequence[SpecItem]) -> SyncSummary:
        """Sync every item concurrently and summarise the outcomes.

        All items run to completion; one item's failure never cancels
        another.
        """
        started = time.monotonic()
        results = await asyncio.gather(
            *(self.sync_item(item, index=index) for index, item in enumerate(items)),
            return_exceptions=True,
        )
        outcomes = [
            self._outcome_from_result(item, result)
            for item, result in zip(items, results, strict=True)
        ]
        return SyncSummary.from_outcomes(
            outcomes, elapsed_s=time.monotonic() - started
        )

    @staticmethod
    def _outcome_from_result(
        item: SpecItem, result: SyncOutcome | BaseException
    ) -> SyncOutcome:
        if isinstance(result, BaseException):
            return SyncOutcome.failed(
                item.project,
                item.folder,
                OutcomeReason.UNEXPECTED_ERROR,
                error=str(result) or type(result).__name__,
            )
        return result

    async def sync_item(self, item: SpecItem, *, index: int = 0) -> SyncOutcome:
        """Run the state machine for one item, containing every error."""
        log = self._log.bind(
            item_index=index, project=item.project, folder=item.folder
        )
        try:
            return await self._sync(item, log)
        except Exception as exc:  # noqa: BLE001 - contain failures per item
            log.error(
                _TAG,
                "Unexpected error during processing",
                error=str(exc),
                exc_info=exc,
            )
            return SyncOutcome.failed(
                item.project,
                item.folder,
                OutcomeReason.UNEXPECTED_ERROR,
                error=str(exc) or type(exc).__name__,
            )

    async def _sync(self, item: SpecItem, log: BoundLogger) -> SyncOutcome:  # noqa: PLR0911
        project, folder = item.project, item.folder
        if item.is_placeholder or not isinstance(item.raw_content, str):
            log.warning(_TAG, "Skipping invalid data", url=item.source_url)
            return SyncOutcome.skipped(
                project, folder, OutcomeReason.INVALID_DATA, error=item.error
            )

        try:
            document = msgspec.json.decode(item.raw_content)
            content = msgspec.json.format(item.raw_content, indent=2)
        except msgspec.DecodeError as exc:
            log.error(_TAG, "Failed to parse JSON", url=item.source_url, error=str(exc))
            return SyncOutcome.failed(
                project, folder, OutcomeReason.JSON_PARSE_ERROR, error=str(exc)
            )

        try:
            version = extract_version(document)
        except _VersionError as exc:
            log.error(_TAG, "Missing version in swagger data", reason=exc.reason)
            return SyncOutcome.failed(project, folder, exc.reason)

        log = log.bind(version=version)
        log.info(_TAG, "Processing version")

        branch = branch_name(self._config.branch_prefix, project, folder, version)
        message = commit_message(project, folder, version)
        path = f"{project}/{folder}/{SPEC_FILE_NAME}"

        branch_error = await self._ensure_branch(branch, log)
        sha = await self._existing_sha(branch, path, log)

        try:
            written = await self._client.write_file(branch, path, content, message, sha)
        except _REMOTE_ERRORS as exc:
            reason = (
                OutcomeReason.BRANCH_CREATION_ERROR
                if branch_error is not None and isinstance(exc, GitHubNotFoundError)
                else OutcomeReason.FILE_CREATION_ERROR
            )
            log.error(_TAG, "Failed to create file", path=path, error=str(exc))
            return SyncOutcome.failed(
                project, folder, reason, version=version, error=str(exc)
            )

        if not written.changed:
            return await self._settle_unchanged(item, branch, version, log)

        if written.commit_sha and await self._is_trivial_commit(written.commit_sha):
            log.info(
                _TAG,
                "Version-only change detected, auto-merging",
                branch=branch,
                base_branch=self._config.base_branch,
            )
            await self._client.merge_branch(
                branch, self._config.base_branch, f"auto merge {message}"
            )
            await self._remove_merged_branch(branch, log)
            return SyncOutcome.skipped(
                project, folder, OutcomeReason.AUTO_MERGED, version=version
            )

        await self._close_stale_pulls(f"{project}/{folder}", log)
        return await self._open_pull(item, branch, message, version, log)

    async def _ensure_branch(self, branch: str, log: BoundLogger) -> Exception | None:
        """Create the sync branch; return the error instead of raising it."""
        try:
            created = await self._client.create_branch(
                branch, self._config.base_branch
            )
        except _REMOTE_ERRORS as exc:
            log.warning(
                _TAG,
                "Failed to create branch, continuing",
                branch=branch,
                error=str(exc),
            )
            return exc
        log.debug(_TAG, "Branch ensured", branch=branch, created=created)
        return None

    async def _existing_sha(
        self, branch: str, path: str, log: BoundLogger
    ) -> str | None:
        try:
            existing = await self._client.read_file(branch, path)
        except GitHubNotFoundError:
            log.debug(_TAG, "File does not exist yet", path=path)
            return None
        except _REMOTE_ERRORS as exc:
            log.warning(
                _TAG, "Failed to read file but continue", path=path, error=str(exc)
            )
            return None
        return existing.sha

    async def _settle_unchanged(
        self, item: SpecItem, branch: str, version: str, log: BoundLogger
    ) -> SyncOutcome:
        """Keep a branch that has a pull request, delete it otherwise."""
        pulls = await self._client.list_pulls(state="all", head_branch=branch)
        if pulls:
            log.info(_TAG, "PR already exists, skipping", pr_count=len(pulls))
            return SyncOutcome.skipped(
                item.project, item.folder, OutcomeReason.PR_EXISTS, version=version
            )

        log.debug(_TAG, "Removing branch (no changes)", branch=branch)
        await self._client.delete_branch(branch)
        return SyncOutcome.skipped(
            item.project, item.folder, OutcomeReason.NO_CHANGES, version=version
        )

    async def _remove_merged_branch(self, branch: str, log: BoundLogger) -> None:
        try:
            await self._client.delete_branch(branch)
        except _REMOTE_ERRORS as exc:
            log.warning(
                _TAG,
                "Failed to remove merged branch (non-critical)",
                branch=branch,
                error=str(exc),
            )
            return
        log.debug(_TAG, "Removed merged branch", branch=branch)

    async def _is_trivial_commit(self, commit_sha: str) -> bool:
        files = await self._client.get_commit_changed_files(commit_sha)
        return is_trivial_bump(files)

    async def _close_stale_pulls(
        self, key: str, log: BoundLogger, *, keep: int | None = None
    ) -> None:
        """Close open pull requests for the same spec; failures are non-fatal.

        With ``keep`` set, only pull requests numbered below it are closed, so
        of two items racing on one spec the later-created pull request stays
        open.
        """
        try:
            open_pulls = await self._client.list_pulls(state="open")
            stale = [
                pull
                for pull in open_pulls
                if supersedes(pull.title, key) and (keep is None or pull.number < keep)
            ]
            if not stale:
                log.debug(_TAG, "No matching PRs found", commit_key=key)
                return
            log.info(
                _TAG,
                f"Closing {len(stale)} existing PR(s)",
                commit_key=key,
                pr_numbers=[pull.number for pull in stale],
            )
            await asyncio.gather(
                *(self._client.close_pull(pull.number) for pull in stale)
            )
        except _REMOTE_ERRORS as exc:
            log.warning(
                _TAG, "Failed to close old PRs (non-critical)", error=str(exc)
            )

    async def _open_pull(  # noqa: PLR0913
        self,
        item: SpecItem,
        branch: str,
        title: str,
        version: str,
        log: BoundLogger,
    ) -> SyncOutcome:
        project, folder = item.project, item.folder
        try:
            log.info(_TAG, "Creating pull request", branch=branch)
            pull_number = await self._client.create_pull(
                head=branch, base=self._config.base_branch, title=title
            )
        except _REMOTE_ERRORS as exc:
            log.error(_TAG, "Failed to create PR", branch=branch, error=str(exc))
            return SyncOutcome.failed(
                project,
                folder,
                OutcomeReason.PR_CREATION_ERROR,
                version=version,
                error=str(exc),
            )

        if not pull_number:
            log.error(_TAG, "No pull number returned", branch=branch)
            return SyncOutcome.failed(
                project, folder, OutcomeReason.NO_PULL_NUMBER, version=version
            )

        log.info(_TAG, "Pull request created", pull_number=pull_number)
        await self._close_stale_pulls(f"{project}/{folder}", log, keep=pull_number)
        await self._request_reviewers(pull_number, log)
        return SyncOutcome.success(
            project, folder, version=version, pull_number=pull_number
        )

    async def _request_reviewers(self, pull_number: int, log: BoundLogger) -> None:
        reviewers = self._config.reviewers
        if not reviewers:
            return
        try:
            await self._client.request_reviewers(pull_number, reviewers)
        except _REMOTE_ERRORS as exc:
            log.warning(
                _TAG,
                "Failed to assign reviewers (non-critical)",
                pull_number=pull_number,
                error=str(exc),
            )
            return
        log.info(
            _TAG,
            "Reviewers assigned",
            reviewers=list(reviewers),
            pull_number=pull_number,
        )
