"""Per-item sync outcomes and the run summary."""

from __future__ import annotations

import enum
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class OutcomeStatus(enum.StrEnum):
    """Terminal status of one sync item."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class OutcomeReason(enum.StrEnum):
    """Why an item was skipped or failed."""

    INVALID_DATA = "invalid_data"
    JSON_PARSE_ERROR = "json_parse_error"
    NO_VERSION = "no_version"
    EMPTY_VERSION = "empty_version"
    PR_EXISTS = "pr_exists"
    NO_CHANGES = "no_changes"
    AUTO_MERGED = "auto_merged"
    BRANCH_CREATION_ERROR = "branch_creation_error"
    FILE_CREATION_ERROR = "file_creation_error"
    PR_CREATION_ERROR = "pr_creation_error"
    NO_PULL_NUMBER = "no_pull_number"
    UNEXPECTED_ERROR = "unexpected_error"


class SyncOutcome(msgspec.Struct, kw_only=True, frozen=True, omit_defaults=True):
    """Result of syncing one spec item.

    Attributes
    ----------
    status
        ``success``, ``skipped`` or ``failed``.
    project
        Project slug of the item.
    folder
        Folder slug of the item.
    version
        Trimmed spec version, when it was extracted.
    reason
        Why the item was skipped or failed; ``None`` for success.
    pull_number
        Number of the pull request opened for a successful item.
    error
        Error message for failures.

    """

    status: OutcomeStatus
    project: str
    folder: str
    version: str | None = None
    reason: OutcomeReason | None = None
    pull_number: int | None = None
    error: str | None = None

    @classmethod
    def success(
        cls, project: str, folder: str, *, version: str, pull_number: int
    ) -> SyncOutcome:
        """Return a success outcome for an opened pull request."""
        return cls(
            status=OutcomeStatus.SUCCESS,
            project=project,
            folder=folder,
            version=version,
            pull_number=pull_number,
        )

    @classmethod
    def skipped(
        cls,
        project: str,
        folder: str,
        reason: OutcomeReason,
        *,
        version: str | None = None,
        error: str | None = None,
    ) -> SyncOutcome:
        """Return a skipped outcome."""
        return cls(
            status=OutcomeStatus.SKIPPED,
            project=project,
            folder=folder,
            version=version,
            reason=reason,
            error=error,
        )

    @classmethod
    def failed(
        cls,
        project: str,
        folder: str,
        reason: OutcomeReason,
        *,
        version: str | None = None,
        error: str | None = None,
    ) -> SyncOutcome:
        """Return a failed outcome."""
        return cls(
            status=OutcomeStatus.FAILED,
            project=project,
            folder=folder,
            version=version,
            reason=reason,
            error=error,
        )


class SyncSummary(msgspec.Struct, kw_only=True, frozen=True):
    """Aggregate of every outcome in a run.

    ``details`` lists every outcome in input order, so skipped and failed
    items can be inspected together.
    """

    total: int
    success: int
    failed: int
    skipped: int
    details: list[SyncOutcome]
    elapsed_s: float = 0.0

    @classmethod
    def from_outcomes(
        cls, outcomes: cabc.Sequence[SyncOutcome], *, elapsed_s: float = 0.0
    ) -> SyncSummary:
        """Count outcomes by status."""
        counts = dict.fromkeys(OutcomeStatus, 0)
        for outcome in outcomes:
            counts[outcome.status] += 1
        return cls(
            total=len(outcomes),
            success=counts[OutcomeStatus.SUCCESS],
            failed=counts[OutcomeStatus.FAILED],
            skipped=counts[OutcomeStatus.SKIPPED],
            details=list(outcomes),
            elapsed_s=round(elapsed_s, 2),
        )

    @property
    def failures(self) -> list[SyncOutcome]:
        """Return the failed outcomes."""
        return [d for d in self.details if d.status == OutcomeStatus.FAILED]

    @property
    def exit_code(self) -> int:
        """Return ``1`` when any item failed, else ``0``."""
        return 1 if self.failed else 0

    def to_json(self) -> str:
        """Encode the summary as a single JSON line."""
        return msgspec.json.encode(self).decode("utf-8")
