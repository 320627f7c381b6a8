"""Branch-per-version sync of spec documents into a GitHub repository."""

from __future__ import annotations

from .observability import SyncEventLogger, SyncEventType
from .outcomes import OutcomeReason, OutcomeStatus, SyncOutcome, SyncSummary
from .workflow import (
    SPEC_FILE_NAME,
    SwaggerSyncWorkflow,
    branch_name,
    commit_message,
    extract_version,
    is_trivial_bump,
    supersedes,
    trim_version,
)

__all__ = [
    "SPEC_FILE_NAME",
    "OutcomeReason",
    "OutcomeStatus",
    "SwaggerSyncWorkflow",
    "SyncEventLogger",
    "SyncEventType",
    "SyncOutcome",
    "SyncSummary",
    "branch_name",
    "commit_message",
    "extract_version",
    "is_trivial_bump",
    "supersedes",
    "trim_version",
]
