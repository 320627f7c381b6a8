"""Structured run-level events for swagger sync.

Per-item progress is logged by the workflow through a bound logger; this
module owns the events describing a whole run so pipeline logs always carry
the same start and completion lines.
"""

from __future__ import annotations

import enum
import typing as typ

from swaggerbot.logging import BoundLogger, bound_logger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from swaggerbot.config import SyncConfig
    from swaggerbot.sources.models import SpecItem

    from .outcomes import SyncSummary


class SyncEventType(enum.StrEnum):
    """Run-level event identifiers."""

    RUN_STARTED = "sync.run.started"
    ITEMS_RESOLVED = "sync.items.resolved"
    RUN_COMPLETED = "sync.run.completed"
    RUN_FAILED_ITEMS = "sync.run.failed_items"


class SyncEventLogger:
    """Emit run-level sync events."""

    def __init__(self, logger: BoundLogger | None = None) -> None:
        """Initialise with the logger receiving events."""
        self._log = logger or bound_logger(__name__)

    def log_run_started(self, config: SyncConfig) -> None:
        """Log the (redacted) configuration of a run."""
        self._log.info(
            SyncEventType.RUN_STARTED, "Configuration loaded", **config.describe()
        )

    def log_items_resolved(self, items: cabc.Sequence[SpecItem]) -> None:
        """Log how many resolved items carry a document."""
        valid = [item for item in items if not item.is_placeholder]
        self._log.info(
            SyncEventType.ITEMS_RESOLVED,
            "Swagger data fetched",
            total_items=len(items),
            valid_items=len(valid),
            items=[
                {"project": i.project, "folder": i.folder, "url": i.source_url}
                for i in valid
            ],
        )

    def log_run_completed(self, summary: SyncSummary) -> None:
        """Log the summary counts and, separately, any failed items."""
        self._log.info(
            SyncEventType.RUN_COMPLETED,
            "Processing completed",
            total=summary.total,
            success=summary.success,
            failed=summary.failed,
            skipped=summary.skipped,
            elapsed_s=summary.elapsed_s,
        )
        if summary.failed:
            self._log.error(
                SyncEventType.RUN_FAILED_ITEMS,
                "Failed items detected",
                failed_count=summary.failed,
                details=[
                    {
                        "project": d.project,
                        "folder": d.folder,
                        "reason": d.reason,
                        "error": d.error,
                    }
                    for d in summary.failures
                ],
            )
