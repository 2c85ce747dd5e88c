"""Metrics tracking for inbox sync runs."""

from __future__ import annotations

import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

logger = logging.getLogger(__name__)

RunStatus = Literal["SUCCESS", "PARTIAL", "FAILED", "SKIPPED"]


@dataclass
class SyncRunMetrics:
    """Metrics for a single sync run."""

    run_id: str
    user_id: str
    started_at: datetime
    ended_at: datetime
    duration_seconds: float
    status: RunStatus

    messages_fetched: int
    messages_imported: int
    messages_duplicate: int
    messages_skipped: int
    messages_failed: int

    skip_reasons: dict[str, int] = field(default_factory=dict)
    error_message: str | None = None
    errors: list[str] = field(default_factory=list)


class SyncMetrics:
    """Metrics tracker for sync runs.

    Runs are processed one at a time, so a single in-progress record is kept.
    """

    def __init__(self, max_history: int = 100):
        """Initialize metrics tracker.

        Args:
            max_history: Maximum number of runs to keep in history
        """
        self.max_history = max_history
        self.runs: deque[SyncRunMetrics] = deque(maxlen=max_history)
        self._current_run: dict | None = None

    def start_run(self, run_id: str, user_id: str) -> None:
        self._current_run = {
            "run_id": run_id,
            "user_id": user_id,
            "started_at": datetime.now(timezone.utc),
            "messages_fetched": 0,
            "messages_imported": 0,
            "messages_duplicate": 0,
            "messages_skipped": 0,
            "messages_failed": 0,
            "skip_reasons": Counter(),
            "errors": [],
        }
        logger.debug(f"Started metrics tracking for run: {run_id}")

    def record_fetch(self, count: int) -> None:
        if self._current_run:
            self._current_run["messages_fetched"] = count

    def record_imported(self) -> None:
        if self._current_run:
            self._current_run["messages_imported"] += 1

    def record_duplicate(self) -> None:
        if self._current_run:
            self._current_run["messages_duplicate"] += 1

    def record_skipped(self, reason: str) -> None:
        if self._current_run:
            self._current_run["messages_skipped"] += 1
            self._current_run["skip_reasons"][reason] += 1

    def record_failed(self, error: str) -> None:
        if self._current_run:
            self._current_run["messages_failed"] += 1
            self._current_run["errors"].append(error)

    def end_run(self, status: RunStatus, error_message: str | None = None) -> SyncRunMetrics | None:
        """Close the current run and append it to history."""
        if not self._current_run:
            logger.warning("end_run called with no active run")
            return None

        current = self._current_run
        ended_at = datetime.now(timezone.utc)
        run = SyncRunMetrics(
            run_id=current["run_id"],
            user_id=current["user_id"],
            started_at=current["started_at"],
            ended_at=ended_at,
            duration_seconds=(ended_at - current["started_at"]).total_seconds(),
            status=status,
            messages_fetched=current["messages_fetched"],
            messages_imported=current["messages_imported"],
            messages_duplicate=current["messages_duplicate"],
            messages_skipped=current["messages_skipped"],
            messages_failed=current["messages_failed"],
            skip_reasons=dict(current["skip_reasons"]),
            error_message=error_message,
            errors=list(current["errors"]),
        )
        self.runs.append(run)
        self._current_run = None
        return run

    def get_last_run(self) -> SyncRunMetrics | None:
        return self.runs[-1] if self.runs else None

    def get_aggregate_metrics(self) -> dict:
        """Totals across the retained run history."""
        if not self.runs:
            return {"total_runs": 0}

        statuses = Counter(run.status for run in self.runs)
        return {
            "total_runs": len(self.runs),
            "successful_runs": statuses["SUCCESS"],
            "partial_runs": statuses["PARTIAL"],
            "failed_runs": statuses["FAILED"],
            "skipped_runs": statuses["SKIPPED"],
            "total_fetched": sum(r.messages_fetched for r in self.runs),
            "total_imported": sum(r.messages_imported for r in self.runs),
            "total_duplicates": sum(r.messages_duplicate for r in self.runs),
            "total_skipped": sum(r.messages_skipped for r in self.runs),
            "total_failed": sum(r.messages_failed for r in self.runs),
            "avg_duration_seconds": round(
                sum(r.duration_seconds for r in self.runs) / len(self.runs), 3
            ),
        }
