"""
Sync trigger watcher.

Polls the sync_triggers table and runs the pipeline once for each pending
trigger. Creating a trigger row is the only way to request a run; the
watcher never invents work on its own.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import structlog

from ledgersync.db.unit_of_work import SessionFactory, UnitOfWork
from ledgersync.sync.pipeline import SyncPipeline, SyncRunResult

logger = structlog.get_logger("sync.watcher")


class TriggerWatcher:
    """Background service that drains pending sync triggers."""

    def __init__(
        self,
        pipeline: SyncPipeline,
        poll_interval_seconds: int = 5,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.pipeline = pipeline
        self.poll_interval_seconds = poll_interval_seconds
        self._session_factory = session_factory

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._drain_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the polling loop in the background."""
        if self._running:
            logger.warning("watcher.already_running")
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("watcher.started", interval_seconds=self.poll_interval_seconds)

    async def stop(self) -> None:
        """Stop the polling loop; a run in progress is cancelled."""
        if not self._running:
            logger.debug("watcher.not_running")
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("watcher.stopped")

    async def recover_interrupted(self) -> int:
        """
        Requeue triggers left running by a process that stopped mid-run.

        Call once before ``start()``; otherwise those users could never
        request another sync.
        """
        async with UnitOfWork(session_factory=self._session_factory) as uow:
            requeued = await uow.triggers.requeue_running()
            await uow.commit()

        if requeued:
            logger.warning("watcher.requeued_interrupted", count=requeued)
        return requeued

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.drain_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("watcher.poll_error", error=str(e), error_type=type(e).__name__)

            await asyncio.sleep(self.poll_interval_seconds)

    async def drain_once(self) -> List[SyncRunResult]:
        """
        Run the pipeline for every pending trigger, one after another.

        Returns:
            Results of the runs that completed (failed runs are logged)
        """
        if self._drain_lock.locked():
            logger.debug("watcher.drain_in_progress")
            return []

        async with self._drain_lock:
            async with UnitOfWork(session_factory=self._session_factory) as uow:
                pending = [t.user_id for t in await uow.triggers.list_pending()]

            results: List[SyncRunResult] = []
            for user_id in pending:
                async with UnitOfWork(session_factory=self._session_factory) as uow:
                    claimed = await uow.triggers.claim(user_id)
                    await uow.commit()
                if not claimed:
                    continue

                try:
                    results.append(await self.pipeline.run(user_id))
                except Exception as e:
                    logger.error(
                        "watcher.run_failed",
                        user_id=user_id,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
            return results

    def get_status(self) -> Dict[str, Any]:
        metrics = self.pipeline.metrics
        last_run = metrics.get_last_run()
        return {
            "running": self._running,
            "poll_interval_seconds": self.poll_interval_seconds,
            "llm_enabled": self.pipeline.interpreter is not None,
            "last_run": (
                {
                    "run_id": last_run.run_id,
                    "user_id": last_run.user_id,
                    "started_at": last_run.started_at.isoformat(),
                    "status": last_run.status,
                    "messages_fetched": last_run.messages_fetched,
                    "messages_imported": last_run.messages_imported,
                    "messages_skipped": last_run.messages_skipped,
                    "messages_failed": last_run.messages_failed,
                    "duration_seconds": last_run.duration_seconds,
                }
                if last_run
                else None
            ),
            "aggregate_metrics": metrics.get_aggregate_metrics(),
        }
