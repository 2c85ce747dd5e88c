"""Weekday scheduler for the investment price updater."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

import structlog

from ledgersync.investments.config import PriceScheduleConfig
from ledgersync.investments.updater import PriceUpdater

logger = structlog.get_logger("prices.scheduler")


def next_run_after(now: datetime, config: PriceScheduleConfig) -> datetime:
    """
    The next scheduled run strictly after ``now``.

    The schedule is evaluated in ``config.timezone``; the result is returned
    in that zone. ``now`` must be timezone-aware.
    """
    zone = ZoneInfo(config.timezone)
    local_now = now.astimezone(zone)

    for days_ahead in range(8):
        day = (local_now + timedelta(days=days_ahead)).date()
        if day.weekday() not in config.weekdays:
            continue
        candidate = datetime(
            day.year, day.month, day.day, config.hour, config.minute, tzinfo=zone
        )
        if candidate > local_now:
            return candidate

    # Unreachable with at least one weekday configured
    raise ValueError("No scheduled weekday found")


class PriceScheduler:
    """Runs the price updater at the configured local time on weekdays."""

    def __init__(self, updater: PriceUpdater, config: Optional[PriceScheduleConfig] = None):
        self.updater = updater
        self.config = config or PriceScheduleConfig()

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._next_run: Optional[datetime] = None
        self._last_summary: Optional[Dict[str, Any]] = None

    async def start(self) -> None:
        if self._running:
            logger.warning("scheduler.already_running")
            return
        if not self.config.enabled:
            logger.info("scheduler.disabled")
            return

        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "scheduler.started",
            hour=self.config.hour,
            minute=self.config.minute,
            timezone=self.config.timezone,
        )

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("scheduler.stopped")

    async def _loop(self) -> None:
        while self._running:
            now = datetime.now(timezone.utc)
            self._next_run = next_run_after(now, self.config)
            delay = (self._next_run - now).total_seconds()
            logger.info("scheduler.sleeping", next_run=self._next_run.isoformat())
            await asyncio.sleep(max(delay, 0))

            try:
                await self.run_now()
            except Exception as e:
                logger.error("scheduler.run_error", error=str(e), error_type=type(e).__name__)

    async def run_now(self) -> Dict[str, Any]:
        """Run the updater immediately, outside the schedule."""
        self._last_summary = await self.updater.update_all()
        return self._last_summary

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self._running,
            "next_run": self._next_run.isoformat() if self._next_run else None,
            "last_summary": self._last_summary,
        }
