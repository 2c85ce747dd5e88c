"""
Inbox sync module.

Runs the ingestion pipeline (fetch, extract, interpret, match, write) once
per sync trigger and keeps per-run metrics.
"""

from ledgersync.sync.metrics import SyncMetrics
from ledgersync.sync.pipeline import SyncPipeline, SyncRunResult
from ledgersync.sync.watcher import TriggerWatcher

__all__ = ["SyncMetrics", "SyncPipeline", "SyncRunResult", "TriggerWatcher"]
