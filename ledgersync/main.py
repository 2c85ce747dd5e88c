from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from ledgersync.core.config import get_settings
from ledgersync.core.logging import configure_logging, request_id_middleware
from ledgersync.db.init import create_tables
from ledgersync.investments.config import PriceScheduleConfig
from ledgersync.investments.quotes import YahooQuoteClient
from ledgersync.investments.router import router as investments_router
from ledgersync.investments.router import set_scheduler
from ledgersync.investments.scheduler import PriceScheduler
from ledgersync.investments.updater import PriceUpdater
from ledgersync.ledger.router import router as ledger_router
from ledgersync.sync.pipeline import SyncPipeline
from ledgersync.sync.router import router as sync_router
from ledgersync.sync.router import set_watcher
from ledgersync.sync.watcher import TriggerWatcher

settings = get_settings()
configure_logging(settings.ENV, settings.DEBUG)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, then start the trigger watcher and price scheduler."""
    logger.info("app.starting", env=settings.ENV)
    await create_tables()

    if not settings.gmail_client_configured:
        logger.warning("app.gmail_client_not_configured")
    if not settings.GEMINI_API_KEY:
        logger.warning("app.gemini_not_configured")

    watcher = TriggerWatcher(
        SyncPipeline(settings), poll_interval_seconds=settings.SYNC_POLL_INTERVAL_SECONDS
    )
    set_watcher(watcher)
    await watcher.recover_interrupted()
    if settings.SYNC_WATCHER_AUTOSTART:
        await watcher.start()

    price_config = PriceScheduleConfig.from_settings(settings)
    scheduler = PriceScheduler(
        PriceUpdater(YahooQuoteClient(timeout=price_config.quote_timeout)), price_config
    )
    set_scheduler(scheduler)
    await scheduler.start()

    logger.info("app.started")
    yield

    logger.info("app.stopping")
    await watcher.stop()
    await scheduler.stop()
    logger.info("app.stopped")


app = FastAPI(title="ledgersync", version="0.1.0", lifespan=lifespan)
app.middleware("http")(request_id_middleware)
app.include_router(sync_router)
app.include_router(ledger_router)
app.include_router(investments_router)


@app.get("/healthz")
def healthz():
    return {"status": "healthy", "env": settings.ENV}
