"""
Investment price updates.

Refreshes per-unit prices for investments with a ticker symbol from an
external quote service on a weekday schedule and recomputes current value.
"""

from ledgersync.investments.config import PriceScheduleConfig
from ledgersync.investments.quotes import BaseQuoteClient, YahooQuoteClient
from ledgersync.investments.scheduler import PriceScheduler, next_run_after
from ledgersync.investments.updater import PriceUpdater

__all__ = [
    "PriceScheduleConfig",
    "BaseQuoteClient",
    "YahooQuoteClient",
    "PriceScheduler",
    "next_run_after",
    "PriceUpdater",
]
