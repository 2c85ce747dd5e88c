"""
Investment price updater.

For every investment with a ticker symbol (across all users) fetch the
latest price and rewrite ``price``, ``current_value`` and ``last_updated``.
One investment failing does not stop the batch.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import structlog

from ledgersync.db.unit_of_work import SessionFactory, UnitOfWork
from ledgersync.investments.quotes import BaseQuoteClient

logger = structlog.get_logger("prices")


def current_value(price: Decimal, units: Optional[Decimal]) -> Decimal:
    """price x held units; missing units count as zero."""
    return (Decimal(price) * Decimal(units or 0)).quantize(Decimal("0.01"))


class PriceUpdater:
    """Refreshes investment prices from a quote client."""

    def __init__(
        self,
        client: BaseQuoteClient,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.client = client
        self._session_factory = session_factory

    async def update_all(self) -> Dict[str, Any]:
        """
        Run one refresh over every investment that has a symbol.

        Returns:
            Counts of updated, unpriced (no quote) and failed investments
        """
        async with UnitOfWork(session_factory=self._session_factory) as uow:
            investments = await uow.investments.list_with_symbol()

        logger.info(
            "prices.update_started",
            source=self.client.get_source_name(),
            investments=len(investments),
        )
        summary = {"total": len(investments), "updated": 0, "unpriced": 0, "failed": 0}

        for investment in investments:
            log = logger.bind(
                investment_id=investment.id,
                user_id=investment.user_id,
                symbol=investment.symbol,
            )
            try:
                price = await self.client.get_price(investment.symbol or "")
                if price is None:
                    log.warning("prices.no_quote")
                    summary["unpriced"] += 1
                    continue

                value = current_value(price, investment.units)
                async with UnitOfWork(session_factory=self._session_factory) as uow:
                    await uow.investments.put(
                        investment.user_id,
                        investment.id,
                        price=price,
                        current_value=value,
                        last_updated=datetime.now(timezone.utc),
                    )
                    await uow.commit()

                log.info("prices.updated", price=str(price), current_value=str(value))
                summary["updated"] += 1

            except Exception as e:
                log.error("prices.update_failed", error=str(e), error_type=type(e).__name__)
                summary["failed"] += 1

        logger.info("prices.update_completed", **summary)
        return summary
