"""Investment repository."""

from typing import List

from sqlalchemy import select

from ledgersync.db.models.investment import Investment
from ledgersync.db.repository import UserScopedRepository


class InvestmentRepository(UserScopedRepository[Investment]):
    """Repository for Investment model."""

    async def list_with_symbol(self) -> List[Investment]:
        """
        List every investment that carries a ticker symbol, across all users.

        Used by the scheduled price updater, which is not scoped to a user.
        """
        result = await self.session.execute(
            select(Investment)
            .where(Investment.symbol.is_not(None), Investment.symbol != "")
            .order_by(Investment.id)
        )
        return list(result.scalars().all())
