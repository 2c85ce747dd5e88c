"""Transaction repository with ledger-specific queries."""

from typing import Optional

from sqlalchemy import select

from ledgersync.db.models.transaction import Transaction
from ledgersync.db.repository import UserScopedRepository


class TransactionRepository(UserScopedRepository[Transaction]):
    """Repository for Transaction model."""

    async def get_by_source_message(
        self, user_id: str, message_id: str
    ) -> Optional[Transaction]:
        """Get the transaction imported from a given email, if any."""
        result = await self.session.execute(
            select(Transaction).where(
                Transaction.user_id == user_id,
                Transaction.source_message_id == message_id,
            )
        )
        return result.scalar_one_or_none()

