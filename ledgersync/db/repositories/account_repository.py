"""Account repository with balance mutation."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import update

from ledgersync.db.models.account import Account
from ledgersync.db.repository import UserScopedRepository


class AccountRepository(UserScopedRepository[Account]):
    """Repository for Account model."""

    async def adjust_balance(
        self, user_id: str, account_id: int, delta: Decimal
    ) -> Optional[Decimal]:
        """
        Apply a signed delta to an account's balance.

        The increment is a single ``UPDATE ... SET balance = balance + delta``
        so two writers against the same account cannot lose each other's
        change the way a read-then-write would.

        Args:
            user_id: Owning user
            account_id: Account to mutate
            delta: Signed amount (negative for debits)

        Returns:
            The new balance, or None if the account does not exist for this user
        """
        result = await self.session.execute(
            update(Account)
            .where(Account.id == account_id, Account.user_id == user_id)
            .values(balance=Account.balance + delta)
        )
        await self.session.flush()
        if not result.rowcount:  # type: ignore[attr-defined]
            return None

        account = await self.get(user_id, account_id)
        if account is None:
            return None
        await self.session.refresh(account, attribute_names=["balance"])
        return account.balance

    async def create_default(self, user_id: str) -> Account:
        """Create the bank-agnostic zero-balance fallback account."""
        return await self.create(
            user_id=user_id,
            name="Default Account",
            bank="Unknown",
            kind="deposit",
            balance=Decimal("0"),
            currency="INR",
        )
