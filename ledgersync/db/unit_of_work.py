"""Unit of Work pattern for managing database transactions."""

from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ledgersync.db import base
from ledgersync.db.models import Account, Investment, SyncTrigger, Transaction, User
from ledgersync.db.repositories import (
    AccountRepository,
    InvestmentRepository,
    SyncTriggerRepository,
    TransactionRepository,
    UserRepository,
)

SessionFactory = Callable[[], AsyncSession]


class UnitOfWork:
    """
    Unit of Work pattern implementation for managing database transactions.

    All repositories opened inside one context share a session, so a
    transaction insert and its balance update either commit together or
    roll back together.

    Usage:
        async with UnitOfWork() as uow:
            account = await uow.accounts.get(user_id, account_id)
            await uow.transactions.create(...)
            await uow.accounts.adjust_balance(user_id, account_id, delta)
            await uow.commit()
    """

    def __init__(
        self,
        session: Optional[AsyncSession] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        """
        Initialize Unit of Work.

        Args:
            session: Optional existing session (the caller owns commit/close)
            session_factory: Factory for an owned session; defaults to the
                application's AsyncSessionLocal
        """
        self._session = session
        self._owned_session = session is None
        self._session_factory = session_factory

        # Repositories (initialized in __aenter__)
        self.users: UserRepository = None  # type: ignore
        self.accounts: AccountRepository = None  # type: ignore
        self.transactions: TransactionRepository = None  # type: ignore
        self.investments: InvestmentRepository = None  # type: ignore
        self.triggers: SyncTriggerRepository = None  # type: ignore

    async def __aenter__(self):
        """Enter async context manager."""
        if self._owned_session:
            factory = self._session_factory or base.AsyncSessionLocal
            self._session = factory()

        assert self._session is not None, "Session must be initialized"
        self.users = UserRepository(User, self._session)
        self.accounts = AccountRepository(Account, self._session)
        self.transactions = TransactionRepository(Transaction, self._session)
        self.investments = InvestmentRepository(Investment, self._session)
        self.triggers = SyncTriggerRepository(SyncTrigger, self._session)

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager."""
        if exc_type is not None:
            await self.rollback()
        elif self._owned_session:
            await self.commit()

        if self._owned_session and self._session:
            await self._session.close()

    async def commit(self):
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self):
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()
