"""
Ledger writer.

Records a transaction and applies its balance delta in one database
transaction. Imports are idempotent per source message: recording a
message id that already has a transaction returns the existing row and
leaves the balance alone.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal, Optional

import structlog
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from ledgersync.core.exceptions import AccountNotFoundError
from ledgersync.core.money import CENT, MAX_AMOUNT
from ledgersync.db.unit_of_work import SessionFactory, UnitOfWork

logger = structlog.get_logger(__name__)

Direction = Literal["debit", "credit"]
Provenance = Literal["manual", "email-import"]


class LedgerResult(BaseModel):
    """Outcome of one ledger write."""

    transaction_id: int
    account_id: int
    new_balance: Optional[Decimal] = None
    duplicate: bool = False


def signed_delta(amount: Decimal, direction: Direction) -> Decimal:
    """Debits reduce the balance, credits increase it."""
    return -amount if direction == "debit" else amount


class LedgerWriter:
    """Persists transactions and keeps account balances in step."""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory

    async def record(
        self,
        user_id: str,
        account_id: int,
        *,
        occurred_on: date | datetime,
        amount: Decimal,
        direction: Direction,
        merchant: str,
        category: str,
        provenance: Provenance = "manual",
        source_message_id: Optional[str] = None,
    ) -> LedgerResult:
        """
        Persist a transaction and adjust its account's balance.

        Args:
            user_id: Owning user
            account_id: Target account (must belong to ``user_id``)
            occurred_on: Transaction date or timestamp
            amount: Non-negative magnitude, rounded to whole cents before storing
            direction: ``debit`` or ``credit``
            merchant: Counterparty label
            category: Category tag
            provenance: ``manual`` or ``email-import``
            source_message_id: Mailbox message id for imported rows

        Returns:
            LedgerResult with the new balance, or ``duplicate=True`` if the
            message was already recorded

        Raises:
            AccountNotFoundError: The account does not exist for this user
            ValueError: ``amount`` is negative or out of range, or the new
                balance would not fit the balance column
        """
        if not amount.is_finite() or amount < 0 or amount >= MAX_AMOUNT:
            raise ValueError(f"Transaction amount out of range: {amount}")
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)

        occurred_at = (
            occurred_on
            if isinstance(occurred_on, datetime)
            else datetime.combine(occurred_on, time.min, tzinfo=timezone.utc)
        )
        log = logger.bind(
            user_id=user_id, account_id=account_id, source_message_id=source_message_id
        )

        try:
            async with UnitOfWork(session_factory=self._session_factory) as uow:
                if source_message_id:
                    existing = await uow.transactions.get_by_source_message(
                        user_id, source_message_id
                    )
                    if existing is not None:
                        log.info("ledger.duplicate_message", transaction_id=existing.id)
                        return LedgerResult(
                            transaction_id=existing.id,
                            account_id=existing.account_id,
                            duplicate=True,
                        )

                account = await uow.accounts.get(user_id, account_id)
                if account is None:
                    raise AccountNotFoundError(
                        f"Account {account_id} not found for user {user_id}"
                    )

                transaction = await uow.transactions.create(
                    user_id=user_id,
                    account_id=account_id,
                    occurred_at=occurred_at,
                    amount=amount,
                    direction=direction,
                    merchant=merchant,
                    category=category,
                    provenance=provenance,
                    source_message_id=source_message_id,
                )
                log.info(
                    "ledger.transaction_saved",
                    transaction_id=transaction.id,
                    amount=str(amount),
                    direction=direction,
                )

                new_balance = await uow.accounts.adjust_balance(
                    user_id, account_id, signed_delta(amount, direction)
                )
                if new_balance is None or abs(new_balance) >= MAX_AMOUNT:
                    raise ValueError(
                        f"Balance of account {account_id} out of range: {new_balance}"
                    )
                log.info("ledger.balance_updated", new_balance=str(new_balance))

                result = LedgerResult(
                    transaction_id=transaction.id,
                    account_id=account_id,
                    new_balance=new_balance,
                )
                await uow.commit()

        except IntegrityError:
            # A concurrent import of the same message won the unique constraint
            if not source_message_id:
                raise
            async with UnitOfWork(session_factory=self._session_factory) as uow:
                existing = await uow.transactions.get_by_source_message(
                    user_id, source_message_id
                )
            if existing is None:
                raise
            log.info("ledger.duplicate_message", transaction_id=existing.id)
            return LedgerResult(
                transaction_id=existing.id,
                account_id=existing.account_id,
                duplicate=True,
            )

        return result
