"""Transaction model for manual and email-imported ledger entries."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledgersync.db.base import Base


class Transaction(Base):
    """
    A single debit or credit against one account.

    Rows are created either by the user (provenance ``manual``) or by the
    inbox sync pipeline (provenance ``email-import``, with the Gmail message
    id in ``source_message_id``). Each creation is paired with exactly one
    balance mutation on ``account_id``.
    """

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    account_id: Mapped[int] = mapped_column(
        Integer, nullable=False, index=True, comment="Owning account"
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="When the transaction happened",
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        nullable=False,
        comment="Non-negative magnitude; sign comes from direction",
    )
    direction: Mapped[str] = mapped_column(
        String(10), nullable=False, comment="debit | credit"
    )
    merchant: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    category: Mapped[str] = mapped_column(
        String(50), nullable=False, default="other", index=True
    )

    provenance: Mapped[str] = mapped_column(
        String(20), nullable=False, default="manual", comment="manual | email-import"
    )
    source_message_id: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, comment="Gmail message id for imported rows"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "source_message_id", name="uq_transaction_user_message"
        ),
        Index("idx_transaction_user_date", "user_id", "occurred_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, account_id={self.account_id}, "
            f"amount={self.amount}, direction={self.direction}, "
            f"provenance={self.provenance})>"
        )
