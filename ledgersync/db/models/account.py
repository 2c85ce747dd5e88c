"""Account model: a bank or credit account with a running balance."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Integer, Numeric, String, Index
from sqlalchemy.orm import Mapped, mapped_column

from ledgersync.db.base import Base


class Account(Base):
    """
    A user's deposit or credit account.

    ``balance`` is the authoritative running total. It is changed only by the
    ledger writer (one signed delta per recorded transaction) or by a direct
    user edit, never recomputed from transaction history.
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128), nullable=False, index=True, comment="Owning user"
    )

    name: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="Display name"
    )
    bank: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        comment="Issuing bank, matched against alert email text",
    )
    kind: Mapped[str] = mapped_column(
        String(20), nullable=False, default="deposit", comment="deposit | credit"
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), nullable=False, default=Decimal("0")
    )
    credit_limit: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=18, scale=2), nullable=True
    )
    budgets: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Per-category budget map: category -> {limit, spent}",
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")

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

    __table_args__ = (Index("idx_account_user_created", "user_id", "created_at"),)

    def __repr__(self) -> str:
        return (
            f"<Account(id={self.id}, user_id={self.user_id}, name={self.name}, "
            f"bank={self.bank}, balance={self.balance})>"
        )
