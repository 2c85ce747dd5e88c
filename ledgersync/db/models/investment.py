"""Investment model: recurring plans and single instruments."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ledgersync.db.base import Base


class Investment(Base):
    """
    A tracked investment.

    ``current_value`` is always ``price * units`` and is rewritten whenever
    the price updater refreshes ``price`` for a row that carries a ``symbol``.
    """

    __tablename__ = "investments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="recurring | single-instrument"
    )
    contribution_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), nullable=False, default=Decimal("0")
    )
    installments: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=4),
        nullable=False,
        default=Decimal("0"),
        comment="Current per-unit price (NAV for recurring plans)",
    )
    units: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=18, scale=6), nullable=True
    )
    symbol: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True, index=True, comment="Ticker symbol for quotes"
    )
    current_value: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), nullable=False, default=Decimal("0")
    )
    last_updated: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return (
            f"<Investment(id={self.id}, name={self.name}, symbol={self.symbol}, "
            f"price={self.price}, current_value={self.current_value})>"
        )
