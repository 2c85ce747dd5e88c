"""User model holding mailbox credentials for inbox sync."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledgersync.db.base import Base


class User(Base):
    """
    An authenticated user of the app.

    The identifier comes from the external auth provider. Gmail tokens are
    written by the client after the OAuth consent flow and read by the sync
    pipeline.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(128), primary_key=True, comment="Auth provider user id"
    )
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    gmail_token: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Gmail OAuth2 access token"
    )
    gmail_refresh_token: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Gmail OAuth2 refresh token"
    )
    gmail_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def has_gmail_token(self) -> bool:
        return bool(self.gmail_token)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, gmail_linked={self.has_gmail_token})>"
