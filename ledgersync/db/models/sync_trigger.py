"""Sync trigger marker: its existence requests one inbox sync run."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from ledgersync.db.base import Base


class SyncTrigger(Base):
    """
    Short-lived marker that starts one pipeline run for a user.

    Keyed by user, so at most one run can be pending or in flight per user.
    The pipeline deletes the row when the run ends, successful or not.
    """

    __tablename__ = "sync_triggers"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", comment="pending | running"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<SyncTrigger(user_id={self.user_id}, status={self.status})>"
