"""Repository for sync trigger markers."""

from typing import List, Optional

from sqlalchemy import delete, select, update

from ledgersync.db.models.sync_trigger import SyncTrigger
from ledgersync.db.repository import BaseRepository


class SyncTriggerRepository(BaseRepository[SyncTrigger]):
    """Repository for SyncTrigger model."""

    async def get_for_user(self, user_id: str) -> Optional[SyncTrigger]:
        return await self.session.get(SyncTrigger, user_id)

    async def list_pending(self, limit: Optional[int] = None) -> List[SyncTrigger]:
        """Pending triggers, oldest first."""
        query = (
            select(SyncTrigger)
            .where(SyncTrigger.status == "pending")
            .order_by(SyncTrigger.created_at.asc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def claim(self, user_id: str) -> bool:
        """
        Move a pending trigger to running.

        Returns:
            False if the trigger was already claimed or no longer exists
        """
        result = await self.session.execute(
            update(SyncTrigger)
            .where(SyncTrigger.user_id == user_id, SyncTrigger.status == "pending")
            .values(status="running")
        )
        await self.session.flush()
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    async def delete_for_user(self, user_id: str) -> bool:
        result = await self.session.execute(
            delete(SyncTrigger).where(SyncTrigger.user_id == user_id)
        )
        await self.session.flush()
        return (result.rowcount or 0) > 0  # type: ignore[attr-defined]

    async def requeue_running(self) -> int:
        """
        Return every running trigger to pending.

        Only safe while no run is in flight, i.e. at process start-up, when a
        running row can only be left over from a run that was interrupted.

        Returns:
            Number of triggers requeued
        """
        result = await self.session.execute(
            update(SyncTrigger)
            .where(SyncTrigger.status == "running")
            .values(status="pending")
        )
        await self.session.flush()
        return result.rowcount or 0  # type: ignore[attr-defined]
