"""FastAPI router for inbox sync requests and Gmail linking."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from ledgersync.db.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])

# Global watcher instance (set by main app)
_watcher = None


def set_watcher(watcher):
    """Set the global watcher instance."""
    global _watcher
    _watcher = watcher


class SyncRequestResponse(BaseModel):
    user_id: str
    status: str
    requested_at: datetime


class GmailTokenRequest(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None


@router.post(
    "/sync/{user_id}",
    response_model=SyncRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def request_sync(user_id: str):
    """Create a sync trigger for the user.

    The trigger watcher picks it up and runs the pipeline; the trigger is
    removed when that run ends. Only one trigger can exist per user.
    """
    try:
        async with UnitOfWork() as uow:
            existing = await uow.triggers.get_for_user(user_id)
            if existing is not None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Sync already {existing.status} for this user",
                )
            trigger = await uow.triggers.create(user_id=user_id, status="pending")
            await uow.commit()
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Sync already requested for this user",
        )

    logger.info(f"[SYNC] Sync requested for user {user_id}")
    return SyncRequestResponse(
        user_id=user_id, status=trigger.status, requested_at=trigger.created_at
    )


@router.get("/sync/status")
async def sync_status():
    """Watcher state and run metrics."""
    if _watcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sync watcher not initialized",
        )
    return _watcher.get_status()


@router.put("/users/{user_id}/gmail-token", status_code=status.HTTP_204_NO_CONTENT)
async def save_gmail_token(user_id: str, body: GmailTokenRequest):
    """Store the user's Gmail OAuth tokens after the consent flow."""
    async with UnitOfWork() as uow:
        await uow.users.save_gmail_token(
            user_id,
            access_token=body.access_token,
            refresh_token=body.refresh_token,
            expires_at=body.expires_at,
        )
        await uow.commit()


@router.delete("/users/{user_id}/gmail-token", status_code=status.HTTP_204_NO_CONTENT)
async def remove_gmail_token(user_id: str):
    """Unlink Gmail; later sync runs end early for this user."""
    async with UnitOfWork() as uow:
        if not await uow.users.clear_gmail_token(user_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        await uow.commit()
