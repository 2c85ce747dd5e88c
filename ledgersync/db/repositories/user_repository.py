"""User repository."""

from datetime import datetime
from typing import Optional

from ledgersync.db.models.user import User
from ledgersync.db.repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    async def save_gmail_token(
        self,
        user_id: str,
        access_token: str,
        refresh_token: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> User:
        """Store Gmail tokens, creating the user row on first link."""
        user = await self.get_by_id(user_id)
        if user is None:
            user = User(id=user_id)
            self.session.add(user)

        user.gmail_token = access_token
        user.gmail_refresh_token = refresh_token
        user.gmail_token_expires_at = expires_at
        await self.session.flush()
        return user

    async def clear_gmail_token(self, user_id: str) -> bool:
        user = await self.get_by_id(user_id)
        if user is None:
            return False
        user.gmail_token = None
        user.gmail_refresh_token = None
        user.gmail_token_expires_at = None
        await self.session.flush()
        return True
