"""Base repository classes with common CRUD operations."""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ledgersync.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository providing common CRUD operations for all models.

    This class implements the repository pattern, providing a clean
    abstraction over database operations. It never commits; the owning
    UnitOfWork decides when a batch of changes becomes durable.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Field values for the new record

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        """Get a record by primary key, or None."""
        return await self.session.get(self.model, id)

    async def filter(self, **filters) -> List[ModelType]:
        """
        Filter records by exact field values.

        Args:
            **filters: Field name and value pairs

        Returns:
            List of matching model instances
        """
        query = select(self.model)
        for field_name, value in filters.items():
            query = query.where(getattr(self.model, field_name) == value)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, **filters) -> int:
        """Count records matching exact field values."""
        query = select(func.count()).select_from(self.model)
        for field_name, value in filters.items():
            query = query.where(getattr(self.model, field_name) == value)

        result = await self.session.execute(query)
        return result.scalar() or 0


class UserScopedRepository(BaseRepository[ModelType]):
    """
    Repository for models owned by a user.

    Every read and write is keyed by ``user_id`` as well as the record id,
    so one user's operations can never touch another user's rows.
    """

    async def get(self, user_id: str, id: int) -> Optional[ModelType]:
        """Get a record by id if it belongs to ``user_id``."""
        result = await self.session.execute(
            select(self.model).where(
                self.model.id == id,  # type: ignore[attr-defined]
                self.model.user_id == user_id,  # type: ignore[attr-defined]
            )
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> List[ModelType]:
        """List a user's records in insertion order."""
        result = await self.session.execute(
            select(self.model)
            .where(self.model.user_id == user_id)  # type: ignore[attr-defined]
            .order_by(self.model.id)  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def put(self, user_id: str, id: int, **kwargs) -> Optional[ModelType]:
        """
        Update fields on a user's record.

        Returns:
            Updated model instance or None if not found for this user
        """
        result = await self.session.execute(
            update(self.model)
            .where(
                self.model.id == id,  # type: ignore[attr-defined]
                self.model.user_id == user_id,  # type: ignore[attr-defined]
            )
            .values(**kwargs)
        )
        await self.session.flush()
        if not result.rowcount:  # type: ignore[attr-defined]
            return None
        instance = await self.get(user_id, id)
        if instance is not None:
            await self.session.refresh(instance)
        return instance

