"""Generic base DAO — the operations every table shares."""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reporadar.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    async def add(self, session: AsyncSession, obj: ModelT) -> ModelT:
        """Insert an already-built instance and flush to assign its key."""
        session.add(obj)
        await session.flush()
        return obj

    async def delete(self, session: AsyncSession, pk: int) -> bool:
        """Delete by primary key; False when no such row."""
        if pk is None:
            raise ValueError("pk must not be None")
        obj = await session.get(self.model, pk)
        if obj is None:
            return False
        await session.delete(obj)
        await session.flush()
        return True

    async def get_by_field(self, session: AsyncSession, **filters: Any) -> ModelT | None:
        """Return the first row matching all *filters*, or None.

        Raises ``ValueError`` if called without any filters.
        """
        if not filters:
            raise ValueError("get_by_field() requires at least one filter")
        stmt = select(self.model)
        for key, val in filters.items():
            stmt = stmt.where(getattr(self.model, key) == val)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(self.model.__table__))
        return result.scalar_one()
