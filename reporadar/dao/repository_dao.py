"""RepositoryDAO — repositories table operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reporadar.dao.base import BaseDAO
from reporadar.models.repository import TrackedRepository
from reporadar.platforms.models import RepositoryIdentifier


class RepositoryDAO(BaseDAO[TrackedRepository]):
    model = TrackedRepository

    async def list_all(self, session: AsyncSession) -> list[TrackedRepository]:
        """All tracked repositories ordered by ``full_name`` (sync order)."""
        stmt = select(TrackedRepository).order_by(
            TrackedRepository.full_name, TrackedRepository.id
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_identifier(
        self, session: AsyncSession, identifier: RepositoryIdentifier
    ) -> TrackedRepository | None:
        """Exact, case-sensitive match on ``(platform, owner, name)``."""
        return await self.get_by_field(
            session,
            platform=identifier.platform.value,
            owner=identifier.owner,
            name=identifier.name,
        )
