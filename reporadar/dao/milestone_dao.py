"""MilestoneDAO — milestone_markers table operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reporadar.dao.base import BaseDAO
from reporadar.models.milestone import MilestoneMarker


class MilestoneDAO(BaseDAO[MilestoneMarker]):
    model = MilestoneMarker

    async def reached_thresholds(
        self, session: AsyncSession, repository_id: int, metric: str
    ) -> set[int]:
        """Thresholds of *metric* already marked for *repository_id*."""
        stmt = select(MilestoneMarker.threshold).where(
            MilestoneMarker.repository_id == repository_id,
            MilestoneMarker.metric == metric,
        )
        result = await session.execute(stmt)
        return set(result.scalars().all())

    async def mark(
        self, session: AsyncSession, repository_id: int, metric: str, thresholds: list[int]
    ) -> None:
        if not thresholds:
            return
        session.add_all(
            MilestoneMarker(repository_id=repository_id, metric=metric, threshold=t)
            for t in thresholds
        )
        await session.flush()
