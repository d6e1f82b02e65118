"""AnalyticsDAO — analytics_snapshots table operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from reporadar.dao.base import BaseDAO
from reporadar.models.analytics import AnalyticsSnapshot


class AnalyticsDAO(BaseDAO[AnalyticsSnapshot]):
    model = AnalyticsSnapshot

    async def get_for_repository(
        self, session: AsyncSession, repository_id: int
    ) -> AnalyticsSnapshot | None:
        return await self.get_by_field(session, repository_id=repository_id)
