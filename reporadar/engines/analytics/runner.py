"""AnalyticsRunner — aggregation + snapshot persistence + trigger evaluation."""

from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reporadar.core.config import NotificationSettings
from reporadar.dao.analytics_dao import AnalyticsDAO
from reporadar.dao.milestone_dao import MilestoneDAO
from reporadar.engines.analytics.aggregator import (
    HEALTH_SWING,
    MILESTONES,
    ActivityLevel,
    AnalyticsAggregator,
    crossed_thresholds,
)
from reporadar.engines.sync.models import Notification, NotificationKind
from reporadar.models.analytics import AnalyticsSnapshot
from reporadar.models.repository import TrackedRepository

log = structlog.get_logger("reporadar.engine.analytics")

_METRIC_LABELS = {"stars": "stars", "forks": "forks", "health": "health score"}


class AnalyticsRunner:
    """Runs the aggregator for one record and returns its notifications."""

    def __init__(
        self,
        analytics_dao: AnalyticsDAO,
        milestone_dao: MilestoneDAO,
        aggregator: AnalyticsAggregator | None = None,
    ) -> None:
        self._analytics_dao = analytics_dao
        self._milestone_dao = milestone_dao
        self._aggregator = aggregator or AnalyticsAggregator()

    async def run(
        self,
        session: AsyncSession,
        record: TrackedRepository,
        now: datetime,
        prefs: NotificationSettings,
    ) -> list[Notification]:
        """Aggregate *record* and evaluate health, activity and milestone triggers.

        Milestone markers are written even when notifications are off, so a
        threshold never fires later for a crossing that already happened.
        """
        existing = await self._analytics_dao.get_for_repository(session, record.id)
        snapshot, previous_health, previous_level = self._aggregator.aggregate(
            existing, record, now
        )
        if existing is None:
            await self._analytics_dao.add(session, snapshot)

        notifications: list[Notification] = []

        if previous_health is not None and prefs.health_change:
            swing = snapshot.health_score - previous_health
            if abs(swing) > HEALTH_SWING:
                notifications.append(_health_notification(record, snapshot, swing))

        level = ActivityLevel(snapshot.activity_level)
        if (
            prefs.activity_spike
            and previous_level is not None
            and level.is_spike
            and not previous_level.is_spike
        ):
            notifications.append(_activity_notification(record, level, now))

        milestone_values = {
            "stars": snapshot.star_count,
            "forks": snapshot.fork_count,
            "health": snapshot.health_score,
        }
        for metric, thresholds in MILESTONES.items():
            reached = await self._milestone_dao.reached_thresholds(session, record.id, metric)
            crossed = crossed_thresholds(milestone_values[metric], thresholds, reached)
            if not crossed:
                continue
            await self._milestone_dao.mark(session, record.id, metric, crossed)
            # the first aggregation only sets the baseline
            if existing is not None and prefs.milestone:
                notifications.append(_milestone_notification(record, metric, max(crossed)))

        log.debug(
            "analytics.aggregated",
            repository=record.display_name,
            health=round(snapshot.health_score, 1),
            activity=snapshot.activity_level,
            notifications=len(notifications),
        )
        return notifications


def _health_notification(
    record: TrackedRepository, snapshot: AnalyticsSnapshot, swing: float
) -> Notification:
    direction = "improved" if swing > 0 else "dropped"
    score = round(snapshot.health_score)
    return Notification(
        kind=NotificationKind.HEALTH,
        repository_id=record.id,
        title=f"Health Change: {record.display_name}",
        body=f"Health score {direction} to {score}",
        target_url=record.url,
        dedup_id=f"health-{record.id}-{score}",
    )


def _activity_notification(
    record: TrackedRepository, level: ActivityLevel, now: datetime
) -> Notification:
    return Notification(
        kind=NotificationKind.ACTIVITY,
        repository_id=record.id,
        title=f"Activity Spike: {record.display_name}",
        body=f"Activity is now {level.display_name}",
        target_url=record.url,
        dedup_id=f"activity-{record.id}-{now.date().isoformat()}",
    )


def _milestone_notification(
    record: TrackedRepository, metric: str, threshold: int
) -> Notification:
    return Notification(
        kind=NotificationKind.MILESTONE,
        repository_id=record.id,
        title=f"Milestone: {record.display_name}",
        body=f"Reached {threshold:,} {_METRIC_LABELS[metric]}",
        target_url=record.url,
        dedup_id=f"milestone-{record.id}-{metric}-{threshold}",
    )
