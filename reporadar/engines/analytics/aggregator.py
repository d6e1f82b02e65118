"""Analytics aggregation — growth, health score and activity level.

Pure computation over a :class:`TrackedRepository` and its previous
:class:`AnalyticsSnapshot`; no DB access, no network.
"""

from __future__ import annotations

import enum
from datetime import datetime

from reporadar.models.analytics import HISTORY_LIMIT, AnalyticsSnapshot
from reporadar.models.repository import TrackedRepository

HEALTH_SWING = 20.0
INITIAL_HEALTH = 50.0

STAR_MILESTONES = [10, 50, 100, 500, 1000, 5000, 10000, 50000, 100000]
FORK_MILESTONES = [10, 50, 100, 500, 1000, 5000]
HEALTH_MILESTONES = [80, 90]

MILESTONES: dict[str, list[int]] = {
    "stars": STAR_MILESTONES,
    "forks": FORK_MILESTONES,
    "health": HEALTH_MILESTONES,
}


class ActivityLevel(str, enum.Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def is_spike(self) -> bool:
        return self in (ActivityLevel.HIGH, ActivityLevel.VERY_HIGH)


def push_capped(history: list[int] | None, value: int, limit: int = HISTORY_LIMIT) -> list[int]:
    """Return a new list with *value* appended, oldest entries evicted past *limit*."""
    updated = [*(history or []), value]
    return updated[-limit:]


def record_daily(history: list[int] | None, value: int, same_day: bool) -> list[int]:
    """One entry per UTC day: overwrite today's entry, or start a new day's."""
    if same_day and history:
        return [*history[:-1], value]
    return push_capped(history, value)


def health_score(
    *,
    stars_week: int,
    issues_closed: int,
    prs_merged: int,
    issue_count: int,
    star_count: int,
    last_commit_date: datetime | None,
    now: datetime,
) -> float:
    score = INITIAL_HEALTH

    # activity volume (0-25)
    volume = stars_week + issues_closed + prs_merged
    if volume > 50:
        score += 25
    elif volume > 20:
        score += 15
    elif volume > 5:
        score += 5

    # issue resolution (0-15)
    if issue_count > 0:
        resolution_rate = issues_closed / issue_count * 100
        score += min(resolution_rate * 0.15, 15)

    # community (0-10)
    if star_count > 100:
        score += 10
    elif star_count > 50:
        score += 7
    elif star_count > 10:
        score += 3

    # recency (0-10)
    if last_commit_date is not None:
        days = (now - last_commit_date).total_seconds() / 86400
        if days < 7:
            score += 10
        elif days < 30:
            score += 5

    return min(score, 100.0)


def activity_level(stars_today: int, issues_closed: int) -> ActivityLevel:
    volume = stars_today + issues_closed
    if volume <= 0:
        return ActivityLevel.VERY_LOW
    if volume < 5:
        return ActivityLevel.LOW
    if volume < 20:
        return ActivityLevel.MODERATE
    if volume < 50:
        return ActivityLevel.HIGH
    return ActivityLevel.VERY_HIGH


def crossed_thresholds(value: float, thresholds: list[int], reached: set[int]) -> list[int]:
    """Thresholds at or below *value* not yet in *reached*, ascending."""
    return [t for t in thresholds if value >= t and t not in reached]


class AnalyticsAggregator:
    """Folds one sync pass into a repository's analytics snapshot."""

    def aggregate(
        self,
        snapshot: AnalyticsSnapshot | None,
        record: TrackedRepository,
        now: datetime,
    ) -> tuple[AnalyticsSnapshot, float | None, ActivityLevel | None]:
        """Update (or create) the snapshot for *record*.

        Returns ``(snapshot, previous_health, previous_level)``; the two
        previous values are None for a freshly created snapshot.
        """
        if snapshot is None:
            snapshot = AnalyticsSnapshot(
                repository_id=record.id,
                stars_gained_today=0,
                issues_closed_today=0,
                pull_requests_merged_today=0,
                daily_star_history=[],
                daily_commit_history=[],
                daily_issue_history=[],
                star_gain_history=[],
            )
            previous_health: float | None = None
            previous_level: ActivityLevel | None = None
            issues_closed = 0
            prs_merged = 0
            same_day = False
        else:
            previous_health = snapshot.health_score
            previous_level = ActivityLevel(snapshot.activity_level)
            # approximations: a shrinking open count means items were closed or merged
            issues_closed = max(snapshot.issue_count - record.open_issues_count, 0)
            prs_merged = max(snapshot.open_pull_request_count - record.open_pull_request_count, 0)
            same_day = snapshot.last_updated.date() == now.date()

        stars_gained = max(record.star_delta, 0)
        if same_day:
            snapshot.stars_gained_today += stars_gained
            snapshot.issues_closed_today += issues_closed
            snapshot.pull_requests_merged_today += prs_merged
        else:
            snapshot.stars_gained_today = stars_gained
            snapshot.issues_closed_today = issues_closed
            snapshot.pull_requests_merged_today = prs_merged

        # lists are reassigned, never mutated in place, so the JSON columns see the change
        snapshot.star_gain_history = record_daily(
            snapshot.star_gain_history, snapshot.stars_gained_today, same_day
        )
        snapshot.stars_gained_week = sum(snapshot.star_gain_history[-7:])
        snapshot.stars_gained_month = sum(snapshot.star_gain_history[-30:])

        snapshot.star_count = record.star_count
        snapshot.fork_count = record.forks_count
        snapshot.issue_count = record.open_issues_count
        snapshot.open_pull_request_count = record.open_pull_request_count
        snapshot.commit_count = record.commit_count
        snapshot.contributor_count = record.contributor_count
        snapshot.last_commit_date = record.last_commit_date
        snapshot.last_release_date = record.latest_release_date

        snapshot.daily_star_history = record_daily(
            snapshot.daily_star_history, record.star_count, same_day
        )
        snapshot.daily_commit_history = record_daily(
            snapshot.daily_commit_history, record.commit_count, same_day
        )
        snapshot.daily_issue_history = record_daily(
            snapshot.daily_issue_history, record.open_issues_count, same_day
        )

        snapshot.health_score = health_score(
            stars_week=snapshot.stars_gained_week,
            issues_closed=snapshot.issues_closed_today,
            prs_merged=snapshot.pull_requests_merged_today,
            issue_count=snapshot.issue_count,
            star_count=snapshot.star_count,
            last_commit_date=snapshot.last_commit_date,
            now=now,
        )
        snapshot.activity_level = activity_level(
            snapshot.stars_gained_today, snapshot.issues_closed_today
        ).value
        snapshot.last_updated = now

        return snapshot, previous_health, previous_level
