"""SQLAlchemy ORM models — one file per table."""

from reporadar.models.analytics import AnalyticsSnapshot
from reporadar.models.milestone import MilestoneMarker
from reporadar.models.repository import TrackedRepository

__all__ = [
    "TrackedRepository",
    "AnalyticsSnapshot",
    "MilestoneMarker",
]
