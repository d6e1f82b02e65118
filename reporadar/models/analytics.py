"""analytics_snapshots table."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Enum, Float, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from reporadar.core.database import Base, UTCDateTime, utcnow

HISTORY_LIMIT = 30

activity_level_enum = Enum(
    "very_low", "low", "moderate", "high", "very_high",
    name="activity_level",
    native_enum=False,
)


class AnalyticsSnapshot(Base):
    __tablename__ = "analytics_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    repository_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("repositories.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # current counts
    star_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fork_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    issue_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    open_pull_request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    commit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    contributor_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_commit_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    last_release_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)

    # growth
    stars_gained_today: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stars_gained_week: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stars_gained_month: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    issues_closed_today: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pull_requests_merged_today: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # derived
    health_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    activity_level: Mapped[str] = mapped_column(
        activity_level_enum, nullable=False, default="very_low"
    )

    # trend histories, oldest first, at most HISTORY_LIMIT entries
    daily_star_history: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    daily_commit_history: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    daily_issue_history: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    # stars gained per UTC day, for week/month sums
    star_gain_history: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)

    last_updated: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return (
            f"<AnalyticsSnapshot repository_id={self.repository_id} "
            f"health={self.health_score:.1f} activity={self.activity_level}>"
        )
