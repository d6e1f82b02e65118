"""milestone_markers table — one row per milestone notification ever emitted."""

from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reporadar.core.database import Base, UTCDateTime, utcnow

milestone_metric_enum = Enum(
    "stars", "forks", "health",
    name="milestone_metric",
    native_enum=False,
)


class MilestoneMarker(Base):
    __tablename__ = "milestone_markers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    repository_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("repositories.id", ondelete="CASCADE"),
        nullable=False,
    )
    metric: Mapped[str] = mapped_column(milestone_metric_enum, nullable=False)
    threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    reached_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "repository_id", "metric", "threshold",
            name="uq_milestones_repository_metric_threshold",
        ),
        Index("idx_milestones_repository", "repository_id"),
    )
