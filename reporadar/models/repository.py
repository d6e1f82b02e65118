"""repositories table — one row per tracked repository plus its last snapshot."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from reporadar.core.database import Base, TimestampMixin, UTCDateTime, utcnow
from reporadar.platforms.models import Platform, RepositoryIdentifier


class TrackedRepository(TimestampMixin, Base):
    __tablename__ = "repositories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # identity, with the casing the platform reports
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    owner: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)

    # snapshot
    star_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    previous_star_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    latest_release_tag: Mapped[Optional[str]] = mapped_column(Text)
    latest_release_name: Mapped[Optional[str]] = mapped_column(Text)
    latest_release_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    latest_issue_title: Mapped[Optional[str]] = mapped_column(Text)
    latest_issue_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)

    # extended metrics (analytics)
    forks_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    open_issues_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    open_pull_request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    commit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    contributor_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_commit_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)

    # bookkeeping
    last_updated: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, default=utcnow)
    # None until the first notification pass evaluates this record
    last_checked: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    notifications_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("1")
    )

    __table_args__ = (Index("idx_repositories_identity", "platform", "owner", "name"),)

    def __init__(self, **kwargs) -> None:
        # Python-side defaults so unsaved records behave like loaded ones
        for key in (
            "star_count",
            "previous_star_count",
            "forks_count",
            "open_issues_count",
            "open_pull_request_count",
            "commit_count",
            "contributor_count",
        ):
            kwargs.setdefault(key, 0)
        kwargs.setdefault("notifications_enabled", True)
        super().__init__(**kwargs)

    # ── computed ──────────────────────────────────────────────────────────

    @property
    def platform_type(self) -> Platform:
        return Platform(self.platform)

    @property
    def identifier(self) -> RepositoryIdentifier:
        return RepositoryIdentifier(self.platform_type, self.owner, self.name)

    @property
    def display_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def star_delta(self) -> int:
        return self.star_count - self.previous_star_count

    @property
    def has_new_release(self) -> bool:
        return _newer_than(self.latest_release_date, self.last_checked)

    @property
    def has_new_issue(self) -> bool:
        return _newer_than(self.latest_issue_date, self.last_checked)

    def __repr__(self) -> str:
        return f"<TrackedRepository {self.platform}:{self.display_name} id={self.id}>"


def _newer_than(value: datetime | None, last_checked: datetime | None) -> bool:
    if value is None:
        return False
    if last_checked is None:
        return True
    return value > last_checked
