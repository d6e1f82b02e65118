"""Data models for the sync engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class NotificationKind(str, Enum):
    RELEASE = "release"
    STAR = "star"
    ISSUE = "issue"
    # Pro analytics
    HEALTH = "health"
    ACTIVITY = "activity"
    MILESTONE = "milestone"


@dataclass(frozen=True)
class Notification:
    """A single user-facing notification.

    Pure data; delivery is the sink's job.
    """

    kind: NotificationKind
    repository_id: int
    title: str
    body: str
    target_url: str
    dedup_id: str


@dataclass
class SyncResult:
    """Summary of a single ``run_cycle()``."""

    updated_count: int = 0
    failed_count: int = 0
    rate_limited: bool = False
    # another cycle was in progress; nothing was done
    skipped: bool = False
    notifications: list[Notification] = field(default_factory=list)
