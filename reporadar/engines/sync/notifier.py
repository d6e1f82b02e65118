"""Notification building and delivery."""

from __future__ import annotations

from typing import Protocol

import structlog

from reporadar.engines.sync.models import Notification, NotificationKind
from reporadar.models.repository import TrackedRepository

log = structlog.get_logger("reporadar.engine.notification")


class NotificationSink(Protocol):
    async def deliver(self, notification: Notification) -> None: ...


class LogNotificationSink:
    """Writes every notification to the structured log."""

    async def deliver(self, notification: Notification) -> None:
        log.info(
            "notification.delivered",
            kind=notification.kind.value,
            repository_id=notification.repository_id,
            title=notification.title,
            body=notification.body,
            target_url=notification.target_url,
            dedup_id=notification.dedup_id,
        )


# ── builders ──────────────────────────────────────────────────────────────


def platform_page(record: TrackedRepository, path: str | None) -> str:
    """``record.url`` plus a platform web path, or the bare URL when unknown."""
    if not path:
        return record.url
    return record.url.rstrip("/") + path


def release_notification(record: TrackedRepository) -> Notification:
    tag = record.latest_release_tag or ""
    return Notification(
        kind=NotificationKind.RELEASE,
        repository_id=record.id,
        title=f"New Release: {record.display_name}",
        body=f"Released {tag}",
        target_url=record.url,
        dedup_id=f"release-{record.id}-{tag}",
    )


def star_notification(record: TrackedRepository) -> Notification:
    delta = record.star_delta
    suffix = "" if delta == 1 else "s"
    return Notification(
        kind=NotificationKind.STAR,
        repository_id=record.id,
        title=f"Stars: {record.display_name}",
        body=f"+{delta} new star{suffix}",
        target_url=platform_page(record, record.platform_type.traits.stargazers_path),
        dedup_id=f"stars-{record.id}-{record.star_count}",
    )


def issue_notification(record: TrackedRepository) -> Notification:
    issued = record.latest_issue_date.isoformat() if record.latest_issue_date else ""
    return Notification(
        kind=NotificationKind.ISSUE,
        repository_id=record.id,
        title=f"New Issue: {record.display_name}",
        body=record.latest_issue_title or "",
        target_url=platform_page(record, record.platform_type.traits.issues_path),
        dedup_id=f"issue-{record.id}-{issued}",
    )
