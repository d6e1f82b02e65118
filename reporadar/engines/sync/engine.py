"""SyncEngine — one polling pass over every tracked repository.

Per cycle:

1. Load all records ordered by ``full_name``.
2. Sequentially ``update_repository`` each one. ``RateLimited`` aborts the
   rest of the cycle; any other platform error is logged and skipped.
3. Notification pass over the records that were updated (release, star,
   issue, in that order), stamping ``last_checked``.
4. Analytics for entitled users.
5. Commit, then hand notifications to the sink.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reporadar.core.config import Settings
from reporadar.core.database import utcnow
from reporadar.dao.repository_dao import RepositoryDAO
from reporadar.engines.analytics.runner import AnalyticsRunner
from reporadar.engines.sync.models import Notification, SyncResult
from reporadar.engines.sync.notifier import (
    LogNotificationSink,
    NotificationSink,
    issue_notification,
    release_notification,
    star_notification,
)
from reporadar.models.repository import TrackedRepository
from reporadar.platforms.client import PlatformClient
from reporadar.platforms.errors import PlatformError, RateLimited
from reporadar.platforms.factory import ClientRegistry

log = structlog.get_logger("reporadar.engine.sync")


class SyncEngine:
    """Serialised polling cycles with a busy flag, not a queue."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clients: ClientRegistry,
        settings: Settings,
        sink: NotificationSink | None = None,
        *,
        is_entitled: Callable[[], bool] | None = None,
        analytics: AnalyticsRunner | None = None,
        repository_dao: RepositoryDAO | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clients = clients
        self._settings = settings
        self._sink = sink or LogNotificationSink()
        self._is_entitled = is_entitled or settings.is_entitled
        self._analytics = analytics
        self._dao = repository_dao or RepositoryDAO()
        self._clock = clock
        self._busy = False
        self._rate_limited = False

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def rate_limited(self) -> bool:
        """True from a rate-limited cycle until a clean one or :meth:`clear_rate_limit`."""
        return self._rate_limited

    def clear_rate_limit(self) -> None:
        """Reset the rate-limit state, e.g. after the user changed a token."""
        self._rate_limited = False

    async def run_cycle(self) -> SyncResult:
        if self._busy:
            log.info("sync.skipped", reason="cycle in progress")
            return SyncResult(skipped=True)

        self._busy = True
        try:
            result = await self._run()
        finally:
            self._busy = False

        self._rate_limited = result.rate_limited
        await self._deliver(result.notifications)
        return result

    # ── internal ───────────────────────────────────────────────────────────

    async def _run(self) -> SyncResult:
        result = SyncResult()
        entitled = self._is_entitled()

        async with self._session_factory() as session:
            records = await self._dao.list_all(session)
            updated: list[TrackedRepository] = []

            for index, record in enumerate(records):
                client = self._clients.get(record.platform)
                try:
                    await client.update_repository(record)
                except RateLimited as exc:
                    self._log_rate_limit(record, exc, remaining=len(records) - index - 1)
                    result.rate_limited = True
                    break
                except PlatformError as exc:
                    result.failed_count += 1
                    log.warning(
                        "sync.repository_failed",
                        platform=record.platform,
                        repository=record.display_name,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    continue

                updated.append(record)

                if entitled:
                    try:
                        await self._enrich(client, record)
                    except RateLimited as exc:
                        self._log_rate_limit(record, exc, remaining=len(records) - index - 1)
                        result.rate_limited = True
                        break

            result.updated_count = len(updated)
            now = self._clock()

            for record in updated:
                result.notifications.extend(self._evaluate(record))
                record.last_checked = now

            if entitled and self._analytics is not None:
                for record in updated:
                    found = await self._analytics.run(
                        session, record, now, self._settings.notifications
                    )
                    if self._wants_notifications(record):
                        result.notifications.extend(found)

            await session.commit()

        log.info(
            "sync.completed",
            total=len(records),
            updated=result.updated_count,
            failed=result.failed_count,
            rate_limited=result.rate_limited,
            notifications=len(result.notifications),
        )
        return result

    async def _enrich(self, client: PlatformClient, record: TrackedRepository) -> None:
        """Pro-only activity metrics; failures other than rate limits are non-fatal."""
        try:
            metrics = await client.fetch_activity_metrics(record.owner, record.name)
        except RateLimited:
            raise
        except PlatformError as exc:
            log.info(
                "sync.metrics_unavailable",
                platform=record.platform,
                repository=record.display_name,
                error=str(exc),
            )
            return
        record.open_pull_request_count = metrics.open_pull_requests
        record.commit_count = metrics.commit_count
        record.contributor_count = metrics.contributor_count

    def _wants_notifications(self, record: TrackedRepository) -> bool:
        return self._settings.notifications.enabled and record.notifications_enabled

    def _evaluate(self, record: TrackedRepository) -> list[Notification]:
        """Release, star and issue checks; must run before ``last_checked`` moves."""
        if not self._wants_notifications(record):
            return []
        prefs = self._settings.notifications
        found: list[Notification] = []
        if prefs.release and record.has_new_release and record.latest_release_tag:
            found.append(release_notification(record))
        if prefs.star and record.star_delta > 0:
            found.append(star_notification(record))
        if prefs.issue and record.has_new_issue and record.latest_issue_title:
            found.append(issue_notification(record))
        return found

    async def _deliver(self, notifications: list[Notification]) -> None:
        for notification in notifications:
            try:
                await self._sink.deliver(notification)
            except Exception:
                log.warning(
                    "sync.delivery_failed",
                    dedup_id=notification.dedup_id,
                    exc_info=True,
                )

    @staticmethod
    def _log_rate_limit(record: TrackedRepository, exc: RateLimited, *, remaining: int) -> None:
        log.warning(
            "sync.rate_limited",
            platform=record.platform,
            repository=record.display_name,
            retry_after=exc.retry_after,
            skipped=remaining,
        )
