"""The uniform platform-client contract.

Each hosting platform has its own independent client class; they share
this protocol and the :func:`apply_snapshot` helper, not a base class.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

import structlog

from reporadar.platforms.errors import PlatformError, RateLimited
from reporadar.platforms.models import (
    ActivityMetrics,
    IssueInfo,
    Platform,
    ReleaseInfo,
    RepositoryInfo,
)

log = structlog.get_logger("reporadar.platforms")


class SnapshotTarget(Protocol):
    """The subset of a tracked repository that ``update_repository`` writes."""

    owner: str
    name: str
    star_count: int
    previous_star_count: int
    latest_release_tag: str | None
    latest_release_name: str | None
    latest_release_date: datetime | None
    latest_issue_title: str | None
    latest_issue_date: datetime | None
    forks_count: int
    open_issues_count: int
    last_commit_date: datetime | None
    last_updated: datetime | None


@runtime_checkable
class PlatformClient(Protocol):
    platform: Platform
    base_url: str

    def set_access_token(self, token: str | None) -> None: ...

    async def verify_token(self) -> str: ...

    async def fetch_repository(self, owner: str, name: str) -> RepositoryInfo: ...

    async def fetch_latest_release(self, owner: str, name: str) -> ReleaseInfo | None: ...

    async def fetch_latest_issue(self, owner: str, name: str) -> IssueInfo | None: ...

    async def fetch_user_repositories(
        self, page: int = 1, per_page: int = 50
    ) -> list[RepositoryInfo]: ...

    async def fetch_all_user_repositories(
        self, max_pages: int = 10, per_page: int = 50
    ) -> list[RepositoryInfo]: ...

    async def fetch_activity_metrics(self, owner: str, name: str) -> ActivityMetrics: ...

    async def update_repository(self, record: SnapshotTarget) -> None: ...

    async def aclose(self) -> None: ...


async def collect_user_repositories(
    client: PlatformClient, max_pages: int, per_page: int
) -> list[RepositoryInfo]:
    """Page through ``fetch_user_repositories`` until a short page."""
    results: list[RepositoryInfo] = []
    for page in range(1, max_pages + 1):
        batch = await client.fetch_user_repositories(page=page, per_page=per_page)
        results.extend(batch)
        if len(batch) < min(per_page, 100):
            break
    return results


async def refresh_snapshot(client: PlatformClient, record: SnapshotTarget) -> None:
    """Fetch metadata, latest release and latest issue, then write *record*.

    Nothing on *record* changes unless the metadata and release fetches
    succeed. A failed issue lookup keeps the previous issue fields, except
    ``RateLimited``, which propagates so the caller can abort its cycle.
    """
    info = await client.fetch_repository(record.owner, record.name)
    release = await client.fetch_latest_release(record.owner, record.name)

    issue_failed = False
    issue: IssueInfo | None = None
    try:
        issue = await client.fetch_latest_issue(record.owner, record.name)
    except RateLimited:
        raise
    except PlatformError as exc:
        issue_failed = True
        log.warning(
            "platform.issue_lookup_failed",
            platform=client.platform.value,
            repository=f"{record.owner}/{record.name}",
            error=str(exc),
        )

    apply_snapshot(record, info, release, issue, keep_issue=issue_failed)


def apply_snapshot(
    record: SnapshotTarget,
    info: RepositoryInfo,
    release: ReleaseInfo | None,
    issue: IssueInfo | None,
    *,
    keep_issue: bool = False,
    now: datetime | None = None,
) -> None:
    # previous_star_count must be read before star_count is overwritten
    record.previous_star_count = record.star_count
    record.star_count = info.star_count
    record.forks_count = info.forks_count
    record.open_issues_count = info.open_issues_count
    if info.last_activity_at is not None:
        record.last_commit_date = info.last_activity_at
    record.last_updated = now or datetime.now(timezone.utc)

    if release is not None:
        record.latest_release_tag = release.tag_name
        record.latest_release_name = release.name or release.tag_name
        record.latest_release_date = release.published_at
    else:
        record.latest_release_tag = None
        record.latest_release_name = None
        record.latest_release_date = None

    if keep_issue:
        return
    if issue is not None:
        record.latest_issue_title = issue.title
        record.latest_issue_date = issue.created_at
    else:
        record.latest_issue_title = None
        record.latest_issue_date = None
