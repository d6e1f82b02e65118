"""Async GitLab REST API (v4) client.

GitLab identifies projects by their full namespace path
(``group/subgroup/project``), which must be percent-encoded into a single
path segment.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from reporadar.platforms import http
from reporadar.platforms.client import SnapshotTarget, collect_user_repositories, refresh_snapshot
from reporadar.platforms.errors import InvalidResponse, InvalidToken
from reporadar.platforms.models import (
    ActivityMetrics,
    IssueInfo,
    Platform,
    ReleaseInfo,
    RepositoryInfo,
)


# ── wire payloads ─────────────────────────────────────────────────────────


class _Namespace(BaseModel):
    full_path: str


class _Statistics(BaseModel):
    commit_count: int = 0


class _Project(BaseModel):
    name: str
    path_with_namespace: str
    web_url: str
    star_count: int
    forks_count: int = 0
    open_issues_count: int = 0
    last_activity_at: str | None = None
    namespace: _Namespace
    statistics: _Statistics | None = None

    def to_info(self) -> RepositoryInfo:
        last_activity = http.parse_datetime(self.last_activity_at)
        # path_with_namespace carries the project slug; name is a display name
        owner, _, slug = self.path_with_namespace.rpartition("/")
        return RepositoryInfo(
            full_name=self.path_with_namespace,
            name=slug or self.name,
            owner=owner or self.namespace.full_path,
            star_count=self.star_count,
            url=self.web_url,
            platform=Platform.GITLAB,
            last_updated=last_activity,
            forks_count=self.forks_count,
            open_issues_count=self.open_issues_count,
            last_activity_at=last_activity,
        )


class _Release(BaseModel):
    tag_name: str
    name: str | None = None
    released_at: str | None = None
    created_at: str | None = None


class _Issue(BaseModel):
    title: str
    web_url: str
    created_at: str


class _User(BaseModel):
    username: str


# ── client ────────────────────────────────────────────────────────────────


def project_path(owner: str, name: str) -> str:
    """Percent-encode ``owner/name`` as a single URL path segment."""
    return quote(f"{owner}/{name}", safe="")


class GitLabClient:
    """Thin async wrapper around the GitLab REST API."""

    platform = Platform.GITLAB
    base_url = "https://gitlab.com/api/v4"

    def __init__(
        self,
        token: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._client = http.build_client(
            self.base_url,
            {"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitLabClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def set_access_token(self, token: str | None) -> None:
        self._token = token or None

    async def verify_token(self) -> str:
        if not self._token:
            raise InvalidToken()
        data = await self._get_json("/user")
        return http.parse_model(_User, data).username

    async def fetch_repository(self, owner: str, name: str) -> RepositoryInfo:
        data = await self._get_json(f"/projects/{project_path(owner, name)}")
        return http.parse_model(_Project, data).to_info()

    async def fetch_latest_release(self, owner: str, name: str) -> ReleaseInfo | None:
        path = f"/projects/{project_path(owner, name)}/releases"
        response = await self._get(path, {"per_page": 1})
        if response.status_code == 404:
            return None
        http.raise_for_status(response)
        releases = http.parse_list(_Release, http.decode_json(response))
        if not releases:
            return None
        latest = releases[0]
        return ReleaseInfo(
            tag_name=latest.tag_name,
            name=latest.name or latest.tag_name,
            url=f"{self._web_url(owner, name)}/-/releases/{quote(latest.tag_name, safe='')}",
            published_at=http.parse_datetime(latest.released_at or latest.created_at),
        )

    async def fetch_latest_issue(self, owner: str, name: str) -> IssueInfo | None:
        # The issues API never returns merge requests
        params = {"state": "opened", "order_by": "created_at", "sort": "desc", "per_page": 1}
        response = await self._get(f"/projects/{project_path(owner, name)}/issues", params)
        if response.status_code == 404:
            return None
        http.raise_for_status(response)
        issues = http.parse_list(_Issue, http.decode_json(response))
        if not issues:
            return None
        latest = issues[0]
        created_at = http.parse_datetime(latest.created_at)
        if created_at is None:
            raise InvalidResponse(f"Unparseable issue timestamp: {latest.created_at!r}")
        return IssueInfo(title=latest.title, url=latest.web_url, created_at=created_at)

    async def fetch_user_repositories(
        self, page: int = 1, per_page: int = 50
    ) -> list[RepositoryInfo]:
        params = {
            "page": page,
            "per_page": http.clamp_per_page(per_page),
            "membership": "true",
            "order_by": "last_activity_at",
            "sort": "desc",
        }
        data = await self._get_json("/projects", params)
        return [project.to_info() for project in http.parse_list(_Project, data)]

    async def fetch_all_user_repositories(
        self, max_pages: int = 10, per_page: int = 50
    ) -> list[RepositoryInfo]:
        return await collect_user_repositories(self, max_pages, per_page)

    async def fetch_activity_metrics(self, owner: str, name: str) -> ActivityMetrics:
        base = f"/projects/{project_path(owner, name)}"
        project = http.parse_model(_Project, await self._get_json(base, {"statistics": "true"}))
        return ActivityMetrics(
            open_pull_requests=await self._total(
                f"{base}/merge_requests", {"state": "opened"}
            ),
            commit_count=project.statistics.commit_count if project.statistics else 0,
            contributor_count=await self._total(f"{base}/repository/contributors"),
        )

    async def update_repository(self, record: SnapshotTarget) -> None:
        await refresh_snapshot(self, record)

    # ── internal ───────────────────────────────────────────────────────────

    @staticmethod
    def _web_url(owner: str, name: str) -> str:
        return f"{Platform.GITLAB.web_base_url}/{owner}/{name}"

    async def _total(self, path: str, params: dict[str, Any] | None = None) -> int:
        """Item count from GitLab's ``X-Total`` header (absent above 10k items)."""
        response = await self._get(path, {**(params or {}), "per_page": 1})
        http.raise_for_status(response)
        total = http.parse_header_int(response.headers.get("X-Total"))
        if total is not None:
            return total
        pages = http.parse_header_int(response.headers.get("X-Total-Pages"))
        if pages is not None:
            return pages
        data = http.decode_json(response)
        return len(data) if isinstance(data, list) else 0

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return await http.send(self._client, path, params, headers=http.bearer(self._token))

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._get(path, params)
        http.raise_for_status(response)
        return http.decode_json(response)
