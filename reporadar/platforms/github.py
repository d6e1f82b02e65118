"""Async GitHub REST API client."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from reporadar.platforms import http
from reporadar.platforms.client import SnapshotTarget, collect_user_repositories, refresh_snapshot
from reporadar.platforms.errors import (
    InvalidResponse,
    InvalidToken,
    PlatformError,
)
from reporadar.platforms.models import (
    ActivityMetrics,
    IssueInfo,
    Platform,
    ReleaseInfo,
    RepositoryInfo,
)

log = structlog.get_logger("reporadar.platforms.github")

API_VERSION = "2022-11-28"


# ── wire payloads ─────────────────────────────────────────────────────────


class _Owner(BaseModel):
    login: str


class _Repo(BaseModel):
    full_name: str
    name: str
    owner: _Owner
    stargazers_count: int
    html_url: str
    updated_at: str | None = None
    pushed_at: str | None = None
    forks_count: int = 0
    open_issues_count: int = 0

    def to_info(self) -> RepositoryInfo:
        return RepositoryInfo(
            full_name=self.full_name,
            name=self.name,
            owner=self.owner.login,
            star_count=self.stargazers_count,
            url=self.html_url,
            platform=Platform.GITHUB,
            last_updated=http.parse_datetime(self.updated_at),
            forks_count=self.forks_count,
            open_issues_count=self.open_issues_count,
            last_activity_at=http.parse_datetime(self.pushed_at),
        )


class _Release(BaseModel):
    tag_name: str
    name: str | None = None
    published_at: str | None = None
    html_url: str


class _Issue(BaseModel):
    title: str
    html_url: str
    created_at: str
    pull_request: dict[str, Any] | None = None


class _SearchIssues(BaseModel):
    items: list[_Issue]


class _User(BaseModel):
    login: str


# ── client ────────────────────────────────────────────────────────────────


class GitHubClient:
    """Thin async wrapper around the GitHub REST API."""

    platform = Platform.GITHUB
    base_url = "https://api.github.com"

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
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ── auth ───────────────────────────────────────────────────────────────

    def set_access_token(self, token: str | None) -> None:
        self._token = token or None

    async def verify_token(self) -> str:
        if not self._token:
            raise InvalidToken()
        data = await self._get_json("/user")
        return http.parse_model(_User, data).login

    # ── repository operations ──────────────────────────────────────────────

    async def fetch_repository(self, owner: str, name: str) -> RepositoryInfo:
        data = await self._get_json(f"/repos/{owner}/{name}")
        return http.parse_model(_Repo, data).to_info()

    async def fetch_latest_release(self, owner: str, name: str) -> ReleaseInfo | None:
        response = await self._get(f"/repos/{owner}/{name}/releases/latest")
        # 404 here means "no releases", not "no repository"
        if response.status_code == 404:
            return None
        http.raise_for_status(response)
        release = http.parse_model(_Release, http.decode_json(response))
        return ReleaseInfo(
            tag_name=release.tag_name,
            name=release.name or release.tag_name,
            url=release.html_url,
            published_at=http.parse_datetime(release.published_at),
        )

    async def fetch_latest_issue(self, owner: str, name: str) -> IssueInfo | None:
        """Most recently created issue, excluding pull requests.

        The search endpoint filters PRs server-side but has a much stricter
        rate limit, so any search failure falls back to the issues listing
        with client-side PR filtering.
        """
        try:
            return await self._search_latest_issue(owner, name)
        except PlatformError as exc:
            log.info(
                "github.search_fallback",
                repository=f"{owner}/{name}",
                reason=type(exc).__name__,
                error=str(exc),
            )

        params = {"state": "all", "sort": "created", "direction": "desc", "per_page": 10}
        response = await self._get(f"/repos/{owner}/{name}/issues", params)
        if response.status_code == 404:
            return None
        http.raise_for_status(response)
        issues = http.parse_list(_Issue, http.decode_json(response))
        for issue in issues:
            if issue.pull_request is None:
                return self._issue_info(issue)
        return None

    async def fetch_user_repositories(
        self, page: int = 1, per_page: int = 50
    ) -> list[RepositoryInfo]:
        """Owned, collaborator and organization repositories of the token's user."""
        params = {
            "page": page,
            "per_page": http.clamp_per_page(per_page),
            "sort": "updated",
            "affiliation": "owner,collaborator,organization_member",
            "visibility": "all",
        }
        data = await self._get_json("/user/repos", params)
        return [repo.to_info() for repo in http.parse_list(_Repo, data)]

    async def fetch_all_user_repositories(
        self, max_pages: int = 10, per_page: int = 50
    ) -> list[RepositoryInfo]:
        return await collect_user_repositories(self, max_pages, per_page)

    async def fetch_activity_metrics(self, owner: str, name: str) -> ActivityMetrics:
        base = f"/repos/{owner}/{name}"
        return ActivityMetrics(
            open_pull_requests=await self._count(f"{base}/pulls", {"state": "open"}),
            commit_count=await self._count(f"{base}/commits"),
            contributor_count=await self._count(f"{base}/contributors", {"anon": "true"}),
        )

    async def update_repository(self, record: SnapshotTarget) -> None:
        await refresh_snapshot(self, record)

    # ── internal ───────────────────────────────────────────────────────────

    async def _search_latest_issue(self, owner: str, name: str) -> IssueInfo | None:
        params = {
            "q": f"repo:{owner}/{name} is:issue",
            "sort": "created",
            "order": "desc",
            "per_page": 1,
        }
        data = await self._get_json("/search/issues", params)
        result = http.parse_model(_SearchIssues, data)
        if not result.items:
            return None
        return self._issue_info(result.items[0])

    async def _count(self, path: str, params: dict[str, Any] | None = None) -> int:
        """Count list items with a ``per_page=1`` request and the last-page link."""
        query = {**(params or {}), "per_page": 1}
        response = await self._get(path, query)
        # 204: empty contributors; 409: empty repository (no commits)
        if response.status_code in (204, 409):
            return 0
        http.raise_for_status(response)
        last = http.last_page_number(response)
        if last is not None:
            return last
        data = http.decode_json(response)
        if not isinstance(data, list):
            raise InvalidResponse(f"Expected a list from {path}")
        return len(data)

    @staticmethod
    def _issue_info(issue: _Issue) -> IssueInfo:
        created_at = http.parse_datetime(issue.created_at)
        if created_at is None:
            raise InvalidResponse(f"Unparseable issue timestamp: {issue.created_at!r}")
        return IssueInfo(
            title=issue.title,
            url=issue.html_url,
            created_at=created_at,
            is_pull_request=issue.pull_request is not None,
        )

    def _auth_headers(self) -> dict[str, str]:
        return http.bearer(self._token)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return await http.send(self._client, path, params, headers=self._auth_headers())

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._get(path, params)
        http.raise_for_status(response)
        return http.decode_json(response)

