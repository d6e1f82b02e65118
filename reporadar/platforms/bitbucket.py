"""Bitbucket Cloud client — declared but not implemented yet.

Every operation fails with :class:`UnsupportedPlatform`, except the
release lookup: Bitbucket has no releases, so there is never a latest one.
"""

from __future__ import annotations

import httpx

from reporadar.platforms import http
from reporadar.platforms.client import SnapshotTarget
from reporadar.platforms.errors import UnsupportedPlatform
from reporadar.platforms.models import (
    ActivityMetrics,
    IssueInfo,
    Platform,
    ReleaseInfo,
    RepositoryInfo,
)


class BitbucketClient:
    platform = Platform.BITBUCKET
    base_url = "https://api.bitbucket.org/2.0"

    def __init__(
        self,
        token: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._client = http.build_client(
            self.base_url, {"Accept": "application/json"}, timeout=timeout, transport=transport
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> BitbucketClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def set_access_token(self, token: str | None) -> None:
        self._token = token or None

    def _unsupported(self, operation: str) -> UnsupportedPlatform:
        return UnsupportedPlatform(self.platform.display_name, operation)

    async def verify_token(self) -> str:
        raise self._unsupported("Token verification")

    async def fetch_repository(self, owner: str, name: str) -> RepositoryInfo:
        raise self._unsupported("Repository lookup")

    async def fetch_latest_release(self, owner: str, name: str) -> ReleaseInfo | None:
        return None

    async def fetch_latest_issue(self, owner: str, name: str) -> IssueInfo | None:
        raise self._unsupported("Issue lookup")

    async def fetch_user_repositories(
        self, page: int = 1, per_page: int = 50
    ) -> list[RepositoryInfo]:
        raise self._unsupported("Repository import")

    async def fetch_all_user_repositories(
        self, max_pages: int = 10, per_page: int = 50
    ) -> list[RepositoryInfo]:
        raise self._unsupported("Repository import")

    async def fetch_activity_metrics(self, owner: str, name: str) -> ActivityMetrics:
        raise self._unsupported("Activity metrics")

    async def update_repository(self, record: SnapshotTarget) -> None:
        raise self._unsupported("Repository refresh")
