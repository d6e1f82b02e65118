"""Client factory — one concrete client per platform tag."""

from __future__ import annotations

import httpx
import structlog

from reporadar.platforms.bitbucket import BitbucketClient
from reporadar.platforms.client import PlatformClient
from reporadar.platforms.github import GitHubClient
from reporadar.platforms.gitlab import GitLabClient
from reporadar.platforms.models import Platform
from reporadar.platforms.parser import host_platform, url_host
from reporadar.platforms.sourceforge import SourceForgeClient

log = structlog.get_logger("reporadar.platforms")

_CLIENT_TYPES: dict[Platform, type] = {
    Platform.GITHUB: GitHubClient,
    Platform.GITLAB: GitLabClient,
    Platform.BITBUCKET: BitbucketClient,
    Platform.SOURCEFORGE: SourceForgeClient,
}


def create_client(
    platform: Platform,
    *,
    token: str | None = None,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PlatformClient:
    """Return a new client for *platform*. Total over :class:`Platform`."""
    client_type = _CLIENT_TYPES[Platform(platform)]
    return client_type(token, timeout=timeout, transport=transport)


def client_for(url: str, **kwargs) -> PlatformClient | None:
    """Client for the platform hosting *url*, or None for unknown hosts."""
    host = url_host(url)
    if host is None:
        return None
    platform = host_platform(host)
    if platform is None:
        return None
    return create_client(platform, **kwargs)


class ClientRegistry:
    """Process-wide cache of one client per platform, with tokens applied."""

    def __init__(
        self,
        tokens: dict[Platform, str] | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._tokens: dict[Platform, str] = dict(tokens or {})
        self._timeout = timeout
        self._transport = transport
        self._clients: dict[Platform, PlatformClient] = {}

    def get(self, platform: Platform | str) -> PlatformClient:
        platform = Platform(platform)
        client = self._clients.get(platform)
        if client is None:
            client = create_client(
                platform,
                token=self._tokens.get(platform),
                timeout=self._timeout,
                transport=self._transport,
            )
            self._clients[platform] = client
        return client

    def set_token(self, platform: Platform, token: str | None) -> None:
        """Store *token* and push it into an already-created client."""
        if token:
            self._tokens[platform] = token
        else:
            self._tokens.pop(platform, None)
        client = self._clients.get(platform)
        if client is not None:
            client.set_access_token(token)

    async def aclose(self) -> None:
        for platform, client in list(self._clients.items()):
            try:
                await client.aclose()
            except Exception:
                log.warning("platform.client_close_failed", platform=platform.value, exc_info=True)
        self._clients.clear()

    async def __aenter__(self) -> ClientRegistry:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
