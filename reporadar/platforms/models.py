"""Platform-neutral data types shared by the parser, clients and engines.

These are pure data structures — no HTTP, no DB.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class Capability(str, enum.Enum):
    TOKEN_AUTH = "token_auth"
    RELEASES = "releases"
    ISSUES = "issues"
    USER_REPOS = "user_repos"


@dataclass(frozen=True)
class _PlatformTraits:
    display_name: str
    web_base_url: str
    capabilities: frozenset[Capability]
    stargazers_path: str | None = None
    issues_path: str | None = None


_ALL = frozenset(Capability)
_NONE: frozenset[Capability] = frozenset()


class Platform(str, enum.Enum):
    """Supported hosting platforms. The value is the persisted tag."""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    SOURCEFORGE = "sourceforge"

    @property
    def traits(self) -> _PlatformTraits:
        return _TRAITS[self]

    @property
    def display_name(self) -> str:
        return self.traits.display_name

    @property
    def web_base_url(self) -> str:
        return self.traits.web_base_url

    @property
    def capabilities(self) -> frozenset[Capability]:
        return self.traits.capabilities

    def supports(self, capability: Capability) -> bool:
        return capability in self.traits.capabilities


_TRAITS: dict[Platform, _PlatformTraits] = {
    Platform.GITHUB: _PlatformTraits(
        "GitHub", "https://github.com", _ALL, "/stargazers", "/issues"
    ),
    Platform.GITLAB: _PlatformTraits(
        "GitLab", "https://gitlab.com", _ALL, "/-/starrers", "/-/issues"
    ),
    Platform.BITBUCKET: _PlatformTraits("Bitbucket", "https://bitbucket.org", _NONE),
    Platform.SOURCEFORGE: _PlatformTraits("SourceForge", "https://sourceforge.net", _NONE),
}


@dataclass(frozen=True)
class RepositoryIdentifier:
    """Canonical ``(platform, owner, name)`` triple — the dedup key.

    Equality is exact and case-sensitive on all three fields.
    """

    platform: Platform
    owner: str
    name: str

    def __post_init__(self) -> None:
        if not self.owner or not self.name:
            raise ValueError("owner and name must be non-empty")
        if "/" in self.name:
            raise ValueError(f"repository name must not contain '/': {self.name!r}")
        # GitLab owners are group paths (group/subgroup)
        if self.platform is not Platform.GITLAB and "/" in self.owner:
            raise ValueError(f"owner must not contain '/': {self.owner!r}")
        if any(not part for part in self.owner.split("/")):
            raise ValueError(f"owner has an empty path segment: {self.owner!r}")

    @property
    def full_path(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def web_url(self) -> str:
        if self.platform is Platform.SOURCEFORGE:
            return f"{self.platform.web_base_url}/projects/{self.name}"
        return f"{self.platform.web_base_url}/{self.full_path}"

    def __str__(self) -> str:
        return f"{self.platform.value}:{self.full_path}"


@dataclass
class RepositoryInfo:
    """Repository metadata as reported by a platform."""

    full_name: str
    name: str
    owner: str
    star_count: int
    url: str
    platform: Platform
    last_updated: datetime | None = None
    forks_count: int = 0
    open_issues_count: int = 0
    last_activity_at: datetime | None = None


@dataclass
class ReleaseInfo:
    tag_name: str
    name: str
    url: str
    published_at: datetime | None = None


@dataclass
class IssueInfo:
    title: str
    url: str
    created_at: datetime
    is_pull_request: bool = False


@dataclass
class ActivityMetrics:
    """Extended counters used by the analytics aggregator."""

    open_pull_requests: int = 0
    commit_count: int = 0
    contributor_count: int = 0
