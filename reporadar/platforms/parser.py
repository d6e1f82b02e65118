"""Resolve free-form user input into a canonical repository identifier.

Handles:
  - https://github.com/owner/repo(.git)
  - https://gitlab.com/group/subgroup/project
  - https://bitbucket.org/owner/repo
  - https://sourceforge.net/projects/name/
  - git@github.com:owner/repo.git, git@bitbucket.org:owner/repo.git,
    git@gitlab.com:group/sub/project.git
  - owner/repo (defaults to GitHub)
"""

from __future__ import annotations

from urllib.parse import urlsplit

from reporadar.platforms.errors import InvalidFormat
from reporadar.platforms.models import Platform, RepositoryIdentifier


def host_platform(host: str) -> Platform | None:
    """Map a host name to a platform by substring, or None if unknown."""
    host = host.lower()
    if "github.com" in host:
        return Platform.GITHUB
    if "gitlab" in host:
        return Platform.GITLAB
    if "bitbucket.org" in host:
        return Platform.BITBUCKET
    if "sourceforge.net" in host:
        return Platform.SOURCEFORGE
    return None


def url_host(value: str) -> str | None:
    """Return the lower-cased host of *value* if it is a ``scheme://host`` URL."""
    if "://" not in value:
        return None
    try:
        host = urlsplit(value).hostname
    except ValueError:
        return None
    return host or None


def parse(value: str) -> RepositoryIdentifier:
    """Parse *value* into a :class:`RepositoryIdentifier`.

    Raises :class:`InvalidFormat` when no pattern matches.
    """
    token = _first_token(value)
    if not token:
        raise InvalidFormat()

    host = url_host(token)
    if host is not None:
        platform = host_platform(host)
        if platform is not None:
            return _parse_url_path(platform, urlsplit(token).path, token)

    if "git@" in token:
        return _parse_ssh(token)

    parts = token.split("/")
    if len(parts) == 2 and all(parts):
        return _build(Platform.GITHUB, parts[0], _strip_git(parts[1]), token)

    raise InvalidFormat(f"Unrecognised repository format: {token!r}")


def canonical_url(identifier: RepositoryIdentifier) -> str:
    """Web URL that :func:`parse` maps back to *identifier*."""
    return identifier.web_url


# ── internal ──────────────────────────────────────────────────────────────


def _first_token(value: str) -> str:
    parts = value.split()
    return parts[0] if parts else ""


def _strip_git(repo: str) -> str:
    return repo[:-4] if repo.endswith(".git") else repo


def _segments(path: str) -> list[str]:
    return [seg for seg in path.rstrip("/").split("/") if seg]


def _build(platform: Platform, owner: str, name: str, source: str) -> RepositoryIdentifier:
    try:
        return RepositoryIdentifier(platform, owner, name)
    except ValueError as exc:
        raise InvalidFormat(f"Unrecognised repository format: {source!r}") from exc


def _parse_url_path(platform: Platform, path: str, source: str) -> RepositoryIdentifier:
    segments = _segments(path)

    if platform is Platform.GITLAB:
        # Nested groups: the last segment is the project, the rest is the group path
        if len(segments) >= 2:
            return _build(platform, "/".join(segments[:-1]), _strip_git(segments[-1]), source)
    elif platform is Platform.SOURCEFORGE:
        if "projects" in segments:
            idx = segments.index("projects")
            if idx + 1 < len(segments):
                project = segments[idx + 1]
                return _build(platform, project, project, source)
    elif len(segments) >= 2:
        return _build(platform, segments[0], _strip_git(segments[1]), source)

    raise InvalidFormat(f"Cannot find owner/name in {platform.display_name} URL: {source!r}")


def _parse_ssh(token: str) -> RepositoryIdentifier:
    parts = token.split(":")
    if len(parts) != 2:
        raise InvalidFormat(f"Malformed SSH remote: {token!r}")
    host_part, repo_part = parts
    repo_segments = repo_part.rstrip("/").split("/")

    # same path rules as the URL form of each host; SourceForge has no SSH form
    platform = host_platform(host_part)
    if platform is Platform.GITLAB:
        if len(repo_segments) >= 2:
            owner = "/".join(repo_segments[:-1])
            return _build(platform, owner, _strip_git(repo_segments[-1]), token)
    elif platform in (Platform.GITHUB, Platform.BITBUCKET):
        if len(repo_segments) == 2:
            return _build(platform, repo_segments[0], _strip_git(repo_segments[1]), token)

    raise InvalidFormat(f"Unsupported SSH remote: {token!r}")
