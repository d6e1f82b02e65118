"""Runtime settings — read once from the environment, then passed explicitly."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from reporadar.platforms.models import Platform

DEFAULT_DATABASE_PATH = Path.home() / ".reporadar" / "reporadar.db"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env_bool(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    return default


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


@dataclass
class NotificationSettings:
    """Which notification kinds the user wants to receive."""

    enabled: bool = True
    release: bool = True
    star: bool = True
    issue: bool = True
    # Pro analytics notifications
    health_change: bool = True
    activity_spike: bool = True
    milestone: bool = True


@dataclass
class Settings:
    """Application settings.

    Construct directly in tests; use :meth:`from_env` in the application.
    """

    database_url: str = f"sqlite+aiosqlite:///{DEFAULT_DATABASE_PATH}"
    refresh_interval: float = 900.0  # 15 minutes
    http_timeout: float = 30.0
    free_repository_limit: int = 3
    pro: bool = False
    tokens: dict[Platform, str] = field(default_factory=dict)
    notifications: NotificationSettings = field(default_factory=NotificationSettings)

    @classmethod
    def from_env(cls) -> Settings:
        tokens: dict[Platform, str] = {}
        github_token = os.environ.get("REPORADAR_GITHUB_TOKEN") or os.environ.get("GITHUB_TOKEN")
        if github_token:
            tokens[Platform.GITHUB] = github_token
        for platform in (Platform.GITLAB, Platform.BITBUCKET):
            token = os.environ.get(f"REPORADAR_{platform.name}_TOKEN")
            if token:
                tokens[platform] = token

        notifications = NotificationSettings(
            enabled=_env_bool("REPORADAR_NOTIFICATIONS", True),
            release=_env_bool("REPORADAR_NOTIFY_RELEASE", True),
            star=_env_bool("REPORADAR_NOTIFY_STAR", True),
            issue=_env_bool("REPORADAR_NOTIFY_ISSUE", True),
            health_change=_env_bool("REPORADAR_NOTIFY_HEALTH", True),
            activity_spike=_env_bool("REPORADAR_NOTIFY_ACTIVITY", True),
            milestone=_env_bool("REPORADAR_NOTIFY_MILESTONE", True),
        )

        refresh_interval = _env_float("REPORADAR_REFRESH_INTERVAL", 900)
        if refresh_interval <= 0:
            refresh_interval = 900.0

        return cls(
            database_url=os.environ.get(
                "REPORADAR_DATABASE_URL", f"sqlite+aiosqlite:///{DEFAULT_DATABASE_PATH}"
            ),
            refresh_interval=refresh_interval,
            http_timeout=_env_float("REPORADAR_HTTP_TIMEOUT", 30),
            free_repository_limit=_env_int("REPORADAR_FREE_LIMIT", 3),
            pro=_env_bool("REPORADAR_PRO", False),
            tokens=tokens,
            notifications=notifications,
        )

    def token_for(self, platform: Platform) -> str | None:
        return self.tokens.get(platform)

    def is_entitled(self) -> bool:
        """Default entitlement oracle: the ``REPORADAR_PRO`` flag."""
        return self.pro
