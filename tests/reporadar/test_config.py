"""Tests for Settings.from_env."""

from __future__ import annotations

import pytest

from reporadar.core.config import Settings
from reporadar.platforms.models import Platform

_KEYS = [
    "REPORADAR_DATABASE_URL",
    "REPORADAR_REFRESH_INTERVAL",
    "REPORADAR_HTTP_TIMEOUT",
    "REPORADAR_FREE_LIMIT",
    "REPORADAR_PRO",
    "REPORADAR_GITHUB_TOKEN",
    "GITHUB_TOKEN",
    "REPORADAR_GITLAB_TOKEN",
    "REPORADAR_BITBUCKET_TOKEN",
    "REPORADAR_NOTIFICATIONS",
    "REPORADAR_NOTIFY_STAR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)


class TestFromEnv:
    def test_defaults(self):
        settings = Settings.from_env()
        assert settings.refresh_interval == 900
        assert settings.free_repository_limit == 3
        assert settings.pro is False
        assert settings.is_entitled() is False
        assert settings.tokens == {}
        assert settings.notifications.enabled is True
        assert settings.database_url.startswith("sqlite+aiosqlite:///")

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("REPORADAR_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        monkeypatch.setenv("REPORADAR_REFRESH_INTERVAL", "60")
        monkeypatch.setenv("REPORADAR_FREE_LIMIT", "5")
        monkeypatch.setenv("REPORADAR_PRO", "yes")
        monkeypatch.setenv("REPORADAR_NOTIFY_STAR", "off")
        settings = Settings.from_env()

        assert settings.database_url == "sqlite+aiosqlite:///:memory:"
        assert settings.refresh_interval == 60
        assert settings.free_repository_limit == 5
        assert settings.is_entitled() is True
        assert settings.notifications.star is False
        assert settings.notifications.release is True

    def test_non_positive_interval_falls_back(self, monkeypatch):
        monkeypatch.setenv("REPORADAR_REFRESH_INTERVAL", "0")
        assert Settings.from_env().refresh_interval == 900

    def test_unrecognised_bool_keeps_default(self, monkeypatch):
        monkeypatch.setenv("REPORADAR_NOTIFICATIONS", "maybe")
        assert Settings.from_env().notifications.enabled is True

    def test_tokens(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_fallback")
        monkeypatch.setenv("REPORADAR_GITLAB_TOKEN", "glpat")
        settings = Settings.from_env()
        assert settings.token_for(Platform.GITHUB) == "ghp_fallback"
        assert settings.token_for(Platform.GITLAB) == "glpat"
        assert settings.token_for(Platform.BITBUCKET) is None

    def test_reporadar_token_wins(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_fallback")
        monkeypatch.setenv("REPORADAR_GITHUB_TOKEN", "ghp_primary")
        assert Settings.from_env().token_for(Platform.GITHUB) == "ghp_primary"
