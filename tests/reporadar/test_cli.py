"""Tests for the reporadar CLI (click CliRunner, SQLite file, mocked HTTP)."""

from __future__ import annotations

import httpx
import pytest
from click.testing import CliRunner

from reporadar.cli import main
from reporadar.core.config import Settings
from reporadar.platforms.models import Platform
from tests.reporadar.factories import json_transport


def repo_payload(owner: str, name: str, stars: int) -> dict:
    return {
        "full_name": f"{owner}/{name}",
        "name": name,
        "owner": {"login": owner},
        "stargazers_count": stars,
        "html_url": f"https://github.com/{owner}/{name}",
    }


def github_routes(stars: int = 1500) -> dict:
    return {
        "/repos/octocat/Hello-World": httpx.Response(
            200, json=repo_payload("octocat", "Hello-World", stars)
        ),
        "/repos/octocat/Hello-World/releases/latest": httpx.Response(
            200,
            json={
                "tag_name": "v1.0",
                "name": "First",
                "published_at": "2025-01-01T00:00:00Z",
                "html_url": "https://github.com/octocat/Hello-World/releases/tag/v1.0",
            },
        ),
        "/search/issues": httpx.Response(200, json={"items": []}),
        "/user": httpx.Response(200, json={"login": "octocat"}),
    }


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr("reporadar.cli.setup_logging", lambda level=None: None)


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=f"sqlite+aiosqlite:///{tmp_path}/reporadar.db")


@pytest.fixture
def invoke(settings):
    runner = CliRunner()

    def _invoke(args, routes=None):
        obj = {"settings": settings, "transport": json_transport(routes or github_routes())}
        return runner.invoke(main, args, obj=obj)

    return _invoke


class TestAddListRemove:
    def test_empty_list(self, invoke):
        result = invoke(["list"])
        assert result.exit_code == 0
        assert "No repositories tracked" in result.output

    def test_add_then_list(self, invoke):
        result = invoke(["add", "https://github.com/octocat/Hello-World"])
        assert result.exit_code == 0, result.output
        assert "Tracking octocat/Hello-World on GitHub (id 1, 1.5k stars)" in result.output

        result = invoke(["list"])
        assert result.exit_code == 0
        assert "octocat/Hello-World" in result.output
        assert "v1.0" in result.output
        assert "1/3 repositories (free plan)" in result.output

    def test_add_duplicate_fails(self, invoke):
        invoke(["add", "octocat/Hello-World"])
        result = invoke(["add", "octocat/Hello-World"])
        assert result.exit_code == 1
        assert "already tracked" in result.output

    def test_add_invalid(self, invoke):
        result = invoke(["add", "nonsense"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_add_unsupported_platform(self, invoke):
        result = invoke(["add", "https://bitbucket.org/team/repo"])
        assert result.exit_code == 1
        assert "not available for Bitbucket" in result.output

    def test_remove(self, invoke):
        invoke(["add", "octocat/Hello-World"])
        result = invoke(["remove", "1"])
        assert result.exit_code == 0
        assert "Removed repository 1" in result.output
        assert "No repositories tracked" in invoke(["list"]).output

    def test_remove_missing(self, invoke):
        result = invoke(["remove", "42"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestSync:
    def test_sync_reports_new_stars(self, invoke):
        invoke(["add", "octocat/Hello-World"])
        result = invoke(["sync"], routes=github_routes(stars=1510))
        assert result.exit_code == 0, result.output
        assert "Updated 1 repositories" in result.output
        assert "[star] Stars: octocat/Hello-World: +10 new stars" in result.output

    def test_sync_rate_limited_exits_2(self, invoke):
        invoke(["add", "octocat/Hello-World"])
        limited = {"/repos/octocat/Hello-World": httpx.Response(403, json={"message": "rate limit"})}
        result = invoke(["sync"], routes=limited)
        assert result.exit_code == 2
        assert "Rate limit exceeded" in result.output


class TestAccount:
    def test_verify_token(self, invoke, settings):
        settings.tokens[Platform.GITHUB] = "tok"
        result = invoke(["verify-token", "github"])
        assert result.exit_code == 0
        assert "Token OK, authenticated as octocat" in result.output

    def test_verify_token_missing(self, invoke):
        result = invoke(["verify-token", "github"])
        assert result.exit_code == 1
        assert "Invalid access token" in result.output

    def test_import(self, invoke, settings):
        settings.tokens[Platform.GITHUB] = "tok"
        routes = github_routes()
        routes["/user/repos"] = httpx.Response(
            200, json=[repo_payload("octocat", "Hello-World", 1500)]
        )
        result = invoke(["import", "GitHub"], routes=routes)
        assert result.exit_code == 0, result.output
        assert "Imported 1, already tracked 0, over limit 0, failed 0" in result.output

    def test_watch_rejects_bad_interval(self, invoke):
        result = invoke(["watch", "--interval", "0"])
        assert result.exit_code == 2
