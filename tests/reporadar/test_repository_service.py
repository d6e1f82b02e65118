"""Tests for RepositoryService on in-memory SQLite with mocked HTTP."""

from __future__ import annotations

import httpx
import pytest

from reporadar.dao.repository_dao import RepositoryDAO
from reporadar.platforms.errors import HttpError, InvalidFormat, NotFound, UnsupportedPlatform
from reporadar.platforms.factory import ClientRegistry
from reporadar.platforms.models import Platform
from reporadar.services import CapacityError, ConflictError, NotFoundError, ValidationError
from reporadar.services.repository_service import RepositoryService
from tests.reporadar.factories import json_transport


def github_routes(owner: str = "octocat", name: str = "Hello-World", stars: int = 80) -> dict:
    base = f"/repos/{owner}/{name}"
    return {
        base: httpx.Response(
            200,
            json={
                "full_name": f"{owner}/{name}",
                "name": name,
                "owner": {"login": owner},
                "stargazers_count": stars,
                "html_url": f"https://github.com/{owner}/{name}",
            },
        ),
        f"{base}/releases/latest": httpx.Response(404, json={}),
        "/search/issues": httpx.Response(200, json={"items": []}),
    }


def make_service(routes: dict, calls: list | None = None, *, entitled: bool = False):
    clients = ClientRegistry(transport=json_transport(routes, calls))
    service = RepositoryService(
        RepositoryDAO(), clients, is_entitled=lambda: entitled, free_limit=3
    )
    return service, clients


class TestAddRepository:
    async def test_add_persists_canonical_record(self, session):
        # the platform reports different casing than the user typed
        routes = github_routes(owner="Octocat", name="Hello-World", stars=80)
        routes["/repos/octocat/hello-world"] = routes["/repos/Octocat/Hello-World"]
        service, clients = make_service(routes)

        record = await service.add_repository(session, "octocat/hello-world")
        await session.commit()
        await clients.aclose()

        assert record.id is not None
        assert record.platform == "github"
        assert record.owner == "Octocat"
        assert record.name == "Hello-World"
        assert record.url == "https://github.com/Octocat/Hello-World"
        assert record.star_count == 80
        assert record.star_delta == 0
        assert record.last_checked is None

    async def test_duplicate_rejected(self, session):
        service, clients = make_service(github_routes())
        await service.add_repository(session, "octocat/Hello-World")
        with pytest.raises(ConflictError, match="already tracked"):
            await service.add_repository(session, "https://github.com/octocat/Hello-World")
        await clients.aclose()

        assert await RepositoryDAO().count(session) == 1

    async def test_duplicate_via_canonical_casing(self, session, record_factory):
        await record_factory(owner="Octocat", name="Hello-World", full_name="Octocat/Hello-World")
        routes = github_routes(owner="Octocat", name="Hello-World")
        routes["/repos/octocat/hello-world"] = routes["/repos/Octocat/Hello-World"]
        service, clients = make_service(routes)
        with pytest.raises(ConflictError):
            await service.add_repository(session, "octocat/hello-world")
        await clients.aclose()

    async def test_free_cap_without_network(self, session, record_factory):
        for i in range(3):
            await record_factory(name=f"r{i}", full_name=f"octocat/r{i}")
        calls: list[httpx.Request] = []
        service, clients = make_service(github_routes(), calls)

        with pytest.raises(CapacityError):
            await service.add_repository(session, "octocat/Hello-World")
        await clients.aclose()

        assert calls == []
        assert await RepositoryDAO().count(session) == 3

    async def test_entitled_user_exceeds_cap(self, session, record_factory):
        for i in range(3):
            await record_factory(name=f"r{i}", full_name=f"octocat/r{i}")
        service, clients = make_service(github_routes(), entitled=True)
        await service.add_repository(session, "octocat/Hello-World")
        await clients.aclose()
        assert await RepositoryDAO().count(session) == 4

    async def test_not_found_persists_nothing(self, session):
        routes = {"/repos/octocat/missing": httpx.Response(404, json={"message": "Not Found"})}
        service, clients = make_service(routes)
        with pytest.raises(NotFound):
            await service.add_repository(session, "octocat/missing")
        await clients.aclose()
        assert await RepositoryDAO().count(session) == 0

    async def test_failure_during_update_persists_nothing(self, session):
        routes = github_routes()
        routes["/repos/octocat/Hello-World/releases/latest"] = httpx.Response(500, json={})
        service, clients = make_service(routes)
        with pytest.raises(HttpError):
            await service.add_repository(session, "octocat/Hello-World")
        await clients.aclose()
        assert await RepositoryDAO().count(session) == 0

    async def test_invalid_input(self, session):
        service, clients = make_service({})
        with pytest.raises(InvalidFormat):
            await service.add_repository(session, "not a repo")
        await clients.aclose()

    async def test_unsupported_platform(self, session):
        service, clients = make_service({})
        with pytest.raises(UnsupportedPlatform):
            await service.add_repository(session, "https://bitbucket.org/team/repo")
        await clients.aclose()
        assert await RepositoryDAO().count(session) == 0


class TestRemoveAndList:
    async def test_remove(self, session, record_factory):
        record = await record_factory()
        service, clients = make_service({})
        await service.remove_repository(session, record.id)
        await clients.aclose()
        assert await service.list_repositories(session) == []

    async def test_remove_missing(self, session):
        service, clients = make_service({})
        with pytest.raises(NotFoundError):
            await service.remove_repository(session, 999)
        await clients.aclose()

    async def test_list_ordered_by_full_name(self, session, record_factory):
        await record_factory(owner="zeta", name="b", full_name="zeta/b")
        await record_factory(owner="alpha", name="a", full_name="alpha/a")
        service, clients = make_service({})
        names = [r.full_name for r in await service.list_repositories(session)]
        await clients.aclose()
        assert names == ["alpha/a", "zeta/b"]


class TestRemoteRepositories:
    async def test_import_respects_cap_and_skips_tracked(self, session, record_factory):
        await record_factory(owner="me", name="one", full_name="me/one")
        listing = [
            {
                "full_name": f"me/{n}",
                "name": n,
                "owner": {"login": "me"},
                "stargazers_count": 1,
                "html_url": f"https://github.com/me/{n}",
            }
            for n in ("one", "two", "three", "four")
        ]
        routes = {"/user/repos": httpx.Response(200, json=listing)}
        for n in ("two", "three", "four"):
            routes.update(github_routes(owner="me", name=n))
        service, clients = make_service(routes)

        result = await service.import_repositories(session, Platform.GITHUB, max_pages=1)
        await clients.aclose()

        assert [r.full_name for r in result.added] == ["me/two", "me/three"]
        assert result.already_tracked == 1
        assert result.over_capacity == 1
        assert result.failed == 0

    async def test_list_remote_validates_pages(self):
        service, clients = make_service({})
        with pytest.raises(ValidationError):
            await service.list_remote_repositories(Platform.GITHUB, max_pages=0)
        await clients.aclose()

    async def test_verify_token_delegates(self):
        clients = ClientRegistry(
            {Platform.GITHUB: "tok"},
            transport=json_transport({"/user": httpx.Response(200, json={"login": "me"})}),
        )
        service = RepositoryService(RepositoryDAO(), clients, is_entitled=lambda: False)
        assert await service.verify_token(Platform.GITHUB) == "me"
        await clients.aclose()
