"""Tests for the DAOs — lookups, constraints, UTC round-trips."""

import pytest
from sqlalchemy.exc import IntegrityError

from reporadar.dao.analytics_dao import AnalyticsDAO
from reporadar.dao.milestone_dao import MilestoneDAO
from reporadar.dao.repository_dao import RepositoryDAO
from reporadar.models.analytics import AnalyticsSnapshot
from reporadar.models.repository import TrackedRepository
from reporadar.platforms.models import Platform, RepositoryIdentifier
from tests.reporadar.factories import make_record, utc


@pytest.fixture
def dao():
    return RepositoryDAO()


# ── BaseDAO ───────────────────────────────────────────────────────────────


class TestBaseDAO:
    async def test_add_assigns_id_and_defaults(self, session, dao):
        record = await dao.add(session, make_record())
        assert record.id is not None
        assert record.notifications_enabled is True
        assert record.created_at is not None
        assert await dao.count(session) == 1

    async def test_delete(self, session, dao):
        record = await dao.add(session, make_record())
        assert await dao.delete(session, record.id) is True
        assert await dao.delete(session, record.id) is False
        assert await dao.count(session) == 0

    async def test_none_pk_rejected(self, session, dao):
        with pytest.raises(ValueError):
            await dao.delete(session, None)

    async def test_get_by_field_requires_filters(self, session, dao):
        with pytest.raises(ValueError):
            await dao.get_by_field(session)


# ── RepositoryDAO ─────────────────────────────────────────────────────────


class TestRepositoryDAO:
    async def test_find_by_identifier_is_case_sensitive(self, session, dao):
        await dao.add(session, make_record())
        found = await dao.find_by_identifier(
            session, RepositoryIdentifier(Platform.GITHUB, "octocat", "Hello-World")
        )
        assert found is not None
        missing = await dao.find_by_identifier(
            session, RepositoryIdentifier(Platform.GITHUB, "octocat", "hello-world")
        )
        assert missing is None

    async def test_platform_is_part_of_identity(self, session, dao):
        await dao.add(session, make_record())
        found = await dao.find_by_identifier(
            session, RepositoryIdentifier(Platform.GITLAB, "octocat", "Hello-World")
        )
        assert found is None

    async def test_datetimes_come_back_utc(self, session_factory, record_factory):
        record = await record_factory(latest_release_date=utc(2025, 2, 3, 4, 5))
        async with session_factory() as s:
            loaded = await s.get(TrackedRepository, record.id)
        assert loaded.latest_release_date == utc(2025, 2, 3, 4, 5)
        assert loaded.latest_release_date.tzinfo is not None


# ── analytics and milestones ──────────────────────────────────────────────


class TestAnalyticsDAO:
    async def test_get_for_repository(self, session, dao):
        a = await dao.add(session, make_record(name="a", full_name="octocat/a"))
        b = await dao.add(session, make_record(name="b", full_name="octocat/b"))
        await AnalyticsDAO().add(session, AnalyticsSnapshot(repository_id=a.id, star_count=3))

        found = await AnalyticsDAO().get_for_repository(session, a.id)
        assert found.star_count == 3
        assert await AnalyticsDAO().get_for_repository(session, b.id) is None

    async def test_removing_repository_cascades(self, session, dao):
        record = await dao.add(session, make_record())
        await AnalyticsDAO().add(session, AnalyticsSnapshot(repository_id=record.id))
        await MilestoneDAO().mark(session, record.id, "stars", [10])
        await session.commit()

        await dao.delete(session, record.id)
        await session.commit()
        session.expunge_all()

        assert await AnalyticsDAO().count(session) == 0
        assert await MilestoneDAO().count(session) == 0


class TestMilestoneDAO:
    async def test_mark_and_read(self, session, dao):
        record = await dao.add(session, make_record())
        await MilestoneDAO().mark(session, record.id, "stars", [10, 50])
        await MilestoneDAO().mark(session, record.id, "forks", [10])

        assert await MilestoneDAO().reached_thresholds(session, record.id, "stars") == {10, 50}
        assert await MilestoneDAO().reached_thresholds(session, record.id, "health") == set()

    async def test_threshold_marked_once(self, session, dao):
        record = await dao.add(session, make_record())
        await MilestoneDAO().mark(session, record.id, "stars", [10])
        with pytest.raises(IntegrityError):
            await MilestoneDAO().mark(session, record.id, "stars", [10])
