"""Shared fixtures for reporadar tests.

Persistence runs on an in-memory SQLite database per test; HTTP is mocked
with ``httpx.MockTransport``. No network, no external services.
"""

from __future__ import annotations

import pytest
import pytest_asyncio

from reporadar.core.database import create_engine, create_session_factory, init_db
from reporadar.models.repository import TrackedRepository
from tests.reporadar.factories import make_record

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def engine():
    eng = create_engine(MEMORY_URL)
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def record_factory(session_factory):
    """Persist a TrackedRepository and return it (committed)."""

    async def _create(**overrides) -> TrackedRepository:
        record = make_record(**overrides)
        async with session_factory() as s:
            s.add(record)
            await s.commit()
        return record

    return _create
