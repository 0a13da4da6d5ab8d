"""Root conftest — shared test configuration and lifecycle fixtures.

Invariants:
    - Every test gets a fresh in-memory repository and event bus
    - u1 belongs to a department headed by head@dept.test
"""

import os

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

# Ensure tests never touch a real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")

from custody.db.base import Base  # noqa: E402
from custody.bootstrap import build_container  # noqa: E402
from custody.infrastructure.database import DatabaseSessionManager  # noqa: E402
from custody.infrastructure.subscription_repository import (  # noqa: E402
    InMemorySubscriptionRepository,
)
import custody.models  # noqa: E402,F401

from tests.fakes import (  # noqa: E402
    HEAD,
    U1_EMAIL,
    FakeDirectory,
    RecordingSender,
    TickingClock,
)


@pytest.fixture
def directory():
    return FakeDirectory(
        heads={"u1": HEAD, "u2": HEAD},
        emails={"u1": U1_EMAIL, "u2": "u2@example.test"},
    )


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def repository():
    return InMemorySubscriptionRepository()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def container(repository, directory, sender, clock):
    return build_container(
        repository=repository,
        departments=directory,
        users=directory,
        sender=sender,
        clock=clock,
    )


@pytest.fixture
def service(container):
    return container.service


@pytest.fixture
def ledger(container):
    return container.ledger


@pytest.fixture
def bus(container):
    return container.bus


# ─── SQL fixtures ────────────────────────────────────────────────

@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def db(test_engine, test_session_factory):
    """DatabaseSessionManager bound to the in-memory test engine."""
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = test_session_factory
    return manager
