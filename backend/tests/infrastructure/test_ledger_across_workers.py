"""Ledgers in separate workers — two SubscriptionLedgers, two engines, one database file.

Invariants:
    - Each ledger has its own in-process locks, so only the database can arbitrate
    - Racing approve/approve, approve/reject, return/return: exactly one winner,
      the loser gets the same precondition error a serialized caller would
    - Racing create for one (user_id, item_id): exactly one row, one duplicate error

Design Decisions:
    - File-backed SQLite over :memory: so each engine has its own connection pool,
      the way two uvicorn workers would
"""

import asyncio

import pytest

from custody.core.domain_types import SubscriptionState
from custody.core.errors import (
    AlreadyApprovedError,
    AlreadyReturnedError,
    DuplicateActiveSubscriptionError,
    ResourceNotFoundError,
)
from custody.db.base import Base
from custody.infrastructure.database import DatabaseSessionManager
from custody.infrastructure.subscription_repository import SqlSubscriptionRepository
from custody.services.subscription_ledger import SubscriptionLedger

from tests.fakes import TickingClock


@pytest.fixture
async def workers(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'custody.db'}"
    managers = [DatabaseSessionManager(url), DatabaseSessionManager(url)]
    async with managers[0].engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    ledgers = [
        SubscriptionLedger(SqlSubscriptionRepository(m), TickingClock())
        for m in managers
    ]
    yield ledgers
    for m in managers:
        await m.dispose()


def _split(results):
    wins = [r for r in results if not isinstance(r, BaseException)]
    losses = [r for r in results if isinstance(r, BaseException)]
    return wins, losses


async def test_racing_approvals_have_one_winner(workers):
    a, b = workers
    sub = await a.create("u1", 123, "Widget")

    results = await asyncio.gather(
        a.approve(sub.subscription_code, "head-a"),
        b.approve(sub.subscription_code, "head-b"),
        return_exceptions=True,
    )

    wins, losses = _split(results)
    assert len(wins) == 1
    assert len(losses) == 1 and isinstance(losses[0], AlreadyApprovedError)
    stored = await a.get(sub.subscription_code)
    assert stored.approved_by == wins[0].approved_by


async def test_racing_approve_and_reject_have_one_winner(workers):
    a, b = workers
    sub = await a.create("u1", 123, "Widget")

    results = await asyncio.gather(
        a.approve(sub.subscription_code, "head-a"),
        b.reject(sub.subscription_code),
        return_exceptions=True,
    )

    wins, losses = _split(results)
    assert len(wins) == 1 and len(losses) == 1
    assert isinstance(losses[0], (AlreadyApprovedError, ResourceNotFoundError))


async def test_racing_returns_have_one_winner(workers):
    a, b = workers
    sub = await a.create("u1", 123, "Widget")
    await a.approve(sub.subscription_code, "head-a")

    results = await asyncio.gather(
        a.mark_returned(sub.subscription_code),
        b.mark_returned(sub.subscription_code),
        return_exceptions=True,
    )

    wins, losses = _split(results)
    assert len(wins) == 1
    assert len(losses) == 1 and isinstance(losses[0], AlreadyReturnedError)


async def test_racing_creates_for_same_pair_have_one_winner(workers):
    a, b = workers

    results = await asyncio.gather(
        a.create("u1", 123, "Widget"),
        b.create("u1", 123, "Widget"),
        return_exceptions=True,
    )

    wins, losses = _split(results)
    assert len(wins) == 1
    assert len(losses) == 1 and isinstance(losses[0], DuplicateActiveSubscriptionError)
    subs = await b.list_for_user("u1")
    assert [s.state for s in subs] == [SubscriptionState.REQUESTED]
