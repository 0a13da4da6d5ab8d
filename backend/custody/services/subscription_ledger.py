"""Subscription Ledger — authoritative store of subscription state, legal transitions only.

Invariants:
    - At most one active subscription per (user_id, item_id)
    - Transitions on the same subscription_code are serialized: of two racing
      approve/reject calls exactly one wins, the loser fails its precondition
    - Transitions on different codes run fully in parallel
    - A failed precondition leaves persisted state untouched
    - Across processes the repository write is conditional on the state read here;
      a lost race surfaces as the same precondition error a serialized caller gets

Design Decisions:
    - Per-key asyncio locks over a global lock: independent codes never contend
    - Locks only spare the repository a doomed write inside one process; the
      conditional write is what holds across workers
    - Locks created on demand and dropped when nobody holds or waits on them
    - create() locks on the (user_id, item_id) pair so the duplicate check and the
      insert are one critical section
    - Clock and code generator injected for deterministic tests
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Hashable
from uuid import uuid4

from custody.core.domain_types import SubscriptionState
from custody.core.errors import (
    DatabaseError,
    DuplicateActiveSubscriptionError,
    ResourceNotFoundError,
)
from custody.core.repository_protocols import SubscriptionRepository
from custody.core.subscription import (
    Subscription,
    approve,
    ensure_rejectable,
    mark_returned,
    open_subscription,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_code() -> str:
    return str(uuid4())


class KeyedLock:
    """One asyncio.Lock per key, discarded once unused."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class SubscriptionLedger:
    """Owns Subscription entities; the state machine proper."""

    def __init__(
        self,
        repository: SubscriptionRepository,
        clock: Callable[[], datetime] = _utcnow,
        code_factory: Callable[[], str] = _new_code,
    ):
        self._repo = repository
        self._clock = clock
        self._code_factory = code_factory
        self._code_locks = KeyedLock()
        self._pair_locks = KeyedLock()

    async def create(self, user_id: str, item_id: int, item_name: str) -> Subscription:
        async with self._pair_locks.hold((user_id, item_id)):
            if await self._repo.has_active(user_id, item_id):
                raise DuplicateActiveSubscriptionError(user_id, item_id)
            sub = open_subscription(
                self._code_factory(), user_id, item_id, item_name, self._clock(),
            )
            await self._repo.add(sub)
        logger.info(
            f"Subscription requested for item {item_id}",
            extra={"subscription_code": sub.subscription_code, "user_id": user_id},
        )
        return sub

    async def approve(self, subscription_code: str, approver: str) -> Subscription:
        async with self._code_locks.hold(subscription_code):
            sub = await self._load(subscription_code)
            now = self._clock()
            approved = approve(sub, approver, now)
            if not await self._repo.save_if(approved, sub.state):
                await self._lost_race(
                    subscription_code, lambda current: approve(current, approver, now),
                )
        logger.info(
            f"Subscription approved by {approver}",
            extra={"subscription_code": subscription_code, "user_id": sub.user_id},
        )
        return approved

    async def reject(self, subscription_code: str) -> Subscription:
        """Delete a Requested subscription. Returns the pre-deletion snapshot."""
        async with self._code_locks.hold(subscription_code):
            sub = await self._load(subscription_code)
            ensure_rejectable(sub)
            rejected = await self._repo.delete_if(
                subscription_code, SubscriptionState.REQUESTED,
            )
            if not rejected:
                await self._lost_race(subscription_code, ensure_rejectable)
        logger.info(
            "Subscription rejected",
            extra={"subscription_code": subscription_code, "user_id": sub.user_id},
        )
        return sub

    async def mark_returned(self, subscription_code: str) -> Subscription:
        async with self._code_locks.hold(subscription_code):
            sub = await self._load(subscription_code)
            now = self._clock()
            returned = mark_returned(sub, now)
            if not await self._repo.save_if(returned, sub.state):
                await self._lost_race(
                    subscription_code, lambda current: mark_returned(current, now),
                )
        logger.info(
            "Item returned",
            extra={"subscription_code": subscription_code, "user_id": sub.user_id},
        )
        return returned

    async def get(self, subscription_code: str) -> Subscription:
        return await self._load(subscription_code)

    async def list_for_user(self, user_id: str) -> list[Subscription]:
        return await self._repo.list_by_user(user_id)

    async def _load(self, subscription_code: str) -> Subscription:
        sub = await self._repo.get(subscription_code)
        if sub is None:
            raise ResourceNotFoundError("Subscription", subscription_code)
        return sub

    async def _lost_race(
        self, subscription_code: str, transition: Callable[[Subscription], object],
    ) -> None:
        """Re-check against the winner's state so the caller sees the real reason."""
        current = await self._load(subscription_code)
        transition(current)
        raise DatabaseError(
            f"Subscription {subscription_code} changed during the update", "update",
        )
