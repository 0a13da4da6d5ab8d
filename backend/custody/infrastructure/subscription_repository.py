"""Subscription Repositories — SQL and in-memory implementations of SubscriptionRepository.

Invariants:
    - Each SQL call runs in its own session and commits before returning
    - get() returns a fresh domain value; callers never hold ORM rows
    - has_active() counts requested and approved rows only (rejected rows are gone)
    - save_if/delete_if touch a row only while its status still matches: of two
      processes racing on one code, exactly one sees rowcount 1
    - add() relies on the partial unique index ux_subscriptions_active_pair, so two
      processes cannot both open the same (user_id, item_id)

Design Decisions:
    - Session per call over session per request: the ledger outlives any request
      and serializes transitions itself
    - Compare-and-set on status over SELECT ... FOR UPDATE: works the same on
      SQLite and PostgreSQL
    - In-memory variant yields to the loop on every call so races between
      transitions interleave the way they would against a real database
"""

import asyncio

from sqlalchemy import delete, exists, select, update
from sqlalchemy.exc import IntegrityError

from custody.core.domain_types import SubscriptionState
from custody.core.errors import DatabaseError, DuplicateActiveSubscriptionError
from custody.core.subscription import Subscription
from custody.infrastructure.database import DatabaseSessionManager
from custody.models.subscription import SubscriptionRow


class SqlSubscriptionRepository:
    """SubscriptionRepository backed by SQLAlchemy."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def get(self, subscription_code: str) -> Subscription | None:
        async with self._db.session() as session:
            result = await session.execute(
                select(SubscriptionRow).where(
                    SubscriptionRow.subscription_code == subscription_code,
                ),
            )
            row = result.scalar_one_or_none()
            return row.to_domain() if row else None

    async def add(self, subscription: Subscription) -> None:
        async with self._db.session() as session:
            session.add(SubscriptionRow.from_domain(subscription))
            try:
                await session.commit()
                return
            except IntegrityError:
                await session.rollback()
        # The unique index does not name itself portably; ask again instead
        if await self.has_active(subscription.user_id, subscription.item_id):
            raise DuplicateActiveSubscriptionError(
                subscription.user_id, subscription.item_id,
            )
        raise DatabaseError("Integrity constraint violated", "insert")

    async def save_if(
        self, subscription: Subscription, expected: SubscriptionState,
    ) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                update(SubscriptionRow)
                .where(
                    SubscriptionRow.subscription_code == subscription.subscription_code,
                    SubscriptionRow.status == expected.value,
                )
                .values(
                    status=subscription.state.value,
                    approved_at=subscription.approved_at,
                    approved_by=subscription.approved_by,
                    returned_at=subscription.returned_at,
                )
                .execution_options(synchronize_session=False),
            )
            await session.commit()
            return result.rowcount == 1

    async def delete_if(
        self, subscription_code: str, expected: SubscriptionState,
    ) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                delete(SubscriptionRow)
                .where(
                    SubscriptionRow.subscription_code == subscription_code,
                    SubscriptionRow.status == expected.value,
                )
                .execution_options(synchronize_session=False),
            )
            await session.commit()
            return result.rowcount == 1

    async def has_active(self, user_id: str, item_id: int) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                select(exists().where(
                    SubscriptionRow.user_id == user_id,
                    SubscriptionRow.item_id == item_id,
                    SubscriptionRow.status != SubscriptionState.RETURNED.value,
                )),
            )
            return bool(result.scalar())

    async def list_by_user(self, user_id: str) -> list[Subscription]:
        async with self._db.session() as session:
            result = await session.execute(
                select(SubscriptionRow)
                .where(SubscriptionRow.user_id == user_id)
                .order_by(SubscriptionRow.requested_at.desc()),
            )
            return [row.to_domain() for row in result.scalars().all()]


class InMemorySubscriptionRepository:
    """SubscriptionRepository kept in a dict. Single process only."""

    def __init__(self) -> None:
        self._rows: dict[str, Subscription] = {}

    async def get(self, subscription_code: str) -> Subscription | None:
        await asyncio.sleep(0)
        return self._rows.get(subscription_code)

    async def add(self, subscription: Subscription) -> None:
        await asyncio.sleep(0)
        if self._active(subscription.user_id, subscription.item_id):
            raise DuplicateActiveSubscriptionError(
                subscription.user_id, subscription.item_id,
            )
        self._rows[subscription.subscription_code] = subscription

    async def save_if(
        self, subscription: Subscription, expected: SubscriptionState,
    ) -> bool:
        await asyncio.sleep(0)
        current = self._rows.get(subscription.subscription_code)
        if current is None or current.state != expected:
            return False
        self._rows[subscription.subscription_code] = subscription
        return True

    async def delete_if(
        self, subscription_code: str, expected: SubscriptionState,
    ) -> bool:
        await asyncio.sleep(0)
        current = self._rows.get(subscription_code)
        if current is None or current.state != expected:
            return False
        del self._rows[subscription_code]
        return True

    async def has_active(self, user_id: str, item_id: int) -> bool:
        await asyncio.sleep(0)
        return self._active(user_id, item_id)

    async def list_by_user(self, user_id: str) -> list[Subscription]:
        await asyncio.sleep(0)
        subs = [s for s in self._rows.values() if s.user_id == user_id]
        return sorted(subs, key=lambda s: s.requested_at, reverse=True)

    def _active(self, user_id: str, item_id: int) -> bool:
        return any(
            s.user_id == user_id and s.item_id == item_id and s.is_active
            for s in self._rows.values()
        )
