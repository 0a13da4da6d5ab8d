"""Subscription ORM — persisted form of core.subscription.Subscription.

Invariants:
    - subscription_code is unique and is the external reference for all actions
    - status mirrors SubscriptionState; rejected rows are deleted, never marked
    - Row <-> domain conversion lives here so repositories stay thin
    - At most one non-returned row per (user_id, item_id), enforced by a partial
      unique index so concurrent workers cannot both open the pair
    - Datetimes leave to_domain() timezone-aware (UTC); SQLite hands back naive values

Design Decisions:
    - String status column over DB enum: portable across SQLite and PostgreSQL
    - user_id indexed with item_id: the active-duplicate check runs on every request
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from custody.core.domain_types import SubscriptionState
from custody.core.subscription import Subscription
from custody.db.base import Base


class SubscriptionRow(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("ix_subscriptions_user_item", "user_id", "item_id"),
        Index(
            "ux_subscriptions_active_pair", "user_id", "item_id",
            unique=True,
            postgresql_where=text("status <> 'returned'"),
            sqlite_where=text("status <> 'returned'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    subscription_code: Mapped[str] = mapped_column(
        String(36), nullable=False, unique=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False,
    )
    item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    item_name: Mapped[str] = mapped_column(String(191), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubscriptionState.REQUESTED.value,
    )
    requested_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    approved_by: Mapped[str | None] = mapped_column(String(191), nullable=True)
    returned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    def to_domain(self) -> Subscription:
        return Subscription(
            subscription_id=self.id,
            subscription_code=self.subscription_code,
            user_id=self.user_id,
            item_id=self.item_id,
            item_name=self.item_name,
            state=SubscriptionState(self.status),
            requested_at=_as_utc(self.requested_at),
            approved_at=_as_utc(self.approved_at),
            approved_by=self.approved_by,
            returned_at=_as_utc(self.returned_at),
        )

    @classmethod
    def from_domain(cls, sub: Subscription) -> "SubscriptionRow":
        return cls(
            id=sub.subscription_id,
            subscription_code=sub.subscription_code,
            user_id=sub.user_id,
            item_id=sub.item_id,
            item_name=sub.item_name,
            status=sub.state.value,
            requested_at=sub.requested_at,
            approved_at=sub.approved_at,
            approved_by=sub.approved_by,
            returned_at=sub.returned_at,
        )


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
