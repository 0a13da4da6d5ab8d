"""Subscription Lifecycle — the custody record and its guarded transitions.

Invariants:
    - requested -> approved -> returned is the only path; rejection deletes (no state)
    - approved_at and approved_by are both None or both set
    - returned_at is set only after approval, and only once
    - Subscription is immutable: transitions return a new value, the input is untouched

Design Decisions:
    - Pure functions with `now` passed in: no clock, no IO, deterministic tests
    - State validated in __post_init__ so an illegal field combination cannot be built,
      including when a repository rehydrates a row
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID, uuid4

from custody.core.domain_types import SubscriptionState
from custody.core.errors import (
    AlreadyApprovedError,
    AlreadyReturnedError,
    InvalidSubscriptionError,
    NotApprovedError,
)


@dataclass(frozen=True)
class Subscription:
    """One request for custody of one item by one user."""

    subscription_code: str
    user_id: str
    item_id: int
    item_name: str
    state: SubscriptionState = SubscriptionState.REQUESTED
    requested_at: datetime | None = None
    approved_at: datetime | None = None
    approved_by: str | None = None
    returned_at: datetime | None = None
    subscription_id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if (self.approved_at is None) != (self.approved_by is None):
            raise InvalidSubscriptionError(
                "approved_at and approved_by must be set together",
            )
        if self.state == SubscriptionState.REQUESTED:
            if self.approved_at is not None or self.returned_at is not None:
                raise InvalidSubscriptionError(
                    "requested subscription cannot carry approval or return data",
                )
        elif self.state == SubscriptionState.APPROVED:
            if self.approved_at is None or self.returned_at is not None:
                raise InvalidSubscriptionError(
                    "approved subscription needs approval data and no return",
                )
        elif self.state == SubscriptionState.RETURNED:
            if self.approved_at is None or self.returned_at is None:
                raise InvalidSubscriptionError(
                    "returned subscription needs approval and return data",
                )

    @property
    def is_active(self) -> bool:
        """Active = not returned. Rejected subscriptions no longer exist."""
        return self.state != SubscriptionState.RETURNED

    def to_dict(self) -> dict:
        return {
            "subscription_id": str(self.subscription_id),
            "subscription_code": self.subscription_code,
            "user_id": self.user_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "state": self.state.value,
            "requested_at": _iso(self.requested_at),
            "approved_at": _iso(self.approved_at),
            "approved_by": self.approved_by,
            "returned_at": _iso(self.returned_at),
        }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def open_subscription(
    subscription_code: str,
    user_id: str,
    item_id: int,
    item_name: str,
    now: datetime,
) -> Subscription:
    """Build a fresh Requested subscription."""
    return Subscription(
        subscription_code=subscription_code,
        user_id=user_id,
        item_id=item_id,
        item_name=item_name,
        requested_at=now,
    )


def approve(sub: Subscription, approver: str, now: datetime) -> Subscription:
    """Requested -> Approved. Anything already approved (or returned) fails."""
    if sub.state != SubscriptionState.REQUESTED:
        raise AlreadyApprovedError(sub.subscription_code)
    if not approver:
        raise InvalidSubscriptionError("approver must be non-empty")
    return replace(
        sub,
        state=SubscriptionState.APPROVED,
        approved_at=now,
        approved_by=approver,
    )


def ensure_rejectable(sub: Subscription) -> None:
    """Rejection is only valid before approval."""
    if sub.state != SubscriptionState.REQUESTED:
        raise AlreadyApprovedError(sub.subscription_code)


def mark_returned(sub: Subscription, now: datetime) -> Subscription:
    """Approved -> Returned."""
    if sub.state == SubscriptionState.REQUESTED:
        raise NotApprovedError(sub.subscription_code)
    if sub.state == SubscriptionState.RETURNED:
        raise AlreadyReturnedError(sub.subscription_code)
    return replace(sub, state=SubscriptionState.RETURNED, returned_at=now)
