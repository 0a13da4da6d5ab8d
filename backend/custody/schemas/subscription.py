"""Subscription Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - SubscriptionCreate.item_name: 1-191 chars, stripped, non-empty
    - SubscriptionResponse mirrors core Subscription; rejection responses carry the
      pre-deletion snapshot
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from custody.core.domain_types import SubscriptionState
from custody.core.subscription import Subscription


class SubscriptionCreate(BaseModel):
    """Custody request for one item."""
    item_id: int = Field(ge=1)
    item_name: str = Field(min_length=1, max_length=191)

    @field_validator("item_name")
    @classmethod
    def strip_item_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("item_name cannot be empty or whitespace")
        return v


class SubscriptionResponse(BaseModel):
    """Public-facing subscription data."""
    subscription_id: UUID
    subscription_code: str
    user_id: str
    item_id: int
    item_name: str
    state: SubscriptionState
    requested_at: datetime | None
    approved_at: datetime | None
    approved_by: str | None
    returned_at: datetime | None

    @classmethod
    def from_domain(cls, sub: Subscription) -> "SubscriptionResponse":
        return cls(
            subscription_id=sub.subscription_id,
            subscription_code=sub.subscription_code,
            user_id=sub.user_id,
            item_id=sub.item_id,
            item_name=sub.item_name,
            state=sub.state,
            requested_at=sub.requested_at,
            approved_at=sub.approved_at,
            approved_by=sub.approved_by,
            returned_at=sub.returned_at,
        )


class SubscriptionList(BaseModel):
    subscriptions: list[SubscriptionResponse]
