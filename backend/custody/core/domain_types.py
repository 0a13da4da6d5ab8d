"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - SubscriptionId wraps UUID, SubscriptionCode wraps the external UUID4 string
    - Lifecycle states encoded as SubscriptionState — never inferred from nullable fields
    - Rejection has no state: a rejected subscription is deleted, only its event survives

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (event payloads, REST responses)
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

SubscriptionId = NewType("SubscriptionId", UUID)
SubscriptionCode = NewType("SubscriptionCode", str)
UserId = NewType("UserId", str)
ItemId = NewType("ItemId", int)


# ─── Enums ───────────────────────────────────────────────────────

class SubscriptionState(str, Enum):
    """Lifecycle states — maps to DB `status` column."""
    REQUESTED = "requested"
    APPROVED = "approved"
    RETURNED = "returned"


class ProcessOutcome(str, Enum):
    """Result of the department head's decision on a request."""
    APPROVED = "approved"
    REJECTED = "rejected"


class InitiationReason(str, Enum):
    """Why a SubscriptionInitiated event was published."""
    REQUESTED = "requested"
    RETURNED = "returned"


class NotificationIntent(str, Enum):
    """What a notification is about. Rendering is up to the sender."""
    SUBSCRIPTION_PREPARED = "subscription_prepared"
    SUBSCRIPTION_COMPLETED = "subscription_completed"
