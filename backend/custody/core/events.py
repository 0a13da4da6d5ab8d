"""Lifecycle Events — typed payloads published after each committed transition.

Invariants:
    - Events are immutable and carry the Subscription snapshot at publish time
    - SubscriptionProcessed for a rejection carries the pre-deletion snapshot
    - A return re-publishes SubscriptionInitiated (reason=RETURNED), not a third event type
"""

from dataclasses import dataclass

from custody.core.domain_types import InitiationReason, ProcessOutcome
from custody.core.subscription import Subscription


@dataclass(frozen=True)
class SubscriptionInitiated:
    """The department head must be informed (new request or item return)."""
    subscription: Subscription
    reason: InitiationReason = InitiationReason.REQUESTED


@dataclass(frozen=True)
class SubscriptionProcessed:
    """The requester must be informed of the head's decision."""
    subscription: Subscription
    outcome: ProcessOutcome


LifecycleEvent = SubscriptionInitiated | SubscriptionProcessed
