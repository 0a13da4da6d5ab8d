"""Subscription Service — the only entry point callers use for lifecycle actions.

Invariants:
    - Every successful ledger transition publishes exactly one event
    - A failed transition publishes nothing and leaves state unchanged
    - Repeating an applied transition fails with that transition's specific error
    - Errors propagate verbatim to the caller; nothing is retried here

Design Decisions:
    - Publish after the ledger call returns: the state change is committed before
      any listener can observe it
    - Return reuses SubscriptionInitiated (reason=RETURNED) so the department head
      is informed through the same listener as new requests
"""

import logging

from custody.core.domain_types import InitiationReason, ProcessOutcome
from custody.core.errors import NotSubscriptionOwnerError
from custody.core.events import SubscriptionInitiated, SubscriptionProcessed
from custody.core.subscription import Subscription
from custody.services.event_bus import EventBus
from custody.services.subscription_ledger import SubscriptionLedger

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Translates an intent into a ledger call plus an event publication."""

    def __init__(self, ledger: SubscriptionLedger, bus: EventBus):
        self._ledger = ledger
        self._bus = bus

    async def request_subscription(
        self, user_id: str, item_id: int, item_name: str,
    ) -> SubscriptionInitiated:
        sub = await self._ledger.create(user_id, item_id, item_name)
        return self._publish(SubscriptionInitiated(sub, InitiationReason.REQUESTED))

    async def approve_subscription(
        self, subscription_code: str, approver: str,
    ) -> SubscriptionProcessed:
        sub = await self._ledger.approve(subscription_code, approver)
        return self._publish(SubscriptionProcessed(sub, ProcessOutcome.APPROVED))

    async def reject_subscription(self, subscription_code: str) -> SubscriptionProcessed:
        snapshot = await self._ledger.reject(subscription_code)
        return self._publish(SubscriptionProcessed(snapshot, ProcessOutcome.REJECTED))

    async def return_item(
        self, subscription_code: str, user_id: str | None = None,
    ) -> SubscriptionInitiated:
        """Mark the item returned. When user_id is given, only the requester may return."""
        if user_id is not None:
            current = await self._ledger.get(subscription_code)
            if current.user_id != user_id:
                raise NotSubscriptionOwnerError(subscription_code, user_id)
        sub = await self._ledger.mark_returned(subscription_code)
        return self._publish(SubscriptionInitiated(sub, InitiationReason.RETURNED))

    async def get_subscription(self, subscription_code: str) -> Subscription:
        return await self._ledger.get(subscription_code)

    async def list_subscriptions(self, user_id: str) -> list[Subscription]:
        return await self._ledger.list_for_user(user_id)

    def _publish(self, event):
        self._bus.publish(event)
        return event
