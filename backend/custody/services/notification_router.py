"""Notification Router — the two listeners that turn lifecycle events into notifications.

Invariants:
    - ProcessSubscription: SubscriptionInitiated -> one PREPARED notification to the
      requester's department head (new requests and returns alike)
    - InformConcerned: SubscriptionProcessed -> one COMPLETED notification to the
      requester, for both outcomes
    - Listeners hold no state and never touch the ledger

Design Decisions:
    - Callable classes so the bus can log a readable listener name
    - Directory and sender errors propagate to the bus, which logs and drops them
"""

from custody.core.domain_types import NotificationIntent
from custody.core.events import SubscriptionInitiated, SubscriptionProcessed
from custody.core.format_notifications import (
    format_completed_payload,
    format_prepared_payload,
)
from custody.core.repository_protocols import (
    DepartmentDirectory,
    NotificationSender,
    UserDirectory,
)


class ProcessSubscription:
    """Inform the department head that a subscription needs attention."""

    def __init__(self, departments: DepartmentDirectory, sender: NotificationSender):
        self._departments = departments
        self._sender = sender

    async def __call__(self, event: SubscriptionInitiated) -> None:
        sub = event.subscription
        head = await self._departments.head_of(sub.user_id)
        await self._sender.send(
            head,
            NotificationIntent.SUBSCRIPTION_PREPARED,
            format_prepared_payload(sub, event.reason),
        )


class InformConcerned:
    """Inform the requester of the head's decision."""

    def __init__(self, users: UserDirectory, sender: NotificationSender):
        self._users = users
        self._sender = sender

    async def __call__(self, event: SubscriptionProcessed) -> None:
        sub = event.subscription
        recipient = await self._users.contact_of(sub.user_id)
        await self._sender.send(
            recipient,
            NotificationIntent.SUBSCRIPTION_COMPLETED,
            format_completed_payload(sub, event.outcome),
        )
